from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import get_settings_module
from .container import Container, build_container
from .core.exceptions import (
    ConflictError,
    DomainError,
    InvalidTransition,
    NotFoundError,
    Unauthorized,
    ValidationError,
)
from .core.policy import SchedulingPolicy
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .notifications.controller import register as register_notifications
from .reports.controller import register as register_reports
from .requests.controller import register as register_requests
from .shifts.controller import register as register_shifts
from .timelogs.controller import register as register_timelogs
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"

ERROR_STATUS = {
    ValidationError: 400,
    Unauthorized: 403,
    NotFoundError: 404,
    InvalidTransition: 409,
    ConflictError: 409,
}


def _status_for(error: DomainError) -> int:
    for cls, status in ERROR_STATUS.items():
        if isinstance(error, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        return jsonify({"error": type(error).__name__, "message": str(error)}), _status_for(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.name, "message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception("Unhandled error")
        return jsonify({"error": "InternalServerError", "message": "An unexpected server error occurred."}), 500


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["POLL_TIMEOUT_SECONDS"] = int(getattr(settings, "POLL_TIMEOUT_SECONDS", 25))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)
            logger.info("demo users ready")

        container = build_container(db_config=db_config, policy=SchedulingPolicy.from_settings(settings))

    app.extensions["shift_bookk"] = container

    register_error_handlers(app)
    register_shifts(app, container)
    register_requests(app, container)
    register_notifications(app, container)
    register_users(app, container)
    register_reports(app, container)
    register_timelogs(app, container)

    return app
