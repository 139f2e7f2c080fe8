from __future__ import annotations

import importlib
import logging
import sys

from dotenv import load_dotenv

from shift_bookk.config import get_settings_module
from shift_bookk.database.bootstrap import apply_schema, ensure_demo_users, list_tables
from shift_bookk.main import SCHEMA_PATH

logger = logging.getLogger("init_db")


def main(argv: list[str]) -> None:
    load_dotenv(override=False)
    logging.basicConfig(level="INFO", format="%(levelname)s %(name)s: %(message)s")

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=SCHEMA_PATH)
    if "--demo-users" in argv:
        ensure_demo_users(db_config)

    tables = list_tables(db_config)
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (tables=%d)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
    )


if __name__ == "__main__":
    main(sys.argv[1:])
