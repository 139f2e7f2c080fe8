from __future__ import annotations

from typing import Any

from flask import abort, request

from ..core.context import RequestContext
from ..core.enums import Role
from ..core.exceptions import ValidationError

USER_ID_HEADER = "X-User-Id"
ROLE_HEADER = "X-User-Role"
DEPARTMENT_HEADER = "X-User-Department"


def current_context() -> RequestContext:
    """Build the caller's context from identity-provider claims.

    The gateway in front of this service verifies the token and forwards the
    claims as headers.
    """
    user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    role = (request.headers.get(ROLE_HEADER) or "").strip().lower()
    if not user_id or not role:
        abort(401)
    try:
        parsed_role = Role(role)
    except ValueError:
        abort(401)
    department = (request.headers.get(DEPARTMENT_HEADER) or "").strip() or None
    return RequestContext(user_id=user_id, role=parsed_role, department=department)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object body")
    return data


def required(data: dict, key: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"'{key}' is required")
    return value
