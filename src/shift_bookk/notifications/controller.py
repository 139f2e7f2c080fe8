from __future__ import annotations

from flask import Flask, current_app, jsonify, request

from ..common.http import current_context, json_body, required
from ..common.serialization import to_json
from ..core.constants import DEFAULT_POLL_TIMEOUT_SECONDS
from ..core.enums import NotificationType, Role
from ..core.exceptions import ValidationError
from ..container import Container
from .model import Audience, AudienceKind


def _audience_from(data: dict) -> Audience:
    try:
        kind = AudienceKind(str(required(data, "audience")))
    except ValueError:
        raise ValidationError("audience must be one of users, role, department, all")

    if kind == AudienceKind.USERS:
        user_ids = data.get("user_ids") or []
        if not isinstance(user_ids, list) or not user_ids:
            raise ValidationError("'user_ids' must be a non-empty list")
        return Audience.users([str(u) for u in user_ids])
    if kind == AudienceKind.ROLE:
        try:
            return Audience.for_role(Role(str(required(data, "role"))))
        except ValueError:
            raise ValidationError("Unknown role")
    if kind == AudienceKind.DEPARTMENT:
        return Audience.for_department(str(required(data, "department")))
    return Audience.everyone()


def register(app: Flask, container: Container) -> None:
    inbox = container.inbox

    @app.route("/api/notifications", methods=["GET"], endpoint="list_notifications")
    def list_notifications():
        ctx = current_context()
        unread_only = request.args.get("unread") in {"1", "true"}
        return jsonify({"notifications": to_json(list(inbox.list_for_user(ctx, unread_only=unread_only)))})

    @app.route("/api/notifications/unread-count", methods=["GET"], endpoint="unread_notifications")
    def unread_notifications():
        return jsonify({"unread": inbox.unread_count(current_context())})

    @app.route("/api/notifications/<notification_id>/read", methods=["POST"], endpoint="read_notification")
    def read_notification(notification_id: str):
        inbox.mark_as_read(current_context(), notification_id)
        return "", 204

    @app.route("/api/notifications/read-all", methods=["POST"], endpoint="read_all_notifications")
    def read_all_notifications():
        return jsonify({"updated": inbox.mark_all_as_read(current_context())})

    @app.route("/api/notifications/<notification_id>", methods=["DELETE"], endpoint="delete_notification")
    def delete_notification(notification_id: str):
        inbox.delete(current_context(), notification_id)
        return "", 204

    @app.route("/api/notifications/poll", methods=["GET"], endpoint="poll_notifications")
    def poll_notifications():
        ctx = current_context()
        try:
            since = int(request.args.get("since", "0"))
        except ValueError:
            raise ValidationError("'since' must be an integer")
        timeout = current_app.config.get("POLL_TIMEOUT_SECONDS", DEFAULT_POLL_TIMEOUT_SECONDS)
        return jsonify(to_json(inbox.poll(ctx, since=since, timeout=timeout)))

    @app.route("/api/notifications/broadcast", methods=["POST"], endpoint="broadcast_notification")
    def broadcast_notification():
        ctx = current_context()
        ctx.require_manager("Only a manager can broadcast notifications")
        data = json_body()
        try:
            kind = NotificationType(str(data.get("type") or NotificationType.INFO.value))
        except ValueError:
            raise ValidationError("Unknown notification type")

        result = container.fanout.fan_out(
            _audience_from(data),
            title=str(data.get("title") or ""),
            message=str(data.get("message") or ""),
            type=kind,
        )
        return (
            jsonify(
                {
                    "notification_ids": [n.notification_id for n in result.notifications],
                    "recipients": result.recipient_ids,
                    "failed": result.failed,
                    "delivered": result.delivered,
                }
            ),
            201,
        )
