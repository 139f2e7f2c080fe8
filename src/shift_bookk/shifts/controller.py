from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.http import current_context, json_body, required
from ..common.serialization import to_json
from ..core.enums import ShiftStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .model import Recurrence


def register(app: Flask, container: Container) -> None:
    def _parse_dt(value, field: str):
        try:
            return parse_iso_datetime(str(value))
        except ValueError:
            raise ValidationError(f"'{field}' must be an ISO-8601 timestamp")

    def _parse_status(value: str) -> ShiftStatus:
        try:
            return ShiftStatus.parse(str(value))
        except ValueError:
            raise ValidationError(f"Unknown shift status '{value}'")

    @app.route("/api/shifts", methods=["POST"], endpoint="create_shift")
    def create_shift():
        ctx = current_context()
        data = json_body()
        shift = container.shift_store.create_shift(
            ctx,
            title=str(required(data, "title")),
            employee_id=str(data.get("employee_id") or ctx.user_id),
            start_time=_parse_dt(required(data, "start_time"), "start_time"),
            end_time=_parse_dt(required(data, "end_time"), "end_time"),
            status=_parse_status(data.get("status") or ShiftStatus.PENDING.value),
            recurrence=Recurrence.from_dict(data.get("recurrence")),
            notes=data.get("notes"),
            location=data.get("location"),
            shift_id=data.get("id"),
        )
        return jsonify(to_json(shift)), 201

    @app.route("/api/shifts", methods=["GET"], endpoint="list_shifts")
    def list_shifts():
        ctx = current_context()
        employee_id = request.args.get("employee_id") or ctx.user_id
        ctx.require_self_or_manager(employee_id)
        start = request.args.get("start")
        end = request.args.get("end")
        shifts = container.shift_store.list_by_employee(
            employee_id,
            start=_parse_dt(start, "start") if start else None,
            end=_parse_dt(end, "end") if end else None,
        )
        return jsonify({"shifts": to_json(list(shifts))})

    @app.route("/api/shifts/<shift_id>", methods=["GET"], endpoint="get_shift")
    def get_shift(shift_id: str):
        ctx = current_context()
        shift = container.shift_store.get_shift(shift_id)
        ctx.require_self_or_manager(shift.employee_id)
        return jsonify(to_json(shift))

    @app.route("/api/shifts/<shift_id>/status", methods=["POST"], endpoint="update_shift_status")
    def update_shift_status(shift_id: str):
        ctx = current_context()
        data = json_body()
        shift = container.shift_store.update_status(ctx, shift_id, _parse_status(required(data, "status")))
        return jsonify(to_json(shift))

    @app.route("/api/shifts/<shift_id>/occurrences", methods=["GET"], endpoint="shift_occurrences")
    def shift_occurrences(shift_id: str):
        ctx = current_context()
        shift = container.shift_store.get_shift(shift_id)
        ctx.require_self_or_manager(shift.employee_id)
        try:
            until = parse_iso_date(request.args.get("until") or "")
        except ValueError:
            raise ValidationError("'until' must be YYYY-MM-DD")
        pairs = shift.occurrences(until)
        return jsonify({"occurrences": [{"start_time": to_json(s), "end_time": to_json(e)} for s, e in pairs]})

    @app.route("/api/shifts/<shift_id>", methods=["DELETE"], endpoint="delete_shift")
    def delete_shift(shift_id: str):
        container.shift_store.delete_shift(current_context(), shift_id)
        return "", 204
