from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import current_context, json_body, required
from ..common.serialization import to_json
from ..core.enums import TimeLogStatus
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.timelog_service

    def _parse_dt(value, field: str):
        try:
            return parse_iso_datetime(str(value))
        except ValueError:
            raise ValidationError(f"'{field}' must be an ISO-8601 timestamp")

    def _parse_status(value) -> Optional[TimeLogStatus]:
        if value is None:
            return None
        try:
            return TimeLogStatus(str(value))
        except ValueError:
            raise ValidationError(f"Unknown time log status '{value}'")

    def _times(data: dict) -> dict:
        clock_out = data.get("clock_out")
        return {
            "clock_in": _parse_dt(required(data, "clock_in"), "clock_in"),
            "clock_out": _parse_dt(clock_out, "clock_out") if clock_out else None,
            "status": _parse_status(data.get("status")),
        }

    @app.route("/api/timelogs", methods=["GET"], endpoint="list_timelogs")
    def list_timelogs():
        ctx = current_context()
        logs = service.list_for_employee(ctx, employee_id=request.args.get("employee_id"))
        return jsonify({"timelogs": to_json(list(logs))})

    @app.route("/api/timelogs", methods=["POST"], endpoint="record_timelog")
    def record_timelog():
        ctx = current_context()
        data = json_body()
        log = service.record_log(
            ctx,
            employee_id=data.get("employee_id"),
            shift_id=data.get("shift_id"),
            **_times(data),
        )
        return jsonify(to_json(log)), 201

    @app.route("/api/timelogs/clock-in", methods=["POST"], endpoint="clock_in")
    def clock_in():
        data = request.get_json(silent=True)
        shift_id = data.get("shift_id") if isinstance(data, dict) else None
        log = service.clock_in(current_context(), shift_id=shift_id)
        return jsonify(to_json(log)), 201

    @app.route("/api/timelogs/clock-out", methods=["POST"], endpoint="clock_out")
    def clock_out():
        return jsonify(to_json(service.clock_out(current_context())))

    @app.route("/api/timelogs/<log_id>", methods=["GET"], endpoint="get_timelog")
    def get_timelog(log_id: str):
        return jsonify(to_json(service.get_log(current_context(), log_id)))

    @app.route("/api/timelogs/<log_id>", methods=["PUT"], endpoint="update_timelog")
    def update_timelog(log_id: str):
        ctx = current_context()
        log = service.update_log(ctx, log_id, **_times(json_body()))
        return jsonify(to_json(log))
