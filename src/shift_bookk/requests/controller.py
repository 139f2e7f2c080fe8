from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_context, json_body, required
from ..common.serialization import to_json
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    workflow = container.approval_workflow

    def _parse_date(value, field: str):
        try:
            return parse_iso_date(str(value))
        except ValueError:
            raise ValidationError(f"'{field}' must be YYYY-MM-DD")

    def _manager_note() -> str:
        data = request.get_json(silent=True) or {}
        return str(data.get("manager_note") or "")

    @app.route("/api/time-off", methods=["POST"], endpoint="create_time_off")
    def create_time_off():
        ctx = current_context()
        data = json_body()
        req = workflow.create_time_off(
            ctx,
            start_date=_parse_date(required(data, "start_date"), "start_date"),
            end_date=_parse_date(required(data, "end_date"), "end_date"),
            reason=str(data.get("reason") or ""),
            employee_id=data.get("employee_id"),
        )
        return jsonify(to_json(req)), 201

    @app.route("/api/time-off/<request_id>/approve", methods=["POST"], endpoint="approve_time_off")
    def approve_time_off(request_id: str):
        req = workflow.approve_time_off(current_context(), request_id, manager_note=_manager_note())
        return jsonify(to_json(req))

    @app.route("/api/time-off/<request_id>/reject", methods=["POST"], endpoint="reject_time_off")
    def reject_time_off(request_id: str):
        req = workflow.reject_time_off(current_context(), request_id, manager_note=_manager_note())
        return jsonify(to_json(req))

    @app.route("/api/swaps", methods=["POST"], endpoint="create_swap")
    def create_swap():
        ctx = current_context()
        data = json_body()
        swap = workflow.create_swap(
            ctx,
            original_shift_id=str(required(data, "original_shift_id")),
            new_employee_id=str(required(data, "new_employee_id")),
        )
        return jsonify(to_json(swap)), 201

    @app.route("/api/swaps/<swap_id>/approve", methods=["POST"], endpoint="approve_swap")
    def approve_swap(swap_id: str):
        swap = workflow.approve_swap(current_context(), swap_id, manager_note=_manager_note())
        return jsonify(to_json(swap))

    @app.route("/api/swaps/<swap_id>/reject", methods=["POST"], endpoint="reject_swap")
    def reject_swap(swap_id: str):
        swap = workflow.reject_swap(current_context(), swap_id, manager_note=_manager_note())
        return jsonify(to_json(swap))

    @app.route("/api/requests/mine", methods=["GET"], endpoint="my_requests")
    def my_requests():
        data = workflow.list_for_employee(current_context(), employee_id=request.args.get("employee_id"))
        return jsonify(to_json(data))

    @app.route("/api/requests/pending", methods=["GET"], endpoint="pending_requests")
    def pending_requests():
        return jsonify(to_json(workflow.list_pending(current_context())))
