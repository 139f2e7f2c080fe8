from __future__ import annotations

from datetime import date, timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_context
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reports/hours", methods=["GET"], endpoint="hours_report")
    def hours_report():
        ctx = current_context()
        today = date.today()
        try:
            start = parse_iso_date(request.args.get("start") or (today - timedelta(days=6)).strftime("%Y-%m-%d"))
            end = parse_iso_date(request.args.get("end") or today.strftime("%Y-%m-%d"))
        except ValueError:
            raise ValidationError("Dates must be YYYY-MM-DD")

        report = container.hours_report_service.build_hours_report(
            ctx,
            start=start,
            end=end,
            employee_id=request.args.get("employee_id") or None,
        )
        return jsonify({"rows": report.rows, "summary": report.summary})
