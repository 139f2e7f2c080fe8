from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..common.datetime_utils import format_hours, start_of_day
from ..common.validators import require_date_range
from ..core.context import RequestContext
from ..core.enums import ShiftStatus
from ..shifts.repository import ShiftRepository

COUNTED_STATUSES = frozenset(
    {ShiftStatus.APPROVED, ShiftStatus.SCHEDULED, ShiftStatus.IN_PROGRESS, ShiftStatus.COMPLETED}
)


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class HoursReportService:
    """Scheduled hours per employee over a date range.

    Shifts crossing the range boundary only count the part inside it.
    """

    def __init__(self, shifts: ShiftRepository):
        self._shifts = shifts

    def build_hours_report(
        self,
        ctx: RequestContext,
        *,
        start: date,
        end: date,
        employee_id: Optional[str] = None,
    ) -> ReportData:
        require_date_range(start, end)
        if employee_id is None:
            ctx.require_manager()
        else:
            ctx.require_self_or_manager(employee_id)

        range_start, range_end = start_of_day(start), start_of_day(end + timedelta(days=1))
        shifts = self._shifts.list_range(start=range_start, end=range_end, employee_id=employee_id)

        rows: list[dict] = []
        totals: dict[str, int] = {}
        for s in shifts:
            if s.status not in COUNTED_STATUSES:
                continue
            clipped_start = max(s.start_time, range_start)
            clipped_end = min(s.end_time, range_end)
            minutes = max(int((clipped_end - clipped_start).total_seconds() // 60), 0)

            rows.append(
                {
                    "shift_id": s.shift_id,
                    "employee_id": s.employee_id,
                    "title": s.title,
                    "date": s.start_time.strftime("%Y-%m-%d"),
                    "start": s.start_time.strftime("%H:%M"),
                    "end": s.end_time.strftime("%H:%M"),
                    "status": s.status.value,
                    "hours": format_hours(minutes),
                }
            )
            totals[s.employee_id] = totals.get(s.employee_id, 0) + minutes

        summary = [
            {"employee_id": emp, "total_minutes": minutes, "total_hours": format_hours(minutes)}
            for emp, minutes in totals.items()
        ]
        summary.sort(key=lambda x: x["total_minutes"], reverse=True)
        return ReportData(rows=rows, summary=summary)
