from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import TimeLogStatus


def timelog_channel(employee_id: str) -> tuple[str, str]:
    return ("timelogs", str(employee_id))


@dataclass(frozen=True)
class TimeLog:
    """One clock-in/clock-out pair. ``clock_out`` stays empty while the employee is on the clock."""

    log_id: str
    employee_id: str
    clock_in: datetime
    status: TimeLogStatus
    created_at: datetime
    updated_at: datetime
    clock_out: Optional[datetime] = None
    shift_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == TimeLogStatus.IN_PROGRESS
