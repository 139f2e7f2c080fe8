from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import RequestStatus


@dataclass(frozen=True)
class TimeOffRequest:
    request_id: str
    employee_id: str
    start_date: date
    end_date: date
    reason: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None
    manager_note: Optional[str] = None

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class ShiftSwap:
    swap_id: str
    original_shift_id: str
    original_employee_id: str
    new_employee_id: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None
    manager_note: Optional[str] = None
