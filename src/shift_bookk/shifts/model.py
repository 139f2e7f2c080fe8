from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.constants import MAX_RECURRENCE_OCCURRENCES
from ..core.enums import RecurrenceFrequency, ShiftStatus
from ..core.exceptions import ValidationError

# Terminal statuses (rejected, completed, cancelled) have no entry.
SHIFT_TRANSITIONS: dict[ShiftStatus, frozenset[ShiftStatus]] = {
    ShiftStatus.PENDING: frozenset({ShiftStatus.APPROVED, ShiftStatus.REJECTED, ShiftStatus.CANCELLED}),
    ShiftStatus.APPROVED: frozenset({ShiftStatus.SCHEDULED, ShiftStatus.IN_PROGRESS, ShiftStatus.CANCELLED}),
    ShiftStatus.SCHEDULED: frozenset({ShiftStatus.IN_PROGRESS, ShiftStatus.CANCELLED}),
    ShiftStatus.IN_PROGRESS: frozenset({ShiftStatus.COMPLETED}),
}

INITIAL_STATUSES = frozenset({ShiftStatus.PENDING, ShiftStatus.APPROVED, ShiftStatus.SCHEDULED})

# Statuses that still occupy the employee's time.
ACTIVE_STATUSES = frozenset(
    {
        ShiftStatus.PENDING,
        ShiftStatus.APPROVED,
        ShiftStatus.SCHEDULED,
        ShiftStatus.IN_PROGRESS,
        ShiftStatus.COMPLETED,
    }
)


def can_transition(current: ShiftStatus, target: ShiftStatus) -> bool:
    return target in SHIFT_TRANSITIONS.get(current, frozenset())


def is_terminal(status: ShiftStatus) -> bool:
    return status not in SHIFT_TRANSITIONS


def _add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class Recurrence:
    frequency: RecurrenceFrequency
    interval: int = 1
    end_date: Optional[date] = None

    def validate(self, *, first_start: datetime) -> None:
        if int(self.interval) < 1:
            raise ValidationError("Recurrence interval must be at least 1")
        if self.end_date is not None and self.end_date < first_start.date():
            raise ValidationError("Recurrence end date is before the first shift")

    def step(self, value: datetime, n: int) -> datetime:
        if self.frequency == RecurrenceFrequency.DAILY:
            return value + timedelta(days=n * self.interval)
        if self.frequency == RecurrenceFrequency.WEEKLY:
            return value + timedelta(weeks=n * self.interval)
        return _add_months(value, n * self.interval)

    def to_dict(self) -> dict:
        return {
            "frequency": self.frequency.value,
            "interval": int(self.interval),
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Recurrence"]:
        if not data:
            return None
        if not isinstance(data, dict):
            raise ValidationError("Recurrence must be an object")
        end = data.get("end_date") or data.get("endDate")
        if end is not None and not isinstance(end, (str, date)):
            raise ValidationError("Recurrence end date must be an ISO date")
        try:
            return cls(
                frequency=RecurrenceFrequency(data["frequency"]),
                interval=int(data.get("interval", 1)),
                end_date=date.fromisoformat(end) if isinstance(end, str) else end,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid recurrence: {e}")


@dataclass(frozen=True)
class Shift:
    shift_id: str
    title: str
    employee_id: str
    start_time: datetime
    end_time: datetime
    status: ShiftStatus
    created_at: datetime
    updated_at: datetime
    recurrence: Optional[Recurrence] = None
    notes: Optional[str] = None
    location: Optional[str] = None

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start_time < end and start < self.end_time

    def occurrences(self, until: date) -> list[tuple[datetime, datetime]]:
        """Start/end pairs of this shift and its repeats up to ``until`` (inclusive)."""
        if self.recurrence is None:
            return [(self.start_time, self.end_time)] if self.start_time.date() <= until else []

        last = until
        if self.recurrence.end_date is not None and self.recurrence.end_date < last:
            last = self.recurrence.end_date

        length = self.end_time - self.start_time
        out: list[tuple[datetime, datetime]] = []
        for n in range(MAX_RECURRENCE_OCCURRENCES):
            start = self.recurrence.step(self.start_time, n)
            if start.date() > last:
                break
            out.append((start, start + length))
        return out
