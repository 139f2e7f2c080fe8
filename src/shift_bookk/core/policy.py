from __future__ import annotations

from dataclasses import dataclass

from .constants import DEFAULT_MAX_SHIFT_HOURS, DEFAULT_MAX_TIME_OFF_DAYS, DEFAULT_MIN_SHIFT_HOURS


@dataclass(frozen=True)
class SchedulingPolicy:
    """Organization-wide scheduling rules, loaded from settings."""

    min_shift_hours: float = DEFAULT_MIN_SHIFT_HOURS
    max_shift_hours: float = DEFAULT_MAX_SHIFT_HOURS
    allow_shift_overlap: bool = False
    max_time_off_days: int = DEFAULT_MAX_TIME_OFF_DAYS

    @classmethod
    def from_settings(cls, settings) -> "SchedulingPolicy":
        return cls(
            min_shift_hours=float(getattr(settings, "MIN_SHIFT_HOURS", DEFAULT_MIN_SHIFT_HOURS)),
            max_shift_hours=float(getattr(settings, "MAX_SHIFT_HOURS", DEFAULT_MAX_SHIFT_HOURS)),
            allow_shift_overlap=bool(getattr(settings, "ALLOW_SHIFT_OVERLAP", False)),
            max_time_off_days=int(getattr(settings, "MAX_TIME_OFF_DAYS", DEFAULT_MAX_TIME_OFF_DAYS)),
        )
