from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role claim supplied by the identity provider."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @property
    def can_approve(self) -> bool:
        return self in {Role.ADMIN, Role.MANAGER}


class ShiftStatus(str, Enum):
    """Lifecycle status of a shift."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: str) -> "ShiftStatus":
        # Older dashboard builds wrote camelCase "inProgress".
        v = (value or "").strip()
        if v == "inProgress":
            return cls.IN_PROGRESS
        return cls(v)


class RequestStatus(str, Enum):
    """Approval state of time-off and swap requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TimeLogStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
