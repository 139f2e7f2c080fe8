from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Sequence

from ..core.enums import NotificationType, Role


@dataclass(frozen=True)
class Notification:
    notification_id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    created_at: datetime
    updated_at: datetime
    read: bool = False


class AudienceKind(str, Enum):
    USERS = "users"
    ROLE = "role"
    DEPARTMENT = "department"
    ALL = "all"


@dataclass(frozen=True)
class Audience:
    """Who an event is addressed to. Resolved to user ids at send time."""

    kind: AudienceKind
    user_ids: tuple[str, ...] = ()
    role: Optional[Role] = None
    department: Optional[str] = None

    @classmethod
    def users(cls, user_ids: Sequence[str]) -> "Audience":
        return cls(kind=AudienceKind.USERS, user_ids=tuple(str(u) for u in user_ids))

    @classmethod
    def for_role(cls, role: Role) -> "Audience":
        return cls(kind=AudienceKind.ROLE, role=role)

    @classmethod
    def for_department(cls, department: str) -> "Audience":
        return cls(kind=AudienceKind.DEPARTMENT, department=department)

    @classmethod
    def everyone(cls) -> "Audience":
        return cls(kind=AudienceKind.ALL)


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    tag: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FanoutResult:
    notifications: list[Notification]
    failed: list[str]
    delivered: list[str]

    @property
    def recipient_ids(self) -> list[str]:
        return [n.user_id for n in self.notifications]


def notification_channel(user_id: str) -> tuple[str, str]:
    return ("notifications", str(user_id))
