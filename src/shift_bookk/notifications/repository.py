from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def create(self, notification: Notification) -> None:
        raise NotImplementedError

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        raise NotImplementedError

    def list_for_user(self, user_id: str, *, unread_only: bool = False, limit: int = 200) -> Sequence[Notification]:
        """Newest first."""

        raise NotImplementedError

    def count_unread(self, user_id: str) -> int:
        raise NotImplementedError

    def mark_read(self, notification_id: str) -> bool:
        raise NotImplementedError

    def mark_all_read(self, user_id: str) -> int:
        raise NotImplementedError

    def delete(self, notification_id: str) -> bool:
        raise NotImplementedError
