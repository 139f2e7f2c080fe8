from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_utc, db_cursor, fetchall, fetchone, to_db_datetime
from .model import Notification
from .repository import NotificationRepository

_COLUMNS = "notification_id, user_id, title, message, type, is_read, created_at, updated_at"


def _row_to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=r["notification_id"],
        user_id=r["user_id"],
        title=r["title"],
        message=r["message"],
        type=NotificationType(r["type"]),
        read=bool(r["is_read"]),
        created_at=as_utc(r["created_at"]),
        updated_at=as_utc(r["updated_at"]),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, notification: Notification) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO notifications({_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    notification.notification_id,
                    notification.user_id,
                    notification.title,
                    notification.message,
                    notification.type.value,
                    int(notification.read),
                    to_db_datetime(notification.created_at),
                    to_db_datetime(notification.updated_at),
                ),
            )

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM notifications WHERE notification_id=%s", (notification_id,))
            r = fetchone(cur)
            return _row_to_notification(r) if r else None

    def list_for_user(self, user_id: str, *, unread_only: bool = False, limit: int = 200) -> Sequence[Notification]:
        unread_clause = "AND is_read=0" if unread_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM notifications
                WHERE user_id=%s {unread_clause}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (str(user_id), int(limit)),
            )
            return [_row_to_notification(r) for r in fetchall(cur)]

    def count_unread(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM notifications WHERE user_id=%s AND is_read=0", (str(user_id),))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def mark_read(self, notification_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, updated_at=%s WHERE notification_id=%s AND is_read=0",
                (to_db_datetime(now_utc()), notification_id),
            )
            return cur.rowcount > 0

    def mark_all_read(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, updated_at=%s WHERE user_id=%s AND is_read=0",
                (to_db_datetime(now_utc()), str(user_id)),
            )
            return int(cur.rowcount)

    def delete(self, notification_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM notifications WHERE notification_id=%s", (notification_id,))
            return cur.rowcount > 0
