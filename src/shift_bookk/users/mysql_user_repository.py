from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import UserProfile
from .repository import UserDirectory


class MySQLUserDirectory(UserDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, email, display_name, role, department, status, push_token
                FROM users
                WHERE user_id=%s
                """,
                (str(user_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return UserProfile(
                user_id=row["user_id"],
                email=row["email"],
                role=Role(row["role"]),
                display_name=row.get("display_name"),
                department=row.get("department"),
                status=UserStatus(row.get("status") or UserStatus.ACTIVE.value),
                push_token=row.get("push_token"),
            )

    def list_ids(
        self,
        *,
        role: Optional[Role] = None,
        department: Optional[str] = None,
        active_only: bool = True,
    ) -> Sequence[str]:
        clauses = ["1=1"]
        params: list[object] = []

        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)
        if department is not None:
            clauses.append("department=%s")
            params.append(department)
        if active_only:
            clauses.append("status=%s")
            params.append(UserStatus.ACTIVE.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT user_id FROM users WHERE {where} ORDER BY user_id", tuple(params))
            return [r["user_id"] for r in fetchall(cur)]

    def set_push_token(self, user_id: str, *, push_token: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET push_token=%s WHERE user_id=%s", (push_token, str(user_id)))
            return cur.rowcount > 0
