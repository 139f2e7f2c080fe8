from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import TimeLogStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_utc, db_cursor, fetchall, fetchone, to_db_datetime
from .model import TimeLog
from .repository import TimeLogRepository

_COLUMNS = "log_id, employee_id, shift_id, clock_in, clock_out, status, created_at, updated_at"


def row_to_timelog(r: dict) -> TimeLog:
    return TimeLog(
        log_id=r["log_id"],
        employee_id=r["employee_id"],
        shift_id=r.get("shift_id"),
        clock_in=as_utc(r["clock_in"]),
        clock_out=as_utc(r.get("clock_out")),
        status=TimeLogStatus(r["status"]),
        created_at=as_utc(r["created_at"]),
        updated_at=as_utc(r["updated_at"]),
    )


class MySQLTimeLogRepository(TimeLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, log: TimeLog) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO time_logs({_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s,%s,%s)",
                (
                    log.log_id,
                    log.employee_id,
                    log.shift_id,
                    to_db_datetime(log.clock_in),
                    to_db_datetime(log.clock_out),
                    log.status.value,
                    to_db_datetime(log.created_at),
                    to_db_datetime(log.updated_at),
                ),
            )

    def get_by_id(self, log_id: str) -> Optional[TimeLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM time_logs WHERE log_id=%s", (log_id,))
            r = fetchone(cur)
            return row_to_timelog(r) if r else None

    def get_open(self, employee_id: str) -> Optional[TimeLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM time_logs
                WHERE employee_id=%s AND status=%s
                ORDER BY clock_in DESC
                LIMIT 1
                """,
                (str(employee_id), TimeLogStatus.IN_PROGRESS.value),
            )
            r = fetchone(cur)
            return row_to_timelog(r) if r else None

    def list_by_employee(self, employee_id: str, *, limit: int = 200) -> Sequence[TimeLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM time_logs WHERE employee_id=%s ORDER BY clock_in DESC LIMIT %s",
                (str(employee_id), int(limit)),
            )
            return [row_to_timelog(r) for r in fetchall(cur)]

    def close(self, log_id: str, *, clock_out: datetime, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE time_logs SET clock_out=%s, status=%s, updated_at=%s WHERE log_id=%s AND status=%s",
                (
                    to_db_datetime(clock_out),
                    TimeLogStatus.COMPLETED.value,
                    to_db_datetime(updated_at),
                    log_id,
                    TimeLogStatus.IN_PROGRESS.value,
                ),
            )
            return cur.rowcount > 0

    def update(self, log: TimeLog) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_logs
                SET clock_in=%s, clock_out=%s, status=%s, updated_at=%s
                WHERE log_id=%s
                """,
                (
                    to_db_datetime(log.clock_in),
                    to_db_datetime(log.clock_out),
                    log.status.value,
                    to_db_datetime(log.updated_at),
                    log.log_id,
                ),
            )
            return cur.rowcount > 0
