from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ShiftStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_utc, db_cursor, dump_json, fetchall, fetchone, load_json, to_db_datetime
from .model import Recurrence, Shift
from .repository import ShiftRepository

_COLUMNS = "shift_id, title, employee_id, start_time, end_time, status, recurrence, notes, location, created_at, updated_at"


def row_to_shift(r: dict) -> Shift:
    return Shift(
        shift_id=r["shift_id"],
        title=r["title"],
        employee_id=r["employee_id"],
        start_time=as_utc(r["start_time"]),
        end_time=as_utc(r["end_time"]),
        status=ShiftStatus.parse(r["status"]),
        recurrence=Recurrence.from_dict(load_json(r.get("recurrence"))),
        notes=r.get("notes"),
        location=r.get("location"),
        created_at=as_utc(r["created_at"]),
        updated_at=as_utc(r["updated_at"]),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, shift: Shift) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO shifts({_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    shift.shift_id,
                    shift.title,
                    shift.employee_id,
                    to_db_datetime(shift.start_time),
                    to_db_datetime(shift.end_time),
                    shift.status.value,
                    dump_json(shift.recurrence.to_dict() if shift.recurrence else None),
                    shift.notes,
                    shift.location,
                    to_db_datetime(shift.created_at),
                    to_db_datetime(shift.updated_at),
                ),
            )

    def get_by_id(self, shift_id: str) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE shift_id=%s", (shift_id,))
            r = fetchone(cur)
            return row_to_shift(r) if r else None

    def list_by_employee(
        self,
        employee_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Shift]:
        clauses = ["employee_id=%s"]
        params: list[object] = [str(employee_id)]
        if start is not None:
            clauses.append("end_time > %s")
            params.append(to_db_datetime(start))
        if end is not None:
            clauses.append("start_time < %s")
            params.append(to_db_datetime(end))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE {where} ORDER BY start_time ASC", tuple(params))
            return [row_to_shift(r) for r in fetchall(cur)]

    def list_range(self, *, start: datetime, end: datetime, employee_id: Optional[str] = None) -> Sequence[Shift]:
        clauses = ["start_time < %s", "end_time > %s"]
        params: list[object] = [to_db_datetime(end), to_db_datetime(start)]
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(str(employee_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM shifts WHERE {where} ORDER BY employee_id ASC, start_time ASC",
                tuple(params),
            )
            return [row_to_shift(r) for r in fetchall(cur)]

    def update_status(
        self,
        shift_id: str,
        *,
        expected: ShiftStatus,
        status: ShiftStatus,
        updated_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE shifts SET status=%s, updated_at=%s WHERE shift_id=%s AND status=%s",
                (status.value, to_db_datetime(updated_at), shift_id, expected.value),
            )
            return cur.rowcount > 0

    def delete(self, shift_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shifts WHERE shift_id=%s", (shift_id,))
            return cur.rowcount > 0
