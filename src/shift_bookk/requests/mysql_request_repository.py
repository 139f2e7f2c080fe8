from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_utc, db_cursor, fetchall, fetchone, to_db_datetime
from .model import ShiftSwap, TimeOffRequest
from .repository import RequestRepository

_TIME_OFF_COLUMNS = (
    "request_id, employee_id, start_date, end_date, reason, status, "
    "decided_by, decided_at, manager_note, created_at, updated_at"
)
_SWAP_COLUMNS = (
    "swap_id, original_shift_id, original_employee_id, new_employee_id, status, "
    "decided_by, decided_at, manager_note, created_at, updated_at"
)


def _row_to_time_off(r: dict) -> TimeOffRequest:
    return TimeOffRequest(
        request_id=r["request_id"],
        employee_id=r["employee_id"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        decided_by=r.get("decided_by"),
        decided_at=as_utc(r.get("decided_at")),
        manager_note=r.get("manager_note"),
        created_at=as_utc(r["created_at"]),
        updated_at=as_utc(r["updated_at"]),
    )


def _row_to_swap(r: dict) -> ShiftSwap:
    return ShiftSwap(
        swap_id=r["swap_id"],
        original_shift_id=r["original_shift_id"],
        original_employee_id=r["original_employee_id"],
        new_employee_id=r["new_employee_id"],
        status=RequestStatus(r["status"]),
        decided_by=r.get("decided_by"),
        decided_at=as_utc(r.get("decided_at")),
        manager_note=r.get("manager_note"),
        created_at=as_utc(r["created_at"]),
        updated_at=as_utc(r["updated_at"]),
    )


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Time-off requests --------
    def create_time_off(self, request: TimeOffRequest) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_off_requests(
                    request_id, employee_id, start_date, end_date, reason, status, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    request.request_id,
                    request.employee_id,
                    request.start_date,
                    request.end_date,
                    request.reason,
                    request.status.value,
                    to_db_datetime(request.created_at),
                    to_db_datetime(request.updated_at),
                ),
            )

    def get_time_off(self, request_id: str) -> Optional[TimeOffRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TIME_OFF_COLUMNS} FROM time_off_requests WHERE request_id=%s", (request_id,))
            r = fetchone(cur)
            return _row_to_time_off(r) if r else None

    def list_time_off(
        self,
        *,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[TimeOffRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(str(employee_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TIME_OFF_COLUMNS}
                FROM time_off_requests
                WHERE {where}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_time_off(r) for r in fetchall(cur)]

    def decide_time_off(
        self,
        request_id: str,
        *,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
        manager_note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_off_requests
                SET status=%s, decided_by=%s, decided_at=%s, manager_note=%s, updated_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    str(decided_by),
                    to_db_datetime(decided_at),
                    manager_note,
                    to_db_datetime(decided_at),
                    request_id,
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    # -------- Shift swaps --------
    def create_swap(self, swap: ShiftSwap) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_swaps(
                    swap_id, original_shift_id, original_employee_id, new_employee_id, status, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    swap.swap_id,
                    swap.original_shift_id,
                    swap.original_employee_id,
                    swap.new_employee_id,
                    swap.status.value,
                    to_db_datetime(swap.created_at),
                    to_db_datetime(swap.updated_at),
                ),
            )

    def get_swap(self, swap_id: str) -> Optional[ShiftSwap]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SWAP_COLUMNS} FROM shift_swaps WHERE swap_id=%s", (swap_id,))
            r = fetchone(cur)
            return _row_to_swap(r) if r else None

    def list_swaps(
        self,
        *,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[ShiftSwap]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if employee_id is not None:
            clauses.append("(original_employee_id=%s OR new_employee_id=%s)")
            params.extend([str(employee_id), str(employee_id)])

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SWAP_COLUMNS}
                FROM shift_swaps
                WHERE {where}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_swap(r) for r in fetchall(cur)]

    def has_pending_swap(self, shift_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM shift_swaps WHERE original_shift_id=%s AND status=%s LIMIT 1",
                (shift_id, RequestStatus.PENDING.value),
            )
            return fetchone(cur) is not None

    def decide_swap(
        self,
        swap_id: str,
        *,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
        manager_note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_swaps
                SET status=%s, decided_by=%s, decided_at=%s, manager_note=%s, updated_at=%s
                WHERE swap_id=%s AND status=%s
                """,
                (
                    status.value,
                    str(decided_by),
                    to_db_datetime(decided_at),
                    manager_note,
                    to_db_datetime(decided_at),
                    swap_id,
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def approve_swap(
        self,
        swap_id: str,
        *,
        shift_id: str,
        from_employee_id: str,
        to_employee_id: str,
        decided_by: str,
        decided_at: datetime,
        manager_note: Optional[str] = None,
    ) -> None:
        # Both updates share one connection; raising inside db_cursor rolls back.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_swaps
                SET status=%s, decided_by=%s, decided_at=%s, manager_note=%s, updated_at=%s
                WHERE swap_id=%s AND status=%s
                """,
                (
                    RequestStatus.APPROVED.value,
                    str(decided_by),
                    to_db_datetime(decided_at),
                    manager_note,
                    to_db_datetime(decided_at),
                    swap_id,
                    RequestStatus.PENDING.value,
                ),
            )
            if cur.rowcount != 1:
                raise ConflictError("Swap is no longer pending")

            cur.execute(
                """
                UPDATE shifts
                SET employee_id=%s, updated_at=%s
                WHERE shift_id=%s AND employee_id=%s
                """,
                (str(to_employee_id), to_db_datetime(decided_at), shift_id, str(from_employee_id)),
            )
            if cur.rowcount != 1:
                raise ConflictError("Shift no longer belongs to the original employee")
