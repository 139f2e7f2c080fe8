from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc, to_utc
from ..common.validators import require_time_range
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.context import RequestContext
from ..core.enums import TimeLogStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..realtime.feed import ChangeFeed
from ..shifts.model import is_terminal
from ..shifts.repository import ShiftRepository
from .model import TimeLog, timelog_channel
from .repository import TimeLogRepository

logger = logging.getLogger(__name__)


def _resolve_status(clock_out: Optional[datetime], status: Optional[TimeLogStatus]) -> TimeLogStatus:
    if status is None:
        return TimeLogStatus.COMPLETED if clock_out else TimeLogStatus.IN_PROGRESS
    if status == TimeLogStatus.COMPLETED and clock_out is None:
        raise ValidationError("A completed time log needs a clock-out time")
    if status == TimeLogStatus.IN_PROGRESS and clock_out is not None:
        raise ValidationError("An in-progress time log cannot have a clock-out time")
    return status


class TimeLogService:
    """Clock-in/clock-out records per employee.

    An employee has at most one in-progress log at a time. Employees manage
    their own logs; managers can see and correct anyone's.
    """

    def __init__(
        self,
        timelogs: TimeLogRepository,
        shifts: ShiftRepository,
        feed: Optional[ChangeFeed] = None,
    ):
        self._timelogs = timelogs
        self._shifts = shifts
        self._feed = feed or ChangeFeed()

    def list_for_employee(self, ctx: RequestContext, *, employee_id: Optional[str] = None) -> Sequence[TimeLog]:
        employee_id = str(employee_id or ctx.user_id)
        ctx.require_self_or_manager(employee_id)
        return self._timelogs.list_by_employee(employee_id, limit=DEFAULT_LIST_LIMIT)

    def get_log(self, ctx: RequestContext, log_id: str) -> TimeLog:
        log = self._timelogs.get_by_id(str(log_id))
        if not log:
            raise NotFoundError("Time log not found")
        ctx.require_self_or_manager(log.employee_id, "Not your time log")
        return log

    def _check_shift(self, shift_id: Optional[str], employee_id: str) -> Optional[str]:
        if not shift_id:
            return None
        shift = self._shifts.get_by_id(str(shift_id))
        if not shift:
            raise NotFoundError("Shift not found")
        if shift.employee_id != employee_id:
            raise ValidationError("The shift belongs to another employee")
        if is_terminal(shift.status):
            raise ValidationError(f"Cannot log time against a {shift.status.value} shift")
        return shift.shift_id

    def _check_no_other_open(self, employee_id: str, log_id: Optional[str] = None) -> None:
        open_log = self._timelogs.get_open(employee_id)
        if open_log and open_log.log_id != log_id:
            raise ConflictError("Already clocked in")

    def record_log(
        self,
        ctx: RequestContext,
        *,
        clock_in: datetime,
        clock_out: Optional[datetime] = None,
        status: Optional[TimeLogStatus] = None,
        employee_id: Optional[str] = None,
        shift_id: Optional[str] = None,
    ) -> TimeLog:
        """Add a log with explicit times. ``clock_in`` uses this with the current time."""
        employee_id = str(employee_id or ctx.user_id)
        ctx.require_self_or_manager(employee_id, "Employees can only log their own time")

        clock_in = to_utc(clock_in)
        clock_out = to_utc(clock_out) if clock_out else None
        if clock_out is not None:
            require_time_range(clock_in, clock_out)
        status = _resolve_status(clock_out, status)
        shift_id = self._check_shift(shift_id, employee_id)
        if status == TimeLogStatus.IN_PROGRESS:
            self._check_no_other_open(employee_id)

        ts = now_utc()
        log = TimeLog(
            log_id=uuid.uuid4().hex,
            employee_id=employee_id,
            clock_in=clock_in,
            clock_out=clock_out,
            status=status,
            shift_id=shift_id,
            created_at=ts,
            updated_at=ts,
        )
        self._timelogs.create(log)
        logger.info("Time log %s (%s) created for %s by %s", log.log_id, status.value, employee_id, ctx.user_id)
        self._feed.publish(timelog_channel(employee_id), log)
        return log

    def clock_in(self, ctx: RequestContext, *, shift_id: Optional[str] = None) -> TimeLog:
        return self.record_log(ctx, clock_in=now_utc(), shift_id=shift_id)

    def clock_out(self, ctx: RequestContext) -> TimeLog:
        open_log = self._timelogs.get_open(ctx.user_id)
        if not open_log:
            raise ConflictError("Not clocked in")

        ts = now_utc()
        if ts <= open_log.clock_in:
            raise ValidationError("Clock-out must be after clock-in")
        if not self._timelogs.close(open_log.log_id, clock_out=ts, updated_at=ts):
            raise ConflictError("Time log was changed by another request")

        closed = replace(open_log, clock_out=ts, status=TimeLogStatus.COMPLETED, updated_at=ts)
        logger.info("Time log %s closed by %s", closed.log_id, ctx.user_id)
        self._feed.publish(timelog_channel(closed.employee_id), closed)
        return closed

    def update_log(
        self,
        ctx: RequestContext,
        log_id: str,
        *,
        clock_in: datetime,
        clock_out: Optional[datetime] = None,
        status: Optional[TimeLogStatus] = None,
    ) -> TimeLog:
        """Replace the times and status of a log, as the edit dialog sends them."""
        log = self.get_log(ctx, log_id)

        clock_in = to_utc(clock_in)
        clock_out = to_utc(clock_out) if clock_out else None
        if clock_out is not None:
            require_time_range(clock_in, clock_out)
        status = _resolve_status(clock_out, status)
        if status == TimeLogStatus.IN_PROGRESS:
            self._check_no_other_open(log.employee_id, log.log_id)

        updated = replace(log, clock_in=clock_in, clock_out=clock_out, status=status, updated_at=now_utc())
        if not self._timelogs.update(updated):
            raise NotFoundError("Time log not found")
        logger.info("Time log %s edited by %s", log.log_id, ctx.user_id)
        self._feed.publish(timelog_channel(log.employee_id), updated)
        return updated

    def subscribe(self, employee_id: str, callback: Callable[[Sequence[TimeLog]], None]) -> Callable[[], None]:
        """Realtime listener: ``callback`` gets the employee's logs now and after every change."""

        def on_change(_payload) -> None:
            callback(self._timelogs.list_by_employee(employee_id, limit=DEFAULT_LIST_LIMIT))

        unsubscribe = self._feed.subscribe(timelog_channel(employee_id), on_change)
        on_change(None)
        return unsubscribe
