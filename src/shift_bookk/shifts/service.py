from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.datetime_utils import now_utc, to_utc
from ..common.validators import require_non_empty, require_time_range
from ..core.context import RequestContext
from ..core.enums import NotificationType, Role, ShiftStatus
from ..core.exceptions import ConflictError, InvalidTransition, NotFoundError, Unauthorized, ValidationError
from ..core.policy import SchedulingPolicy
from ..notifications.model import Audience
from ..notifications.service import NotificationFanout
from ..realtime.feed import ChangeFeed
from .model import ACTIVE_STATUSES, INITIAL_STATUSES, Recurrence, Shift, can_transition
from .repository import ShiftRepository

logger = logging.getLogger(__name__)

# What an employee may do to their own shift without a manager.
EMPLOYEE_TARGETS = frozenset({ShiftStatus.IN_PROGRESS, ShiftStatus.COMPLETED, ShiftStatus.CANCELLED})

_STATUS_NOTIFICATION_TYPE = {
    ShiftStatus.APPROVED: NotificationType.SUCCESS,
    ShiftStatus.COMPLETED: NotificationType.SUCCESS,
    ShiftStatus.REJECTED: NotificationType.WARNING,
    ShiftStatus.CANCELLED: NotificationType.WARNING,
}


class SwapLookup(Protocol):
    def has_pending_swap(self, shift_id: str) -> bool:
        raise NotImplementedError


def shift_channel(employee_id: str) -> tuple[str, str]:
    return ("shifts", str(employee_id))


class ShiftStore:
    """Owns shift records and their status transitions."""

    def __init__(
        self,
        shifts: ShiftRepository,
        fanout: Optional[NotificationFanout] = None,
        *,
        swaps: Optional[SwapLookup] = None,
        policy: Optional[SchedulingPolicy] = None,
        feed: Optional[ChangeFeed] = None,
    ):
        self._shifts = shifts
        self._fanout = fanout
        self._swaps = swaps
        self._policy = policy or SchedulingPolicy()
        self._feed = feed or ChangeFeed()

    def get_shift(self, shift_id: str) -> Shift:
        shift = self._shifts.get_by_id(str(shift_id))
        if not shift:
            raise NotFoundError("Shift not found")
        return shift

    def list_by_employee(
        self,
        employee_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Shift]:
        return self._shifts.list_by_employee(
            str(employee_id),
            start=to_utc(start) if start else None,
            end=to_utc(end) if end else None,
        )

    def _check_policy(self, shift: Shift) -> None:
        hours = shift.duration_hours
        if hours < self._policy.min_shift_hours:
            raise ValidationError(f"Shift must be at least {self._policy.min_shift_hours:g} hours")
        if hours > self._policy.max_shift_hours:
            raise ValidationError(f"Shift cannot exceed {self._policy.max_shift_hours:g} hours")

        if self._policy.allow_shift_overlap:
            return
        for other in self._shifts.list_by_employee(shift.employee_id, start=shift.start_time, end=shift.end_time):
            if other.status in ACTIVE_STATUSES and other.overlaps(shift.start_time, shift.end_time):
                raise ValidationError(f"Shift overlaps with '{other.title}'")

    def create_shift(
        self,
        ctx: RequestContext,
        *,
        title: str,
        employee_id: str,
        start_time: datetime,
        end_time: datetime,
        status: ShiftStatus = ShiftStatus.PENDING,
        recurrence: Optional[Recurrence] = None,
        notes: Optional[str] = None,
        location: Optional[str] = None,
        shift_id: Optional[str] = None,
    ) -> Shift:
        title = require_non_empty(title, "Title")
        employee_id = require_non_empty(str(employee_id or ""), "Employee")
        start_time, end_time = to_utc(start_time), to_utc(end_time)
        require_time_range(start_time, end_time)

        if status not in INITIAL_STATUSES:
            raise ValidationError(f"A shift cannot start as '{status.value}'")
        if not ctx.is_manager:
            ctx.require_self_or_manager(employee_id, "Employees can only create their own shifts")
            if status != ShiftStatus.PENDING:
                raise Unauthorized("Employee shifts start pending approval")
        if recurrence is not None:
            recurrence.validate(first_start=start_time)

        notes = (notes or "").strip() or None
        location = (location or "").strip() or None

        if shift_id:
            existing = self._shifts.get_by_id(str(shift_id))
            if existing:
                same = (
                    existing.title == title
                    and existing.employee_id == employee_id
                    and existing.start_time == start_time
                    and existing.end_time == end_time
                    and existing.recurrence == recurrence
                    and existing.notes == notes
                    and existing.location == location
                )
                if not same:
                    raise ConflictError("A different shift already uses this id")
                return existing

        ts = now_utc()
        shift = Shift(
            shift_id=str(shift_id) if shift_id else uuid.uuid4().hex,
            title=title,
            employee_id=employee_id,
            start_time=start_time,
            end_time=end_time,
            status=status,
            recurrence=recurrence,
            notes=notes,
            location=location,
            created_at=ts,
            updated_at=ts,
        )
        self._check_policy(shift)
        self._shifts.create(shift)
        logger.info("Shift %s created for %s by %s", shift.shift_id, employee_id, ctx.user_id)
        self._feed.publish(shift_channel(employee_id), shift)

        if self._fanout:
            when = start_time.strftime("%Y-%m-%d %H:%M")
            if ctx.user_id != employee_id:
                self._fanout.notify_user(
                    employee_id,
                    title="New shift assigned",
                    message=f"You have been assigned '{title}' starting {when} UTC.",
                )
            elif status == ShiftStatus.PENDING:
                self._fanout.fan_out(
                    Audience.for_role(Role.MANAGER),
                    title="Shift awaiting approval",
                    message=f"'{title}' starting {when} UTC needs approval.",
                )
        return shift

    def update_status(self, ctx: RequestContext, shift_id: str, new_status: ShiftStatus | str) -> Shift:
        target = new_status if isinstance(new_status, ShiftStatus) else ShiftStatus.parse(new_status)
        shift = self.get_shift(shift_id)

        if not ctx.is_manager:
            ctx.require_self_or_manager(shift.employee_id, "Not your shift")
            if target not in EMPLOYEE_TARGETS:
                raise Unauthorized(f"Only a manager can mark a shift '{target.value}'")

        if shift.status == target:
            return shift
        if not can_transition(shift.status, target):
            raise InvalidTransition(f"Cannot move shift from '{shift.status.value}' to '{target.value}'")

        ts = now_utc()
        if not self._shifts.update_status(shift.shift_id, expected=shift.status, status=target, updated_at=ts):
            current = self.get_shift(shift.shift_id)
            if current.status == target:
                return current
            raise ConflictError("Shift was changed by another request")

        updated = replace(shift, status=target, updated_at=ts)
        logger.info("Shift %s %s -> %s by %s", shift.shift_id, shift.status.value, target.value, ctx.user_id)
        self._feed.publish(shift_channel(shift.employee_id), updated)

        if self._fanout:
            self._fanout.notify_user(
                shift.employee_id,
                title=f"Shift {target.value}",
                message=f"Your shift '{shift.title}' on {shift.start_time:%Y-%m-%d} is now {target.value}.",
                type=_STATUS_NOTIFICATION_TYPE.get(target, NotificationType.INFO),
            )
        return updated

    def delete_shift(self, ctx: RequestContext, shift_id: str) -> None:
        ctx.require_manager("Only a manager can delete shifts")
        shift = self.get_shift(shift_id)
        if self._swaps and self._swaps.has_pending_swap(shift.shift_id):
            raise ConflictError("Shift is referenced by a pending swap")
        if not self._shifts.delete(shift.shift_id):
            raise NotFoundError("Shift not found")
        self._feed.publish(shift_channel(shift.employee_id))

    def occurrences(self, shift_id: str, *, until: date) -> list[tuple[datetime, datetime]]:
        return self.get_shift(shift_id).occurrences(until)
