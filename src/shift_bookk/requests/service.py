from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Optional

from ..common.datetime_utils import now_utc
from ..common.validators import require_date_range, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.context import RequestContext
from ..core.enums import NotificationType, RequestStatus, Role
from ..core.exceptions import ConflictError, InvalidTransition, NotFoundError, ValidationError
from ..core.policy import SchedulingPolicy
from ..notifications.model import Audience
from ..notifications.service import NotificationFanout
from ..realtime.feed import ChangeFeed
from ..shifts.model import is_terminal
from ..shifts.repository import ShiftRepository
from ..shifts.service import shift_channel
from .model import ShiftSwap, TimeOffRequest
from .repository import RequestRepository

logger = logging.getLogger(__name__)


def _note(value: str) -> Optional[str]:
    return (value or "").strip() or None


class ApprovalWorkflow:
    """pending -> approved | rejected for time-off and shift-swap requests.

    Deciding requires a manager or admin. Approving a swap reassigns the shift
    in the same transaction as the swap's status change.
    """

    def __init__(
        self,
        requests: RequestRepository,
        shifts: ShiftRepository,
        fanout: Optional[NotificationFanout] = None,
        *,
        policy: Optional[SchedulingPolicy] = None,
        feed: Optional[ChangeFeed] = None,
    ):
        self._requests = requests
        self._shifts = shifts
        self._fanout = fanout
        self._policy = policy or SchedulingPolicy()
        self._feed = feed or ChangeFeed()

    def _notify_user(self, user_id: str, title: str, message: str, type: NotificationType = NotificationType.INFO):
        if self._fanout:
            self._fanout.notify_user(user_id, title=title, message=message, type=type)

    def _notify_managers(self, title: str, message: str) -> None:
        if self._fanout:
            self._fanout.fan_out(Audience.for_role(Role.MANAGER), title=title, message=message)

    # -------- Time off --------
    def create_time_off(
        self,
        ctx: RequestContext,
        *,
        start_date: date,
        end_date: date,
        reason: str,
        employee_id: Optional[str] = None,
    ) -> TimeOffRequest:
        employee_id = str(employee_id or ctx.user_id)
        ctx.require_self_or_manager(employee_id, "Cannot request time off for another employee")

        require_date_range(start_date, end_date)
        reason = require_non_empty(reason, "Reason")

        ts = now_utc()
        request = TimeOffRequest(
            request_id=uuid.uuid4().hex,
            employee_id=employee_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=ts,
            updated_at=ts,
        )
        if request.days > self._policy.max_time_off_days:
            raise ValidationError(f"Time off cannot exceed {self._policy.max_time_off_days} days")

        self._requests.create_time_off(request)
        logger.info("Time-off %s requested by %s", request.request_id, employee_id)
        self._notify_managers(
            "Time-off request",
            f"Employee {employee_id} requested {start_date:%Y-%m-%d} to {end_date:%Y-%m-%d}.",
        )
        return request

    def _pending_time_off(self, request_id: str) -> TimeOffRequest:
        request = self._requests.get_time_off(str(request_id))
        if not request:
            raise NotFoundError("Time-off request not found")
        if request.status != RequestStatus.PENDING:
            raise InvalidTransition(f"Time-off request is already {request.status.value}")
        return request

    def _decide_time_off(
        self,
        ctx: RequestContext,
        request_id: str,
        status: RequestStatus,
        manager_note: str,
    ) -> TimeOffRequest:
        ctx.require_manager()
        request = self._pending_time_off(request_id)

        ts = now_utc()
        note = _note(manager_note)
        if not self._requests.decide_time_off(
            request.request_id,
            status=status,
            decided_by=ctx.user_id,
            decided_at=ts,
            manager_note=note,
        ):
            raise InvalidTransition("Time-off request was already decided")

        logger.info("Time-off %s %s by %s", request.request_id, status.value, ctx.user_id)
        decided = replace(
            request, status=status, updated_at=ts, decided_by=ctx.user_id, decided_at=ts, manager_note=note
        )
        self._notify_user(
            request.employee_id,
            f"Time off {status.value}",
            f"Your time off from {request.start_date:%Y-%m-%d} to {request.end_date:%Y-%m-%d} was {status.value}.",
            NotificationType.SUCCESS if status == RequestStatus.APPROVED else NotificationType.WARNING,
        )
        return decided

    def approve_time_off(self, ctx: RequestContext, request_id: str, *, manager_note: str = "") -> TimeOffRequest:
        return self._decide_time_off(ctx, request_id, RequestStatus.APPROVED, manager_note)

    def reject_time_off(self, ctx: RequestContext, request_id: str, *, manager_note: str = "") -> TimeOffRequest:
        return self._decide_time_off(ctx, request_id, RequestStatus.REJECTED, manager_note)

    # -------- Shift swaps --------
    def create_swap(self, ctx: RequestContext, *, original_shift_id: str, new_employee_id: str) -> ShiftSwap:
        new_employee_id = require_non_empty(str(new_employee_id or ""), "New employee")
        shift = self._shifts.get_by_id(str(original_shift_id))
        if not shift:
            raise NotFoundError("Shift not found")

        ctx.require_self_or_manager(shift.employee_id, "Only the assigned employee can offer this shift")
        if new_employee_id == shift.employee_id:
            raise ValidationError("Cannot swap a shift with the same employee")
        if is_terminal(shift.status):
            raise ValidationError(f"Cannot swap a {shift.status.value} shift")
        if self._requests.has_pending_swap(shift.shift_id):
            raise ConflictError("This shift already has a pending swap")

        ts = now_utc()
        swap = ShiftSwap(
            swap_id=uuid.uuid4().hex,
            original_shift_id=shift.shift_id,
            original_employee_id=shift.employee_id,
            new_employee_id=new_employee_id,
            status=RequestStatus.PENDING,
            created_at=ts,
            updated_at=ts,
        )
        self._requests.create_swap(swap)
        logger.info("Swap %s requested for shift %s", swap.swap_id, shift.shift_id)

        self._notify_user(
            new_employee_id,
            "Shift swap proposed",
            f"You were proposed to take over '{shift.title}' on {shift.start_time:%Y-%m-%d}.",
        )
        self._notify_managers("Shift swap request", f"Swap requested for '{shift.title}'.")
        return swap

    def _pending_swap(self, swap_id: str) -> ShiftSwap:
        swap = self._requests.get_swap(str(swap_id))
        if not swap:
            raise NotFoundError("Swap request not found")
        if swap.status != RequestStatus.PENDING:
            raise InvalidTransition(f"Swap request is already {swap.status.value}")
        return swap

    def approve_swap(self, ctx: RequestContext, swap_id: str, *, manager_note: str = "") -> ShiftSwap:
        ctx.require_manager()
        swap = self._pending_swap(swap_id)

        shift = self._shifts.get_by_id(swap.original_shift_id)
        if not shift:
            raise ConflictError("The shift of this swap no longer exists")
        if shift.employee_id != swap.original_employee_id:
            raise ConflictError("The shift was reassigned after the swap was requested")
        if is_terminal(shift.status):
            raise ConflictError(f"The shift is already {shift.status.value}")

        ts = now_utc()
        note = _note(manager_note)
        try:
            self._requests.approve_swap(
                swap.swap_id,
                shift_id=shift.shift_id,
                from_employee_id=swap.original_employee_id,
                to_employee_id=swap.new_employee_id,
                decided_by=ctx.user_id,
                decided_at=ts,
                manager_note=note,
            )
        except ConflictError:
            raise
        except Exception as e:
            logger.exception("Approving swap %s failed", swap.swap_id)
            raise ConflictError("Swap approval failed; nothing was changed") from e

        logger.info("Swap %s approved by %s", swap.swap_id, ctx.user_id)
        self._feed.publish(shift_channel(swap.original_employee_id))
        self._feed.publish(shift_channel(swap.new_employee_id))

        when = f"{shift.start_time:%Y-%m-%d}"
        self._notify_user(
            swap.original_employee_id,
            "Shift swap approved",
            f"'{shift.title}' on {when} was handed over.",
            NotificationType.SUCCESS,
        )
        self._notify_user(
            swap.new_employee_id,
            "Shift assigned",
            f"You now work '{shift.title}' on {when}.",
            NotificationType.SUCCESS,
        )
        return replace(
            swap, status=RequestStatus.APPROVED, updated_at=ts, decided_by=ctx.user_id, decided_at=ts, manager_note=note
        )

    def reject_swap(self, ctx: RequestContext, swap_id: str, *, manager_note: str = "") -> ShiftSwap:
        ctx.require_manager()
        swap = self._pending_swap(swap_id)

        ts = now_utc()
        note = _note(manager_note)
        if not self._requests.decide_swap(
            swap.swap_id,
            status=RequestStatus.REJECTED,
            decided_by=ctx.user_id,
            decided_at=ts,
            manager_note=note,
        ):
            raise InvalidTransition("Swap request was already decided")

        logger.info("Swap %s rejected by %s", swap.swap_id, ctx.user_id)
        self._notify_user(
            swap.original_employee_id,
            "Shift swap rejected",
            "Your shift swap request was rejected.",
            NotificationType.WARNING,
        )
        return replace(
            swap, status=RequestStatus.REJECTED, updated_at=ts, decided_by=ctx.user_id, decided_at=ts, manager_note=note
        )

    # -------- Listings --------
    def list_for_employee(self, ctx: RequestContext, *, employee_id: Optional[str] = None) -> dict:
        employee_id = str(employee_id or ctx.user_id)
        ctx.require_self_or_manager(employee_id)
        return {
            "time_off": self._requests.list_time_off(employee_id=employee_id, limit=DEFAULT_LIST_LIMIT),
            "swaps": self._requests.list_swaps(employee_id=employee_id, limit=DEFAULT_LIST_LIMIT),
        }

    def list_pending(self, ctx: RequestContext) -> dict:
        ctx.require_manager()
        return {
            "time_off": self._requests.list_time_off(status=RequestStatus.PENDING, limit=500),
            "swaps": self._requests.list_swaps(status=RequestStatus.PENDING, limit=500),
        }
