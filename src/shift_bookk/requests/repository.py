from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import ShiftSwap, TimeOffRequest


class RequestRepository(Protocol):
    # Time-off requests
    def create_time_off(self, request: TimeOffRequest) -> None:
        raise NotImplementedError

    def get_time_off(self, request_id: str) -> Optional[TimeOffRequest]:
        raise NotImplementedError

    def list_time_off(
        self,
        *,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[TimeOffRequest]:
        raise NotImplementedError

    def decide_time_off(
        self,
        request_id: str,
        *,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
        manager_note: Optional[str] = None,
    ) -> bool:
        """Only applies while the request is pending."""

        raise NotImplementedError

    # Shift swaps
    def create_swap(self, swap: ShiftSwap) -> None:
        raise NotImplementedError

    def get_swap(self, swap_id: str) -> Optional[ShiftSwap]:
        raise NotImplementedError

    def list_swaps(
        self,
        *,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[ShiftSwap]:
        """``employee_id`` matches either side of the swap."""

        raise NotImplementedError

    def has_pending_swap(self, shift_id: str) -> bool:
        raise NotImplementedError

    def decide_swap(
        self,
        swap_id: str,
        *,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
        manager_note: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

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
        """Approve the swap and reassign the shift in one transaction.

        Raises ``ConflictError`` if either write does not apply; nothing is kept then.
        """

        raise NotImplementedError
