from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ShiftStatus
from .model import Shift


class ShiftRepository(Protocol):
    def create(self, shift: Shift) -> None:
        raise NotImplementedError

    def get_by_id(self, shift_id: str) -> Optional[Shift]:
        raise NotImplementedError

    def list_by_employee(
        self,
        employee_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Shift]:
        """Ordered by start_time."""

        raise NotImplementedError

    def list_range(self, *, start: datetime, end: datetime, employee_id: Optional[str] = None) -> Sequence[Shift]:
        raise NotImplementedError

    def update_status(
        self,
        shift_id: str,
        *,
        expected: ShiftStatus,
        status: ShiftStatus,
        updated_at: datetime,
    ) -> bool:
        """Conditional update: only applies while the stored status is ``expected``."""

        raise NotImplementedError

    def delete(self, shift_id: str) -> bool:
        raise NotImplementedError
