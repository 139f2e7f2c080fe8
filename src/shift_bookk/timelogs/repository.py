from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import TimeLog


class TimeLogRepository(Protocol):
    def create(self, log: TimeLog) -> None:
        raise NotImplementedError

    def get_by_id(self, log_id: str) -> Optional[TimeLog]:
        raise NotImplementedError

    def get_open(self, employee_id: str) -> Optional[TimeLog]:
        """The employee's in-progress log, if any."""

        raise NotImplementedError

    def list_by_employee(self, employee_id: str, *, limit: int = 200) -> Sequence[TimeLog]:
        """Newest clock-in first."""

        raise NotImplementedError

    def close(self, log_id: str, *, clock_out: datetime, updated_at: datetime) -> bool:
        """Conditional update: only applies while the log is still in progress."""

        raise NotImplementedError

    def update(self, log: TimeLog) -> bool:
        raise NotImplementedError
