from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import UserProfile


class UserDirectory(Protocol):
    """Read access to user profiles.

    Note: services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def list_ids(
        self,
        *,
        role: Optional[Role] = None,
        department: Optional[str] = None,
        active_only: bool = True,
    ) -> Sequence[str]:
        raise NotImplementedError

    def set_push_token(self, user_id: str, *, push_token: Optional[str]) -> bool:
        raise NotImplementedError
