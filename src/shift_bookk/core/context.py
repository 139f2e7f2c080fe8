from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role
from .exceptions import Unauthorized


@dataclass(frozen=True)
class RequestContext:
    """Identity of the caller for one request.

    Built by the controller layer from identity-provider claims and passed
    explicitly into every service call.
    """

    user_id: str
    role: Role
    department: Optional[str] = None

    @property
    def is_manager(self) -> bool:
        return self.role.can_approve

    def require_manager(self, message: str = "Manager or admin role required") -> None:
        if not self.is_manager:
            raise Unauthorized(message)

    def require_self_or_manager(self, user_id: str, message: str = "Not allowed for another user") -> None:
        if not self.is_manager and str(user_id) != self.user_id:
            raise Unauthorized(message)
