from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role, UserStatus


@dataclass(frozen=True)
class UserProfile:
    """Directory entry for a user.

    The identity provider owns accounts; this service only reads the profile
    and stores the device push token.
    """

    user_id: str
    email: str
    role: Role
    display_name: Optional[str] = None
    department: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    push_token: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
