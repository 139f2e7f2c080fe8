from __future__ import annotations

from typing import Optional

from ..common.validators import require_non_empty
from ..core.context import RequestContext
from ..core.exceptions import NotFoundError
from .model import UserProfile
from .repository import UserDirectory


class ProfileService:
    """Use case: read own profile, register the device push token."""

    def __init__(self, users: UserDirectory):
        self._users = users

    def get_profile(self, ctx: RequestContext) -> UserProfile:
        user = self._users.get_by_id(ctx.user_id)
        if not user:
            raise NotFoundError("User profile not found")
        return user

    def register_push_token(self, ctx: RequestContext, *, push_token: Optional[str]) -> None:
        token = require_non_empty(push_token or "", "Push token") if push_token is not None else None
        if not self._users.set_push_token(ctx.user_id, push_token=token):
            raise NotFoundError("User profile not found")
