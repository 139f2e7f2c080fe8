from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.context import RequestContext
from ..core.enums import NotificationType
from ..core.exceptions import DeliveryFailure, NotFoundError, Unauthorized, ValidationError
from ..realtime.feed import ChangeFeed
from ..users.repository import UserDirectory
from .model import Audience, AudienceKind, FanoutResult, Notification, PushMessage, notification_channel
from .push import PushTransport
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationFanout:
    """Delivers one logical event as one notification per recipient.

    Each recipient's document is an independent write: a failed write is logged
    and reported, the others still go through. Push is attempted once per stored
    notification and never affects the stored document.
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        users: UserDirectory,
        push: PushTransport,
        feed: Optional[ChangeFeed] = None,
    ):
        self._notifications = notifications
        self._users = users
        self._push = push
        self._feed = feed or ChangeFeed()

    def resolve(self, audience: Audience) -> list[str]:
        """Recipient ids for ``audience``, looked up now (never cached)."""
        if audience.kind == AudienceKind.USERS:
            ids: Sequence[str] = audience.user_ids
        elif audience.kind == AudienceKind.ROLE:
            if audience.role is None:
                raise ValidationError("Role audience needs a role")
            ids = self._users.list_ids(role=audience.role)
        elif audience.kind == AudienceKind.DEPARTMENT:
            department = require_non_empty(audience.department or "", "Department")
            ids = self._users.list_ids(department=department)
        else:
            ids = self._users.list_ids()

        # dedupe, keep order
        return list(dict.fromkeys(str(i) for i in ids if i))

    def fan_out(
        self,
        audience: Audience,
        *,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> FanoutResult:
        title = require_non_empty(title, "Title")
        message = require_non_empty(message, "Message")
        recipients = self.resolve(audience)

        created: list[Notification] = []
        failed: list[str] = []
        for user_id in recipients:
            ts = now_utc()
            notification = Notification(
                notification_id=uuid.uuid4().hex,
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                read=False,
                created_at=ts,
                updated_at=ts,
            )
            try:
                self._notifications.create(notification)
            except Exception:
                logger.exception("Storing notification for user %s failed", user_id)
                failed.append(user_id)
                continue
            created.append(notification)
            self._feed.publish(notification_channel(user_id), notification)

        delivered = [n.user_id for n in created if self._deliver(n)]

        if failed:
            logger.warning("Fan-out %r reached %d of %d recipients", title, len(created), len(recipients))
        return FanoutResult(notifications=created, failed=failed, delivered=delivered)

    def notify_user(
        self,
        user_id: str,
        *,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> FanoutResult:
        return self.fan_out(Audience.users([user_id]), title=title, message=message, type=type)

    def _deliver(self, notification: Notification) -> bool:
        user = self._users.get_by_id(notification.user_id)
        if not user:
            logger.info("Skipping push: user %s does not exist", notification.user_id)
            return False
        if not user.push_token:
            logger.info("Skipping push: user %s has no push token", notification.user_id)
            return False

        push = PushMessage(
            title=notification.title,
            body=notification.message,
            tag=notification.notification_id,
            data={"notificationId": notification.notification_id, "type": notification.type.value},
        )
        try:
            self._push.send(user.push_token, push)
        except DeliveryFailure as e:
            logger.warning("Push to user %s failed: %s", notification.user_id, e)
            return False
        except Exception:
            logger.exception("Push transport error for user %s", notification.user_id)
            return False
        return True


class NotificationInbox:
    """Use case: a user reads and manages their own notifications."""

    def __init__(self, notifications: NotificationRepository, feed: Optional[ChangeFeed] = None):
        self._notifications = notifications
        self._feed = feed or ChangeFeed()

    def list_for_user(self, ctx: RequestContext, *, unread_only: bool = False) -> Sequence[Notification]:
        return self._notifications.list_for_user(ctx.user_id, unread_only=unread_only, limit=DEFAULT_LIST_LIMIT)

    def unread_count(self, ctx: RequestContext) -> int:
        return int(self._notifications.count_unread(ctx.user_id))

    def _get_owned(self, ctx: RequestContext, notification_id: str) -> Notification:
        notification = self._notifications.get_by_id(notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.user_id != ctx.user_id:
            raise Unauthorized("Notification belongs to another user")
        return notification

    def mark_as_read(self, ctx: RequestContext, notification_id: str) -> None:
        notification = self._get_owned(ctx, notification_id)
        if notification.read:
            return
        if self._notifications.mark_read(notification_id):
            self._feed.publish(notification_channel(ctx.user_id))

    def mark_all_as_read(self, ctx: RequestContext) -> int:
        changed = self._notifications.mark_all_read(ctx.user_id)
        if changed:
            self._feed.publish(notification_channel(ctx.user_id))
        return changed

    def delete(self, ctx: RequestContext, notification_id: str) -> None:
        self._get_owned(ctx, notification_id)
        if not self._notifications.delete(notification_id):
            raise NotFoundError("Notification not found")
        self._feed.publish(notification_channel(ctx.user_id))

    def subscribe(self, user_id: str, callback: Callable[[Sequence[Notification]], None]) -> Callable[[], None]:
        """Realtime listener: ``callback`` gets the current list now and after every change.

        Returns the unsubscribe function.
        """

        def on_change(_payload) -> None:
            callback(self._notifications.list_for_user(user_id, limit=DEFAULT_LIST_LIMIT))

        unsubscribe = self._feed.subscribe(notification_channel(user_id), on_change)
        on_change(None)
        return unsubscribe

    def poll(self, ctx: RequestContext, *, since: int, timeout: float) -> dict:
        """Long-poll: wait for a change after ``since`` and return the fresh state."""
        version = self._feed.wait(notification_channel(ctx.user_id), since=int(since), timeout=float(timeout))
        return {
            "version": version,
            "changed": version > int(since),
            "notifications": self.list_for_user(ctx),
            "unread": self.unread_count(ctx),
        }
