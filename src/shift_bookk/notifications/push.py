from __future__ import annotations

import logging
from typing import Protocol

from .model import PushMessage

logger = logging.getLogger(__name__)


class PushTransport(Protocol):
    """Token-addressed, best-effort push delivery.

    Implementations raise ``DeliveryFailure`` when the provider rejects a message.
    """

    def send(self, token: str, message: PushMessage) -> None:
        raise NotImplementedError


class LoggingPushTransport(PushTransport):
    """Writes the push to the log instead of calling a provider."""

    def send(self, token: str, message: PushMessage) -> None:
        logger.info("PUSH %s -> %s: %s", message.tag or "-", token, message.title)
