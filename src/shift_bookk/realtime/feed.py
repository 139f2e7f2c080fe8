from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class ChangeFeed:
    """In-process change notification keyed by query predicate.

    A key names a query, e.g. ``("notifications", user_id)``. Listeners
    registered for a key are called with the published payload, and every
    publish bumps the key's version so HTTP clients can long-poll with
    :meth:`wait`.
    """

    def __init__(self):
        self._lock = threading.Condition()
        self._listeners: dict[Hashable, list[Listener]] = defaultdict(list)
        self._versions: dict[Hashable, int] = defaultdict(int)

    def subscribe(self, key: Hashable, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners[key].append(listener)

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(key)
                if listeners and listener in listeners:
                    listeners.remove(listener)
                    if not listeners:
                        del self._listeners[key]

        return unsubscribe

    def publish(self, key: Hashable, payload: Any = None) -> int:
        with self._lock:
            self._versions[key] += 1
            version = self._versions[key]
            listeners = list(self._listeners.get(key, ()))
            self._lock.notify_all()

        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Change listener for %r failed", key)
        return version

    def version(self, key: Hashable) -> int:
        with self._lock:
            return self._versions.get(key, 0)

    def wait(self, key: Hashable, *, since: int, timeout: float) -> int:
        """Block until ``key`` moves past ``since`` or ``timeout`` elapses.

        Returns the current version either way.
        """
        with self._lock:
            self._lock.wait_for(lambda: self._versions.get(key, 0) > since, timeout=timeout)
            return self._versions.get(key, 0)

    def listener_count(self, key: Hashable) -> int:
        with self._lock:
            return len(self._listeners.get(key, ()))
