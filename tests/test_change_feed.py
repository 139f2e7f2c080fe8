from __future__ import annotations

import threading
import time

from shift_bookk.realtime.feed import ChangeFeed


def test_publish_reaches_listeners_of_the_key_only():
    feed = ChangeFeed()
    a, b = [], []
    feed.subscribe(("shifts", "emp-1"), a.append)
    feed.subscribe(("shifts", "emp-2"), b.append)

    feed.publish(("shifts", "emp-1"), "payload")

    assert a == ["payload"]
    assert b == []


def test_unsubscribe_stops_delivery_and_is_idempotent():
    feed = ChangeFeed()
    seen = []
    unsubscribe = feed.subscribe("k", seen.append)

    unsubscribe()
    unsubscribe()
    feed.publish("k", 1)

    assert seen == []
    assert feed.listener_count("k") == 0


def test_failing_listener_does_not_stop_others(caplog):
    feed = ChangeFeed()
    seen = []

    def broken(_payload):
        raise RuntimeError("boom")

    feed.subscribe("k", broken)
    feed.subscribe("k", seen.append)

    assert feed.publish("k", "x") == 1
    assert seen == ["x"]
    assert "Change listener" in caplog.text


def test_versions_count_publishes():
    feed = ChangeFeed()

    assert feed.version("k") == 0
    feed.publish("k")
    feed.publish("k")

    assert feed.version("k") == 2
    assert feed.version("other") == 0


def test_wait_wakes_on_publish():
    feed = ChangeFeed()
    result = {}

    def waiter():
        result["version"] = feed.wait("k", since=0, timeout=5)

    t = threading.Thread(target=waiter)
    t.start()
    time.sleep(0.05)
    feed.publish("k")
    t.join(timeout=5)

    assert result["version"] == 1


def test_wait_times_out():
    feed = ChangeFeed()
    feed.publish("k")

    assert feed.wait("k", since=1, timeout=0.01) == 1
