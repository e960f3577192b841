"""Concurrent subscribe/unsubscribe racing in-flight publishes."""

from __future__ import annotations

import threading
from collections import Counter

from signalbus.domain.bus import EventBus
from signalbus.domain.keys import EventKey

TICK: EventKey[int] = EventKey("tick", int)


def test_churn_during_publish_never_double_invokes():
    bus = EventBus()
    stop = threading.Event()
    errors: list[BaseException] = []
    per_publish: list[Counter] = []
    per_publish_lock = threading.Lock()

    def make_handler(tag: int):
        def handler(n: int) -> None:
            with per_publish_lock:
                per_publish[n][tag] += 1

        return handler

    stable = [bus.subscribe(TICK, make_handler(i)) for i in range(5)]

    def churn(offset: int) -> None:
        try:
            i = 0
            while not stop.is_set():
                handle = bus.subscribe(TICK, make_handler(1000 + offset * 100000 + i))
                bus.unsubscribe(handle)
                i += 1
        except BaseException as exc:  # surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=churn, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()

    results = []
    try:
        for n in range(200):
            with per_publish_lock:
                per_publish.append(Counter())
            results.append(bus.publish(TICK, n))
    finally:
        stop.set()
        for t in threads:
            t.join()

    assert errors == []
    for result, counts in zip(results, per_publish):
        assert result.ok
        assert all(v == 1 for v in counts.values())
        assert sum(counts.values()) == result.invoked_count
        for i in range(5):
            assert counts[i] == 1
    assert bus.subscriber_count(TICK) == len(stable)


def test_parallel_publishers_preserve_per_publish_order():
    bus = EventBus()
    orders: dict[int, list[int]] = {}
    lock = threading.Lock()

    def make_handler(tag: int):
        def handler(n: int) -> None:
            with lock:
                orders.setdefault(n, []).append(tag)

        return handler

    for i in range(10):
        bus.subscribe(TICK, make_handler(i))

    def publisher(start: int) -> None:
        for n in range(start, start + 50):
            bus.publish(TICK, n)

    threads = [threading.Thread(target=publisher, args=(k * 50,)) for k in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(orders) == 200
    assert all(seq == list(range(10)) for seq in orders.values())
