"""Tests for handler execution strategies."""

from __future__ import annotations

import threading

import pytest

from signalbus.config import BusSettings
from signalbus.domain.bus import EventBus
from signalbus.services.executors import InlineExecutor, PooledExecutor, build_executor


def test_inline_reports_outcomes_in_order():
    calls: list[int] = []

    def boom() -> None:
        raise ValueError("x")

    outcomes = InlineExecutor().run([lambda: calls.append(1), boom, lambda: calls.append(3)])

    assert calls == [1, 3]
    assert outcomes[0] is None
    assert isinstance(outcomes[1], ValueError)
    assert outcomes[2] is None


def test_pooled_runs_every_call_once():
    pool = PooledExecutor(max_workers=3)
    counter = {"n": 0}
    lock = threading.Lock()

    def bump() -> None:
        with lock:
            counter["n"] += 1

    try:
        outcomes = pool.run([bump] * 10)
    finally:
        pool.shutdown()

    assert counter["n"] == 10
    assert outcomes == [None] * 10


def test_pooled_failures_keep_input_order():
    pool = PooledExecutor(max_workers=2)

    def fail(message: str):
        def call() -> None:
            raise RuntimeError(message)

        return call

    try:
        outcomes = pool.run([fail("a"), lambda: None, fail("b")])
    finally:
        pool.shutdown()

    assert [str(o) if o else None for o in outcomes] == ["a", None, "b"]


def test_pooled_rejects_zero_workers():
    with pytest.raises(ValueError):
        PooledExecutor(max_workers=0)


def test_build_executor_from_settings():
    assert isinstance(build_executor(BusSettings()), InlineExecutor)
    pooled = build_executor(BusSettings(executor="thread", max_workers=2))
    try:
        assert isinstance(pooled, PooledExecutor)
        assert pooled.max_workers == 2
    finally:
        pooled.shutdown()


def test_bus_with_pool_isolates_failures_and_nested_publish():
    bus = EventBus.from_settings(BusSettings(executor="thread", max_workers=1))
    seen: list[str] = []
    lock = threading.Lock()

    def record(tag: str) -> None:
        with lock:
            seen.append(tag)

    def boom(tag: str) -> None:
        raise RuntimeError(tag)

    # with one worker, a nested publish from a pooled handler must not deadlock
    bus.subscribe("inner", record)
    bus.subscribe("outer", lambda tag: bus.publish("inner", tag + "-inner"))
    bus.subscribe("outer", boom)
    bus.subscribe("outer", record)

    try:
        result = bus.publish("outer", "x")
    finally:
        bus.shutdown()

    assert result.invoked_count == 3
    assert [f.message for f in result.failures] == ["x"]
    assert sorted(seen) == ["x", "x-inner"]


def test_caller_supplied_executor_survives_shutdown():
    pool = PooledExecutor(max_workers=1)
    bus = EventBus(executor=pool)
    bus.shutdown()

    try:
        assert pool.run([lambda: None]) == [None]
    finally:
        pool.shutdown()


def test_shutdown_between_snapshot_and_dispatch_still_delivers(monkeypatch):
    bus = EventBus.from_settings(BusSettings(executor="thread", max_workers=2))
    seen: list[str] = []
    lock = threading.Lock()

    def record(tag: str) -> None:
        with lock:
            seen.append(tag)

    bus.subscribe("tick", record)
    bus.subscribe("tick", record)

    take_snapshot = bus._registry.snapshot

    def snapshot_then_shutdown(event_id):
        entries = take_snapshot(event_id)
        bus.shutdown()
        return entries

    monkeypatch.setattr(bus._registry, "snapshot", snapshot_then_shutdown)

    result = bus.publish("tick", "late")

    assert bus.closed
    assert result.invoked_count == 2
    assert result.ok
    assert seen == ["late", "late"]


def test_pooled_runs_remaining_calls_inline_after_pool_shutdown():
    pool = PooledExecutor(max_workers=1)
    pool.shutdown()

    def boom() -> None:
        raise ValueError("after")

    outcomes = pool.run([lambda: None, boom])

    assert outcomes[0] is None
    assert isinstance(outcomes[1], ValueError)
