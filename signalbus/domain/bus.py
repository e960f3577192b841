"""Synchronous in-process event bus with per-handler failure isolation."""

from __future__ import annotations

import functools
import logging
import uuid
from collections.abc import Callable, Hashable
from typing import Any, TypeVar, overload

from signalbus.config import BusSettings
from signalbus.domain.errors import BusClosedError, PayloadTypeError
from signalbus.domain.keys import EventKey, event_name
from signalbus.domain.models import (
    BusState,
    HandlerFailure,
    PublishResult,
    SubscriptionHandle,
)
from signalbus.repos.memory import SubscriberRegistry
from signalbus.services.executors import (
    ExecutionStrategy,
    InlineExecutor,
    build_executor,
)
from signalbus.services.signatures import check_handler

LOGGER = logging.getLogger(__name__)

P = TypeVar("P")

_MISSING: Any = object()


class EventBus:
    """Publish/subscribe bus for named or typed events.

    Handlers are called in subscription order. Registry reads and writes are
    serialized by the registry lock; handlers run outside it, on a snapshot
    taken at publish time, so they may subscribe, unsubscribe or publish
    themselves. Changes made during a publish apply to the next one.
    """

    def __init__(
        self,
        executor: ExecutionStrategy | None = None,
        validate_signatures: bool = True,
        name: str | None = None,
    ) -> None:
        self.id = str(uuid.uuid4())
        self.name = name or f"bus-{self.id[:8]}"
        self.validate_signatures = validate_signatures
        self._executor = executor or InlineExecutor()
        self._owns_executor = executor is None
        self._registry = SubscriberRegistry()
        self._state = BusState.OPEN

    @classmethod
    def from_settings(
        cls, settings: BusSettings | None = None, name: str | None = None
    ) -> EventBus:
        settings = settings or BusSettings.from_env()
        bus = cls(
            executor=build_executor(settings),
            validate_signatures=settings.validate_signatures,
            name=name,
        )
        bus._owns_executor = True
        return bus

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> BusState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is BusState.CLOSED

    def _ensure_open(self, operation: str) -> None:
        if self.closed:
            raise BusClosedError(f"cannot {operation} on closed bus {self.name!r}")

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    @overload
    def subscribe(
        self, event_id: EventKey[P], handler: Callable[[P], Any]
    ) -> SubscriptionHandle: ...

    @overload
    def subscribe(
        self, event_id: Hashable, handler: Callable[..., Any]
    ) -> SubscriptionHandle: ...

    def subscribe(self, event_id: Hashable, handler: Callable[..., Any]) -> SubscriptionHandle:
        """Register *handler* for *event_id* and return its handle.

        Subscribing the same handler twice creates two independent entries.
        """
        self._ensure_open("subscribe")
        if self.validate_signatures and isinstance(event_id, EventKey):
            check_handler(handler, event_id.arity)
        else:
            check_handler(handler, None)

        with self._registry.lock:
            self._ensure_open("subscribe")
            handle = SubscriptionHandle(event_id=event_id, bus_id=self.id)
            entry = self._registry.add(handle, handler)

        LOGGER.debug(
            "Subscribed to %s (seq=%d, handle=%s)",
            event_name(event_id),
            entry.sequence,
            handle.id,
        )
        return handle

    def unsubscribe(
        self, handle: SubscriptionHandle, event_id: Hashable = _MISSING
    ) -> bool:
        """Remove the entry issued for *handle*. Never raises.

        Returns False when nothing was removed: unknown or stale handle, a
        handle from another bus, or *event_id* given and not the one the
        handle was issued for.
        """
        if not isinstance(handle, SubscriptionHandle) or handle.bus_id != self.id:
            return False
        if event_id is not _MISSING and event_id != handle.event_id:
            return False

        removed = self._registry.remove(handle)
        if removed:
            LOGGER.debug(
                "Unsubscribed from %s (handle=%s)", event_name(handle.event_id), handle.id
            )
        return removed

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    @overload
    def publish(self, event_id: EventKey[P], payload: P = ...) -> PublishResult: ...

    @overload
    def publish(self, event_id: Hashable, payload: Any = ...) -> PublishResult: ...

    def publish(self, event_id: Hashable, payload: Any = _MISSING) -> PublishResult:
        """Deliver *payload* to every current subscriber of *event_id*.

        Handler exceptions are collected into ``PublishResult.failures``; they
        never stop the remaining handlers and never propagate from here.
        """
        self._ensure_open("publish")
        if isinstance(event_id, EventKey):
            self._check_payload(event_id, payload)

        with self._registry.lock:
            self._ensure_open("publish")
            entries = self._registry.snapshot(event_id)

        if not entries:
            LOGGER.debug("No subscribers for event: %s", event_name(event_id))
            return PublishResult(event_id=event_id)

        if payload is _MISSING:
            calls = [entry.handler for entry in entries]
        else:
            calls = [functools.partial(entry.handler, payload) for entry in entries]

        outcomes = self._executor.run(calls)

        failures: list[HandlerFailure] = []
        for entry, error in zip(entries, outcomes):
            if error is None:
                continue
            LOGGER.warning(
                "Event handler failed for %s (handle=%s): %s: %s",
                event_name(event_id),
                entry.handle.id,
                type(error).__name__,
                error,
            )
            failures.append(HandlerFailure(handle=entry.handle, error=error))

        return PublishResult(
            event_id=event_id, invoked_count=len(entries), failures=failures
        )

    @staticmethod
    def _check_payload(key: EventKey[Any], payload: Any) -> None:
        if not key.takes_payload:
            if payload is not _MISSING:
                raise PayloadTypeError(f"event {key.name!r} takes no payload")
            return
        if payload is _MISSING:
            raise PayloadTypeError(f"event {key.name!r} requires a payload")
        if not key.accepts(payload):
            raise PayloadTypeError(
                f"event {key.name!r} expects {key.type_name}, "
                f"got {type(payload).__name__}"
            )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def subscriber_count(self, event_id: Hashable = _MISSING) -> int:
        if event_id is _MISSING:
            return self._registry.count()
        return self._registry.count_for(event_id)

    def has_subscribers(self, event_id: Hashable) -> bool:
        return self._registry.count_for(event_id) > 0

    def event_ids(self) -> list[Hashable]:
        return self._registry.event_ids()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear(self, event_id: Hashable = _MISSING) -> int:
        """Drop subscribers (all, or those of one event). The bus stays open."""
        if event_id is _MISSING:
            removed = self._registry.clear()
        else:
            removed = self._registry.clear_event(event_id)
        LOGGER.debug("Cleared %d subscriber(s) from %s", removed, self.name)
        return removed

    def shutdown(self) -> None:
        """Clear the registry and close the bus for good. Idempotent.

        An executor the bus created itself is shut down too; one passed in by
        the caller is left running.
        """
        with self._registry.lock:
            if self.closed:
                return
            self._state = BusState.CLOSED
            self._registry.clear()
        if self._owns_executor:
            self._executor.shutdown()
        LOGGER.debug("Bus %s shut down", self.name)

    def __enter__(self) -> EventBus:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        return (
            f"EventBus(name={self.name!r}, state={self._state.value}, "
            f"subscribers={self._registry.count()})"
        )
