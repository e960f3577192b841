"""Strategies for running the handlers of one publish call."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent import futures
from typing import Any, Protocol

from signalbus.config import BusSettings

LOGGER = logging.getLogger(__name__)

Invocation = Callable[[], Any]


class ExecutionStrategy(Protocol):
    """Runs invocations and reports each outcome in input order.

    An outcome is None on success or the Exception the invocation raised.
    """

    def run(self, calls: Sequence[Invocation]) -> list[Exception | None]: ...

    def shutdown(self) -> None: ...


class InlineExecutor:
    """Calls handlers one after another on the publishing thread."""

    def run(self, calls: Sequence[Invocation]) -> list[Exception | None]:
        outcomes: list[Exception | None] = []
        for call in calls:
            try:
                call()
            except Exception as exc:
                outcomes.append(exc)
            else:
                outcomes.append(None)
        return outcomes

    def shutdown(self) -> None:
        return None


class PooledExecutor:
    """Fans handlers out to a thread pool and waits for all of them.

    Invocations are submitted in subscription order but may overlap in time.
    A publish issued from inside a pooled handler runs inline so nested
    publishes cannot starve the pool. Calls that can no longer be submitted
    because the pool was shut down after the snapshot run inline instead.
    """

    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "signalbus") -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self._pool = futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._local = threading.local()
        self._inline = InlineExecutor()

    def run(self, calls: Sequence[Invocation]) -> list[Exception | None]:
        if getattr(self._local, "in_worker", False):
            return self._inline.run(calls)

        pending: list[futures.Future[Any]] = []
        leftover: list[Exception | None] = []
        for pos, call in enumerate(calls):
            try:
                pending.append(self._pool.submit(self._in_worker, call))
            except RuntimeError:
                # pool closed after the snapshot was taken; deliver the rest here
                LOGGER.debug(
                    "Handler pool closed mid-publish, running %d inline",
                    len(calls) - pos,
                )
                leftover = self._inline.run(calls[pos:])
                break

        futures.wait(pending)
        outcomes: list[Exception | None] = []
        for fut in pending:
            exc = fut.exception()
            if exc is not None and not isinstance(exc, Exception):
                raise exc
            outcomes.append(exc)
        return outcomes + leftover

    def _in_worker(self, call: Invocation) -> Any:
        self._local.in_worker = True
        try:
            return call()
        finally:
            self._local.in_worker = False

    def shutdown(self) -> None:
        LOGGER.debug("Shutting down handler pool (%d workers)", self.max_workers)
        self._pool.shutdown(wait=True)


def build_executor(settings: BusSettings) -> ExecutionStrategy:
    if settings.executor == "thread":
        return PooledExecutor(max_workers=settings.max_workers)
    return InlineExecutor()
