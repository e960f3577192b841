"""Value objects produced and consumed by the event bus."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from signalbus.domain.keys import event_name


class BusState(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------


class SubscriptionHandle(BaseModel):
    """Opaque token identifying one subscriber entry for removal."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(default_factory=_new_id)
    event_id: Any
    bus_id: str

    def __repr__(self) -> str:
        return f"SubscriptionHandle({event_name(self.event_id)!r}, id={self.id[:8]})"


class SubscriberEntry(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    handle: SubscriptionHandle
    handler: Callable[..., Any]
    sequence: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Publish outcome
# ---------------------------------------------------------------------------


class HandlerFailure(BaseModel):
    """A subscriber that raised while handling a publish."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    handle: SubscriptionHandle
    error: Exception

    @property
    def error_type(self) -> str:
        return type(self.error).__name__

    @property
    def message(self) -> str:
        return str(self.error)


class FailureSummary(BaseModel):
    handle_id: str
    error_type: str
    message: str


class PublishSummary(BaseModel):
    """JSON-friendly view of a PublishResult."""

    event: str
    invoked_count: int
    failed_count: int
    failures: list[FailureSummary] = Field(default_factory=list)


class PublishResult(BaseModel):
    """Outcome of one publish call.

    ``invoked_count`` counts every handler that was called, including the
    ones that failed. ``failures`` keeps subscription order.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    event_id: Any
    invoked_count: int = Field(default=0, ge=0)
    failures: list[HandlerFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def delivered(self) -> bool:
        return self.invoked_count > 0

    def raise_first(self) -> None:
        """Re-raise the first captured handler error, if any."""
        if self.failures:
            raise self.failures[0].error

    def summary(self) -> PublishSummary:
        return PublishSummary(
            event=event_name(self.event_id),
            invoked_count=self.invoked_count,
            failed_count=len(self.failures),
            failures=[
                FailureSummary(
                    handle_id=f.handle.id,
                    error_type=f.error_type,
                    message=f.message,
                )
                for f in self.failures
            ],
        )
