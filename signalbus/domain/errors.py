"""Exceptions raised across the bus boundary."""

from __future__ import annotations


class BusError(Exception):
    """Base class for errors raised by the event bus itself."""


class BusClosedError(BusError, RuntimeError):
    """Raised by subscribe/publish once the bus has been shut down."""


class HandlerSignatureError(BusError, TypeError):
    """Raised at registration when a handler cannot accept the event payload."""


class PayloadTypeError(BusError, TypeError):
    """Raised by publish when the payload does not match the event key."""
