"""Registration-time checks that a handler can receive an event's payload."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from signalbus.domain.errors import HandlerSignatureError

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def positional_bounds(handler: Callable[..., Any]) -> tuple[int, int | None] | None:
    """Return (required, maximum) positional arguments for *handler*.

    ``maximum`` is None when the handler takes ``*args``. Returns None when
    the signature cannot be introspected (some builtins and C extensions).
    """
    try:
        sig = inspect.signature(handler)
    except (TypeError, ValueError):
        return None

    required = 0
    maximum: int | None = 0
    for param in sig.parameters.values():
        if param.kind in _POSITIONAL:
            if maximum is not None:
                maximum += 1
            if param.default is inspect.Parameter.empty:
                required += 1
        elif param.kind is inspect.Parameter.VAR_POSITIONAL:
            maximum = None
        elif (
            param.kind is inspect.Parameter.KEYWORD_ONLY
            and param.default is inspect.Parameter.empty
        ):
            raise HandlerSignatureError(
                f"{_describe(handler)} requires keyword-only argument "
                f"{param.name!r}, which the bus never passes"
            )
    return required, maximum


def check_handler(handler: Any, arity: int | None) -> None:
    """Raise HandlerSignatureError unless *handler* can be called with *arity* args.

    ``arity=None`` only checks that the handler is callable.
    """
    if not callable(handler):
        raise HandlerSignatureError(f"handler must be callable, got {handler!r}")
    if arity is None:
        return

    bounds = positional_bounds(handler)
    if bounds is None:
        return
    required, maximum = bounds
    if required > arity or (maximum is not None and maximum < arity):
        expected = "no arguments" if arity == 0 else f"{arity} positional argument"
        raise HandlerSignatureError(
            f"{_describe(handler)} cannot be called with {expected} "
            f"(takes {required}..{'*' if maximum is None else maximum})"
        )


def _describe(handler: Callable[..., Any]) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
