"""Typed event identifiers."""

from __future__ import annotations

import types
import typing
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

P = TypeVar("P")

_UNION_ORIGINS = (typing.Union, types.UnionType)


def runtime_types(payload_type: Any) -> tuple[type, ...]:
    """Reduce a payload annotation to the classes ``isinstance`` can check.

    Parameterized generics check against their origin (``list[int]`` is
    ``list``), unions against each member, and ``Any`` accepts everything.
    """
    if payload_type is Any:
        return (object,)
    if payload_type is None:
        return (type(None),)

    origin = typing.get_origin(payload_type)
    if origin is typing.Annotated:
        return runtime_types(typing.get_args(payload_type)[0])
    if origin in _UNION_ORIGINS:
        checked: list[type] = []
        for member in typing.get_args(payload_type):
            checked.extend(runtime_types(member))
        return tuple(checked)
    if origin is not None:
        payload_type = origin

    if not isinstance(payload_type, type):
        raise TypeError(f"payload_type must be a class, got {payload_type!r}")
    return (payload_type,)


@dataclass(frozen=True)
class EventKey(Generic[P]):
    """Names a category of occurrence and tags it with its payload type.

    ``payload_type=None`` marks an event that carries no payload. The default
    ``object`` accepts any payload.
    """

    name: str
    payload_type: Any = object
    _checked: tuple[type, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("EventKey name must not be empty")
        checked = () if self.payload_type is None else runtime_types(self.payload_type)
        object.__setattr__(self, "_checked", checked)

    @property
    def takes_payload(self) -> bool:
        return self.payload_type is not None

    @property
    def arity(self) -> int:
        return 1 if self.takes_payload else 0

    @property
    def type_name(self) -> str:
        if isinstance(self.payload_type, type):
            return self.payload_type.__name__
        return repr(self.payload_type)

    def accepts(self, payload: Any) -> bool:
        if not self._checked:
            return False
        return isinstance(payload, self._checked)

    def __str__(self) -> str:
        return self.name


def event_name(event_id: Any) -> str:
    """Readable name for any identifier, used in logs and summaries."""
    if isinstance(event_id, EventKey):
        return event_id.name
    value = getattr(event_id, "value", event_id)
    return str(value)
