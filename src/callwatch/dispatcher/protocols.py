"""Type aliases and protocols shared by the dispatcher modules."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

from ..exceptions import InvalidPriority

EventName = str
EventPriority = int

MIN_PRIORITY: EventPriority = -100
MAX_PRIORITY: EventPriority = 100

F = TypeVar("F", bound=Callable[..., Any])


@runtime_checkable
class Listener(Protocol):
    """Callable receiving either a structured event or a payload mapping.

    Returning ``False`` stops the remaining listeners of the current dispatch;
    any other return value is ignored.
    """

    def __call__(self, value: Any, /) -> Any: ...


def validate_priority(priority: EventPriority) -> EventPriority:
    """Return ``priority`` or raise InvalidPriority when it is out of range."""
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise InvalidPriority(priority)
    if priority < MIN_PRIORITY or priority > MAX_PRIORITY:
        raise InvalidPriority(priority)
    return priority


__all__ = [
    "EventName",
    "EventPriority",
    "F",
    "Listener",
    "MAX_PRIORITY",
    "MIN_PRIORITY",
    "validate_priority",
]
