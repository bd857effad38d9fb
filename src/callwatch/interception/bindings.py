"""Before/after bindings and their decorator-based discovery.

A binding associates a callable with a notification point: an optional event
name override and a priority. Bindings are plain records, so they can be
built by hand and passed straight to the interceptor, or declared with the
decorators in this module and discovered with :func:`collect_bindings`::

    class UserService:
        @event_before("user.create")
        @event_after("user.create")
        def create_user(self, username: str, email: str) -> dict: ...

    bindings = collect_bindings(UserService.create_user)
    bindings.before  # (Binding(event='user.create', priority=0),)

The decorators only attach metadata; they return the original function.
Stacked decorators of the same kind keep their top-to-bottom order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, NamedTuple

from ..dispatcher.protocols import EventName, EventPriority, F, validate_priority

BINDINGS_ATTRIBUTE = "_event_bindings"


@dataclass(frozen=True, slots=True)
class Binding:
    """One before- or after-notification declared for a callable."""

    event: EventName | None = None
    """Event name to dispatch; ``<member>.before`` / ``<member>.after`` when None."""

    priority: EventPriority = 0
    """Priority in [-100, 100] carried with the binding."""

    def __post_init__(self) -> None:
        validate_priority(self.priority)

    def event_name(self, member: str, phase: str) -> EventName:
        """Name dispatched for this binding on ``member`` in ``phase``."""
        return self.event if self.event is not None else f"{member}.{phase}"


class BindingSet(NamedTuple):
    """Ordered before- and after-bindings of one callable."""

    before: tuple[Binding, ...] = ()
    after: tuple[Binding, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.before or self.after)


def as_bindings(bindings: Iterable[Binding | EventName | None] | None) -> tuple[Binding, ...]:
    """Normalize a user-supplied binding list.

    Plain strings become ``Binding(event=...)`` and ``None`` becomes a binding
    with the default event name.
    """
    if bindings is None:
        return ()
    normalized: list[Binding] = []
    for binding in bindings:
        if isinstance(binding, Binding):
            normalized.append(binding)
        elif binding is None or isinstance(binding, str):
            normalized.append(Binding(event=binding))
        else:
            raise TypeError(f"Expected a Binding or an event name, got {binding!r}")
    return tuple(normalized)


def _declare(fn: Any, phase: str, binding: Binding) -> None:
    current: BindingSet = getattr(fn, BINDINGS_ATTRIBUTE, BindingSet())
    # Decorators apply bottom-up, so prepend to keep source order.
    if phase == "before":
        updated = current._replace(before=(binding, *current.before))
    else:
        updated = current._replace(after=(binding, *current.after))
    setattr(fn, BINDINGS_ATTRIBUTE, updated)


def event_before(
    event: EventName | None = None, priority: EventPriority = 0
) -> Callable[[F], F]:
    """Declare a before-notification for the decorated method or function.

    Args:
        event: Event name override; defaults to ``<name>.before``
        priority: Priority in [-100, 100]

    Raises:
        InvalidPriority: If priority is outside [-100, 100]
    """
    binding = Binding(event=event, priority=priority)

    def decorator(fn: F) -> F:
        _declare(fn, "before", binding)
        return fn

    return decorator


def event_after(
    event: EventName | None = None, priority: EventPriority = 0
) -> Callable[[F], F]:
    """Declare an after-notification for the decorated method or function.

    The after-notification fires on success and on failure.

    Args:
        event: Event name override; defaults to ``<name>.after``
        priority: Priority in [-100, 100]

    Raises:
        InvalidPriority: If priority is outside [-100, 100]
    """
    binding = Binding(event=event, priority=priority)

    def decorator(fn: F) -> F:
        _declare(fn, "after", binding)
        return fn

    return decorator


def collect_bindings(fn: Callable[..., Any]) -> BindingSet:
    """Read the bindings declared on ``fn`` (bound methods included)."""
    bindings = getattr(fn, BINDINGS_ATTRIBUTE, None)
    if bindings is None:
        bindings = getattr(getattr(fn, "__func__", None), BINDINGS_ATTRIBUTE, None)
    return bindings if bindings is not None else BindingSet()


__all__ = [
    "Binding",
    "BindingSet",
    "as_bindings",
    "collect_bindings",
    "event_after",
    "event_before",
]
