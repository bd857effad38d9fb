"""Structured call events emitted around intercepted methods and functions.

Every event is a snapshot of one notification point: which callable ran, on
which target, with which arguments, and (for the after variants) how it
finished. The only mutable part of an event is its propagation flag, which can
be switched on by a listener and never switched back.

Each variant carries a fixed :class:`EventKind` whose value is the dispatch key
used when the event object itself is dispatched, so listeners can subscribe
to "every before-method notification" regardless of event naming::

    dispatcher.add_listener(BeforeMethodEvent, audit, priority=100)
"""

from __future__ import annotations

import enum
import weakref
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, ClassVar

_EMPTY_KWARGS: Mapping[str, Any] = MappingProxyType({})


class EventKind(str, enum.Enum):
    """Variant tag of a structured event; the value is its dispatch key."""

    BEFORE_METHOD = "BeforeMethodEvent"
    AFTER_METHOD = "AfterMethodEvent"
    BEFORE_FUNCTION = "BeforeFunctionEvent"
    AFTER_FUNCTION = "AfterFunctionEvent"

    @property
    def key(self) -> str:
        return self.value

    @property
    def is_before(self) -> bool:
        return self in (EventKind.BEFORE_METHOD, EventKind.BEFORE_FUNCTION)


def _reference(obj: Any) -> Callable[[], Any]:
    """Return a callable yielding ``obj`` without owning it where possible."""
    try:
        return weakref.ref(obj)
    except TypeError:
        # Builtins and __slots__ classes without __weakref__ cannot be
        # weakly referenced; the event is short-lived so a closure is fine.
        return lambda: obj


class Event:
    """Base class for call events.

    Attributes are read-only. ``stop_propagation()`` is the only mutator.
    """

    __slots__ = ("_member", "_arguments", "_kwargs", "_propagation_stopped")

    kind: ClassVar[EventKind]

    def __init__(
        self,
        member: str,
        arguments: tuple[Any, ...] | list[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> None:
        self._member = member
        self._arguments = tuple(arguments)
        self._kwargs = MappingProxyType(dict(kwargs)) if kwargs else _EMPTY_KWARGS
        self._propagation_stopped = False

    @property
    def key(self) -> str:
        """Dispatch key of this event's variant."""
        return self.kind.value

    @property
    def member(self) -> str:
        """Name of the intercepted method or function."""
        return self._member

    @property
    def arguments(self) -> tuple[Any, ...]:
        """Positional arguments of the call, as passed."""
        return self._arguments

    @property
    def kwargs(self) -> Mapping[str, Any]:
        """Keyword arguments of the call (read-only view)."""
        return self._kwargs

    @property
    def propagation_stopped(self) -> bool:
        return self._propagation_stopped

    def stop_propagation(self) -> None:
        """Prevent any remaining listener from receiving this event."""
        self._propagation_stopped = True

    def _repr_fields(self) -> list[str]:
        return [f"member={self._member!r}", f"arguments={self._arguments!r}"]

    def __repr__(self) -> str:
        fields = self._repr_fields()
        if self._propagation_stopped:
            fields.append("propagation_stopped=True")
        return f"{type(self).__name__}({', '.join(fields)})"


class _TargetMixin:
    __slots__ = ()

    _target_ref: Callable[[], Any]

    @property
    def target(self) -> Any:
        """The object whose method was called, or ``None`` if it was collected."""
        return self._target_ref()


class _OutcomeMixin:
    __slots__ = ()

    _result: Any
    _exception: BaseException | None

    @property
    def result(self) -> Any:
        """Return value of the call; ``None`` when the call raised."""
        return self._result

    @property
    def exception(self) -> BaseException | None:
        """Exception raised by the call; ``None`` when it returned."""
        return self._exception

    @property
    def has_exception(self) -> bool:
        return self._exception is not None

    def _repr_fields(self) -> list[str]:
        fields = super()._repr_fields()  # type: ignore[misc]
        if self._exception is not None:
            fields.append(f"exception={self._exception!r}")
        else:
            fields.append(f"result={self._result!r}")
        return fields


def _check_outcome(result: Any, exception: BaseException | None) -> None:
    if exception is not None and result is not None:
        raise ValueError("an after event carries either a result or an exception")


class BeforeMethodEvent(_TargetMixin, Event):
    """Emitted before an intercepted method runs."""

    __slots__ = ("_target_ref",)

    kind = EventKind.BEFORE_METHOD

    def __init__(
        self,
        target: Any,
        member: str,
        arguments: tuple[Any, ...] | list[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(member, arguments, kwargs)
        self._target_ref = _reference(target)


class AfterMethodEvent(_OutcomeMixin, _TargetMixin, Event):
    """Emitted after an intercepted method returned or raised."""

    __slots__ = ("_target_ref", "_result", "_exception")

    kind = EventKind.AFTER_METHOD

    def __init__(
        self,
        target: Any,
        member: str,
        arguments: tuple[Any, ...] | list[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        _check_outcome(result, exception)
        super().__init__(member, arguments, kwargs)
        self._target_ref = _reference(target)
        self._result = result
        self._exception = exception


class BeforeFunctionEvent(Event):
    """Emitted before an intercepted plain function runs."""

    __slots__ = ()

    kind = EventKind.BEFORE_FUNCTION


class AfterFunctionEvent(_OutcomeMixin, Event):
    """Emitted after an intercepted plain function returned or raised."""

    __slots__ = ("_result", "_exception")

    kind = EventKind.AFTER_FUNCTION

    def __init__(
        self,
        member: str,
        arguments: tuple[Any, ...] | list[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        _check_outcome(result, exception)
        super().__init__(member, arguments, kwargs)
        self._result = result
        self._exception = exception


__all__ = [
    "AfterFunctionEvent",
    "AfterMethodEvent",
    "BeforeFunctionEvent",
    "BeforeMethodEvent",
    "Event",
    "EventKind",
]
