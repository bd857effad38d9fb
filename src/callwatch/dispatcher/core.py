"""EventDispatcher core implementation.

This module contains the EventDispatcher class, the hub that routes both
structured call events and named payload events to their listeners.

CONTENTS:
- EventDispatcher: listener registration, lookup and dispatch
- Structured dispatch: ``dispatch(event)`` keyed by the event's variant
- Named dispatch: ``dispatch("user.create", payload)`` keyed by name

DISPATCH FLOW:
1. Determine the registry key and the value handed to listeners
2. Return early if the event was stopped before dispatch
3. Resolve listeners (exact and wildcard, priority ordered)
4. Call listeners in order until one returns ``False`` or stops the event
5. Wrap foreign listener exceptions in DispatchError
6. Return the (possibly mutated) event or payload

THREAD SAFETY: Registration and lookup are serialized by the registry lock.
Dispatch itself is synchronous and runs listeners on the calling thread;
nested dispatches from inside a listener complete before the outer dispatch
moves on to its next listener.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, MutableMapping
from typing import Any, TypeVar, overload

from ..config import DispatcherConfig
from ..events import Event, EventKind
from ..exceptions import (
    CallwatchError,
    DispatchError,
    EmptyEventName,
    PropagationAlreadyStopped,
)
from .context import DispatchContext, current_dispatch
from .protocols import EventName, EventPriority, F, Listener
from .registration import ListenerRegistry
from .tracing import EventTracer

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Event)
Payload = MutableMapping[str, Any]
ListenerKey = EventName | EventKind | type[Event]


def _listener_key(pattern: ListenerKey) -> EventName:
    """Normalize a registration key: event classes map to their variant key."""
    if isinstance(pattern, type) and issubclass(pattern, Event):
        return pattern.kind.value
    if isinstance(pattern, EventKind):
        return pattern.value
    return pattern


class EventDispatcher:
    """
    In-process event dispatcher with pattern-based, priority-ordered listeners.

    PURPOSE: Deliver call events and named events to listeners registered for
    an exact name, for a wildcard pattern, or for an event variant.

    TYPICAL USAGE:
    ```python
    dispatcher = EventDispatcher()

    @dispatcher.on("user.*", priority=10)
    def audit(payload: dict) -> None:
        payload["audited"] = True

    payload = dispatcher.dispatch("user.create", {"name": "ada"})
    assert payload["audited"] is True
    ```

    PRIORITY SYSTEM:
    - Priorities range from -100 to 100, default 0
    - Higher priorities run first
    - Equal priorities run in registration order, across exact and wildcard
      registrations alike

    STOPPING:
    - A listener returning the boolean ``False`` stops the current dispatch
    - A listener calling ``event.stop_propagation()`` stops it as well
    - Neither affects later dispatches

    ERROR HANDLING:
    - Exceptions deriving from CallwatchError propagate unchanged
    - Any other listener exception is wrapped in DispatchError (chained),
      unless ``wrap_listener_errors`` is disabled

    CONFIGURATION OPTIONS:
    - wrap_listener_errors: wrap foreign listener exceptions (default True)
    - raise_on_stopped: raise for events stopped before dispatch
    - debug: log registrations and listener failures
    - event_trace / trace_verbosity / trace_use_rich: dispatch tracing
    """

    def __init__(self, config: DispatcherConfig | None = None, **overrides: Any):
        """
        Initialize EventDispatcher.

        Args:
            config: Dispatcher options; defaults are used when omitted
            **overrides: Individual DispatcherConfig fields overriding ``config``
        """
        if config is None:
            config = DispatcherConfig(**overrides)
        elif overrides:
            config = DispatcherConfig(**{**config.model_dump(), **overrides})
        else:
            # Private copy: set_event_trace mutates self.config.
            config = config.model_copy()
        self.config = config

        self._registry = ListenerRegistry(debug=lambda: self.config.debug)
        self._tracer = EventTracer(
            enabled=config.event_trace,
            verbosity=config.trace_verbosity,
            use_rich=config.trace_use_rich,
        )
        if config.event_trace:
            logger.debug("Event tracing enabled")

    def add_listener(
        self,
        pattern: ListenerKey,
        callback: Listener | Callable[..., Any],
        priority: EventPriority = 0,
    ) -> None:
        """
        Register ``callback`` for an event name, pattern, or event variant.

        Args:
            pattern: Exact name (``"user.create"``), wildcard pattern
                (``"user.*"``, ``"user.{create,delete}"``), or an Event class
                such as ``BeforeMethodEvent``
            callback: Called with the event or payload being dispatched
            priority: Integer in [-100, 100]; higher runs first

        Raises:
            InvalidPriority: If priority is outside [-100, 100]
        """
        self._registry.register(_listener_key(pattern), callback, priority)

    def on(self, pattern: ListenerKey, priority: EventPriority = 0) -> Callable[[F], F]:
        """Decorator form of :meth:`add_listener`; returns the function unchanged.

        Example:
            ```python
            @dispatcher.on(AfterMethodEvent, priority=50)
            def log_result(event: AfterMethodEvent) -> None:
                logger.info("%s -> %r", event.member, event.result)
            ```
        """

        def decorator(fn: F) -> F:
            self.add_listener(pattern, fn, priority)
            return fn

        return decorator

    def remove_listener(
        self, pattern: ListenerKey, callback: Listener | Callable[..., Any]
    ) -> None:
        """Remove a listener added with :meth:`add_listener`.

        Raises:
            ListenerNotFound: If ``callback`` is not registered for ``pattern``
        """
        self._registry.unregister(_listener_key(pattern), callback)

    @overload
    def get_listeners(self, event_name: ListenerKey) -> list[Callable[..., Any]]: ...

    @overload
    def get_listeners(
        self, event_name: None = None
    ) -> dict[EventName, list[Callable[..., Any]]]: ...

    def get_listeners(self, event_name: ListenerKey | None = None) -> Any:
        """Listeners that a dispatch of ``event_name`` would call, in order.

        Without an argument, returns every registered pattern mapped to its
        ordered listeners.
        """
        if event_name is None:
            return self._registry.snapshot()
        return self._registry.resolve(_listener_key(event_name))

    def has_listeners(self, event_name: ListenerKey) -> bool:
        return bool(self._registry.resolve_entries(_listener_key(event_name)))

    def listener_count(self, pattern: ListenerKey | None = None) -> int:
        """Registrations under ``pattern`` exactly, or in total when omitted."""
        if pattern is None:
            return self._registry.count()
        return self._registry.count(_listener_key(pattern))

    @property
    def current(self) -> DispatchContext:
        """Context of the dispatch whose listeners are running right now."""
        ctx = current_dispatch.get()
        if ctx is None:
            raise RuntimeError("No dispatch in progress")
        return ctx

    def set_event_trace(
        self, enabled: bool, verbosity: int = 1, use_rich: bool = True
    ) -> None:
        """
        Enable or disable dispatch tracing.

        Args:
            enabled: Whether to trace dispatches
            verbosity: Level of detail (0=minimal, 1=normal, 2=verbose)
            use_rich: Whether to use Rich formatting for output
        """
        self.config.event_trace = enabled
        self.config.trace_verbosity = verbosity
        self.config.trace_use_rich = use_rich
        self._tracer.configure(enabled, verbosity, use_rich)

    @property
    def event_trace_enabled(self) -> bool:
        return self._tracer.enabled

    @overload
    def dispatch(self, event: E) -> E: ...

    @overload
    def dispatch(self, event: EventName, payload: Payload | None = None) -> Payload: ...

    def dispatch(self, event: Event | EventName, payload: Payload | None = None) -> Any:
        """
        Deliver ``event`` to its listeners and return what they observed.

        Structured events are keyed by their variant (``event.key``) and are
        themselves passed to listeners. Named events are keyed by the name and
        listeners receive ``payload`` (a new dict when omitted); in-place
        changes made by one listener are visible to the next and to the caller.

        Args:
            event: Structured Event or event name
            payload: Mapping for named dispatch only

        Returns:
            The same Event instance, or the same payload mapping

        Raises:
            EmptyEventName: For a named dispatch with an empty name
            PropagationAlreadyStopped: For a stopped event, when raise_on_stopped
            DispatchError: When a listener raised a foreign exception
        """
        value: Event | Payload
        if isinstance(event, Event):
            if payload is not None:
                raise TypeError("payload is only accepted for a named dispatch")
            event_name = event.key
            value = event
            kind = "event"
        elif isinstance(event, str):
            if not event:
                raise EmptyEventName(event)
            event_name = event
            value = payload if payload is not None else {}
            kind = "named"
        else:
            raise TypeError(
                f"Cannot dispatch {type(event).__name__!s}; expected an Event or an event name"
            )

        if isinstance(value, Event) and value.propagation_stopped:
            if self.config.raise_on_stopped:
                raise PropagationAlreadyStopped(event_name)
            return value

        start_time = time.perf_counter()
        listeners = self._registry.resolve(event_name)

        parent = current_dispatch.get()
        token = current_dispatch.set(
            DispatchContext(
                event_name=event_name,
                value=value,
                depth=parent.depth + 1 if parent is not None else 0,
            )
        )
        error: BaseException | None = None
        stopped = False

        try:
            for listener in listeners:
                try:
                    result = listener(value)
                except CallwatchError as e:
                    error = e
                    raise
                except Exception as e:
                    error = e
                    if self.config.debug:
                        logger.exception(f"Listener {listener!r} failed for {event_name!r}")
                    if not self.config.wrap_listener_errors:
                        raise
                    raise DispatchError(event_name, str(e)) from e

                if result is False or (
                    isinstance(value, Event) and value.propagation_stopped
                ):
                    stopped = True
                    break
        finally:
            current_dispatch.reset(token)
            self._tracer.record(
                event_name,
                kind,
                value,
                len(listeners),
                duration_ms=(time.perf_counter() - start_time) * 1000,
                error=error,
                stopped=stopped,
            )

        return value


__all__ = ["EventDispatcher"]
