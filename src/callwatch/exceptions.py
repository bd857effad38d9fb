"""Error kinds raised by the dispatcher and the interception wrapper."""

from __future__ import annotations


class CallwatchError(Exception):
    """Base exception for every error raised by callwatch itself.

    The dispatcher lets subclasses of this type pass through unwrapped, so
    callers can always match on the concrete kind.
    """


class EmptyEventName(CallwatchError):
    """Raised when a named dispatch is attempted with an empty event name."""

    def __init__(self, event_name: str = "") -> None:
        super().__init__(f'Invalid event name: "{event_name}"')
        self.event_name = event_name


class InvalidPriority(CallwatchError):
    """Raised when a listener or binding priority is outside [-100, 100]."""

    def __init__(self, priority: int) -> None:
        super().__init__(f"Invalid event listener priority: {priority}")
        self.priority = priority


class DispatchError(CallwatchError):
    """Raised when a listener fails with an exception foreign to callwatch.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, event_name: str, cause: str) -> None:
        super().__init__(f'Error dispatching event "{event_name}": {cause}')
        self.event_name = event_name
        self.cause = cause


class PropagationAlreadyStopped(CallwatchError):
    """Raised for an event whose propagation was stopped before dispatch.

    Only raised when the dispatcher is configured with ``raise_on_stopped``;
    otherwise such events are returned untouched.
    """

    def __init__(self, event_name: str) -> None:
        super().__init__(f'Event "{event_name}" propagation was already stopped')
        self.event_name = event_name


class ListenerNotFound(CallwatchError):
    """Raised when removing a listener that is not registered."""

    def __init__(self, event_name: str) -> None:
        super().__init__(f'No listeners found for event "{event_name}"')
        self.event_name = event_name


__all__ = [
    "CallwatchError",
    "DispatchError",
    "EmptyEventName",
    "InvalidPriority",
    "ListenerNotFound",
    "PropagationAlreadyStopped",
]
