"""Context of the dispatch currently running listeners.

Listeners can look up which dispatch invoked them without it being passed
explicitly, which is handy for listeners shared across several event names::

    @dispatcher.on("user.*")
    def audit(payload):
        logger.info("saw %s", dispatcher.current.event_name)
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

from .protocols import EventName


@dataclass(frozen=True, slots=True)
class DispatchContext:
    """The dispatch key and the value handed to listeners."""

    event_name: EventName
    """Registry key of the dispatch (event name or event variant key)."""

    value: Any
    """Structured event or payload mapping shared by the listener chain."""

    depth: int = 0
    """Nesting level; 0 for a dispatch not started from inside a listener."""


current_dispatch: contextvars.ContextVar[DispatchContext | None] = (
    contextvars.ContextVar("current_dispatch", default=None)
)
"""ContextVar exposing the innermost running DispatchContext."""
