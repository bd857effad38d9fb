"""Listener registration and lookup with thread-safe access.

CONTENTS:
- ListenerEntry: Metadata for one registered listener
- ListenerRegistry: Exact-name and wildcard listener storage and resolution

ORDERING: Every per-key list is kept sorted by priority (high to low) and then
by registration sequence (early to late). Sequence numbers are shared by exact
and wildcard registrations, so ties across both kinds resolve in registration
order.

THREAD SAFETY: All registry operations are protected by threading.RLock so that
registration never interleaves with a lookup in progress.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ListenerNotFound
from .patterns import PatternMatcher, compile_pattern, is_wildcard
from .protocols import EventName, EventPriority, validate_priority

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ListenerEntry:
    """Registration metadata for one listener.

    Attributes:
        pattern: Exact event name or wildcard pattern the listener was added for
        priority: Execution priority in [-100, 100], higher runs first
        callback: The listener callable
        sequence: Global registration counter, breaks priority ties
    """

    pattern: EventName
    priority: EventPriority
    callback: Callable[..., Any]
    sequence: int
    matcher: PatternMatcher | None = field(default=None, compare=False, repr=False)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (-self.priority, self.sequence)


def _callback_name(callback: Callable[..., Any]) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class ListenerRegistry:
    """Thread-safe listener storage and lookup.

    Exact names are stored in a plain dict for O(1) lookup; patterns containing
    ``*`` or ``{`` are stored separately and matched against each resolved
    name.

    Example:
        ```python
        registry = ListenerRegistry()
        registry.register("user.create", on_create, priority=10)
        registry.register("user.*", audit)
        registry.resolve("user.create")  # [on_create, audit]
        ```
    """

    def __init__(self, debug: bool | Callable[[], bool] = False):
        """
        Args:
            debug: Log registrations and removals; a callable is consulted on
                every change so the flag can follow a live config object
        """
        self._lock = threading.RLock()
        """RLock for thread-safe registration and lookup."""

        self._exact: dict[EventName, list[ListenerEntry]] = {}
        """Exact event name -> sorted entries."""

        self._wildcards: dict[EventName, list[ListenerEntry]] = {}
        """Wildcard pattern -> sorted entries."""

        self._sequence = itertools.count()
        self._debug = debug

    @property
    def debug(self) -> bool:
        return self._debug() if callable(self._debug) else self._debug

    def register(
        self,
        pattern: EventName,
        callback: Callable[..., Any],
        priority: EventPriority = 0,
    ) -> ListenerEntry:
        """Register ``callback`` for ``pattern`` at ``priority``.

        Raises:
            InvalidPriority: If priority is outside [-100, 100]

        THREAD SAFETY: Protected by self._lock
        """
        validate_priority(priority)
        wildcard = is_wildcard(pattern)

        with self._lock:
            entry = ListenerEntry(
                pattern=pattern,
                priority=priority,
                callback=callback,
                sequence=next(self._sequence),
                matcher=compile_pattern(pattern) if wildcard else None,
            )
            table = self._wildcards if wildcard else self._exact
            entries = table.setdefault(pattern, [])
            entries.append(entry)
            entries.sort(key=lambda e: e.sort_key)

        if self.debug:
            logger.debug(
                f"Registered {_callback_name(callback)} for {pattern!r} "
                f"at priority {priority}"
                + (" (wildcard)" if wildcard else "")
            )
        return entry

    def unregister(self, pattern: EventName, callback: Callable[..., Any]) -> None:
        """Remove the earliest registration of ``callback`` under ``pattern``.

        Raises:
            ListenerNotFound: If the callback is not registered for that pattern

        THREAD SAFETY: Protected by self._lock
        """
        with self._lock:
            table = self._wildcards if is_wildcard(pattern) else self._exact
            entries = table.get(pattern, [])
            for index, entry in enumerate(entries):
                if entry.callback == callback:
                    del entries[index]
                    break
            else:
                raise ListenerNotFound(pattern)
            if not entries:
                del table[pattern]

        if self.debug:
            logger.debug(f"Removed {_callback_name(callback)} from {pattern!r}")

    def resolve_entries(self, event_name: EventName) -> list[ListenerEntry]:
        """Entries matching ``event_name``, sorted by priority then sequence.

        THREAD SAFETY: Protected by self._lock for reading the listener lists
        """
        with self._lock:
            entries = list(self._exact.get(event_name, ()))
            for wildcard_entries in self._wildcards.values():
                matcher = wildcard_entries[0].matcher
                if matcher is not None and matcher.matches(event_name):
                    entries.extend(wildcard_entries)

        entries.sort(key=lambda e: e.sort_key)
        return entries

    def resolve(self, event_name: EventName) -> list[Callable[..., Any]]:
        """Listener callbacks for ``event_name`` in execution order."""
        return [entry.callback for entry in self.resolve_entries(event_name)]

    def snapshot(self) -> dict[EventName, list[Callable[..., Any]]]:
        """Every registered pattern mapped to its ordered callbacks.

        THREAD SAFETY: Protected by self._lock
        """
        with self._lock:
            tables: Iterable[tuple[EventName, list[ListenerEntry]]] = itertools.chain(
                self._exact.items(), self._wildcards.items()
            )
            return {
                pattern: [entry.callback for entry in entries]
                for pattern, entries in tables
            }

    def count(self, pattern: EventName | None = None) -> int:
        """Number of registrations for ``pattern``, or in total when omitted.

        THREAD SAFETY: Protected by self._lock
        """
        with self._lock:
            if pattern is not None:
                table = self._wildcards if is_wildcard(pattern) else self._exact
                return len(table.get(pattern, ()))
            return sum(len(entries) for entries in self._exact.values()) + sum(
                len(entries) for entries in self._wildcards.values()
            )


__all__ = ["ListenerEntry", "ListenerRegistry"]
