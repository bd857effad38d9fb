"""Re-export the dispatcher package's public API under one import path."""

from __future__ import annotations

# Dispatch context
from .context import DispatchContext, current_dispatch

# Main EventDispatcher class
from .core import EventDispatcher

# Pattern matching
from .patterns import PatternMatcher, compile_pattern, is_wildcard

# Core protocols and types
from .protocols import (
    MAX_PRIORITY,
    MIN_PRIORITY,
    EventName,
    EventPriority,
    Listener,
    validate_priority,
)

# Listener registration
from .registration import ListenerEntry, ListenerRegistry

# Tracing
from .tracing import EventTracer

__all__ = [
    # Core classes
    "EventDispatcher",
    "DispatchContext",
    "ListenerRegistry",
    "ListenerEntry",
    "PatternMatcher",
    "EventTracer",
    # Functions
    "compile_pattern",
    "is_wildcard",
    "validate_priority",
    # Type aliases
    "EventName",
    "EventPriority",
    "Listener",
    "MAX_PRIORITY",
    "MIN_PRIORITY",
    # Context variable (advanced usage)
    "current_dispatch",
]
