"""Interception of methods and functions with before/after events."""

from __future__ import annotations

from .bindings import (
    Binding,
    BindingSet,
    as_bindings,
    collect_bindings,
    event_after,
    event_before,
)
from .wrapper import EventInterceptor

__all__ = [
    "Binding",
    "BindingSet",
    "EventInterceptor",
    "as_bindings",
    "collect_bindings",
    "event_after",
    "event_before",
]
