"""callwatch - observe and veto calls through before/after events.

An EventDispatcher routes structured call events and named events to
priority-ordered listeners; an EventInterceptor wraps methods and functions
so that each call emits before/after events through that dispatcher.
"""

import logging

from .config import DispatcherConfig
from .dispatcher import (
    DispatchContext,
    EventDispatcher,
    ListenerRegistry,
    compile_pattern,
)
from .events import (
    AfterFunctionEvent,
    AfterMethodEvent,
    BeforeFunctionEvent,
    BeforeMethodEvent,
    Event,
    EventKind,
)
from .exceptions import (
    CallwatchError,
    DispatchError,
    EmptyEventName,
    InvalidPriority,
    ListenerNotFound,
    PropagationAlreadyStopped,
)
from .interception import (
    Binding,
    BindingSet,
    EventInterceptor,
    collect_bindings,
    event_after,
    event_before,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Dispatcher
    "DispatchContext",
    "DispatcherConfig",
    "EventDispatcher",
    "ListenerRegistry",
    "compile_pattern",
    # Events
    "AfterFunctionEvent",
    "AfterMethodEvent",
    "BeforeFunctionEvent",
    "BeforeMethodEvent",
    "Event",
    "EventKind",
    # Interception
    "Binding",
    "BindingSet",
    "EventInterceptor",
    "collect_bindings",
    "event_after",
    "event_before",
    # Errors
    "CallwatchError",
    "DispatchError",
    "EmptyEventName",
    "InvalidPriority",
    "ListenerNotFound",
    "PropagationAlreadyStopped",
]
