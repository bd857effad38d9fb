"""Runtime options for :class:`callwatch.dispatcher.EventDispatcher`."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DispatcherConfig(BaseModel):
    """Behavior switches for one dispatcher instance.

    Example:
        ```python
        dispatcher = EventDispatcher(DispatcherConfig(wrap_listener_errors=False))
        # or, equivalently
        dispatcher = EventDispatcher(wrap_listener_errors=False)
        ```
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    wrap_listener_errors: bool = True
    """Wrap exceptions foreign to callwatch raised by listeners in DispatchError."""

    raise_on_stopped: bool = False
    """Raise PropagationAlreadyStopped instead of silently returning a stopped event."""

    debug: bool = False
    """Log registrations and listener failures."""

    event_trace: bool = False
    """Print every dispatch with its listener count and timing."""

    trace_verbosity: int = Field(default=1, ge=0, le=2)
    """0=minimal, 1=normal, 2=verbose."""

    trace_use_rich: bool = True
    """Render traces with Rich on stderr instead of plain log lines."""
