"""Dispatch tracing output.

When tracing is enabled every dispatch prints one line with its key, kind,
listener count and duration. Verbosity 2 adds a table with the payload or
event fields. Output goes to stderr through Rich, or to the module logger at
DEBUG level when Rich formatting is turned off.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..events import Event
from .protocols import EventName

logger = logging.getLogger(__name__)

# Use stderr to avoid interfering with stdout
_console = Console(stderr=True)

_KIND_COLORS = {"event": "magenta", "named": "cyan"}


def _truncate(value: Any, limit: int) -> str:
    text = str(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def _fields(value: Any) -> dict[str, Any]:
    if isinstance(value, Event):
        fields: dict[str, Any] = {
            "member": value.member,
            "arguments": value.arguments,
        }
        if value.kwargs:
            fields["kwargs"] = dict(value.kwargs)
        for name in ("result", "exception"):
            if getattr(value, name, None) is not None:
                fields[name] = getattr(value, name)
        return fields
    if isinstance(value, Mapping):
        return dict(value)
    return {}


class EventTracer:
    """Formats and emits trace records for one dispatcher."""

    def __init__(
        self,
        enabled: bool = False,
        verbosity: int = 1,
        use_rich: bool = True,
        console: Console | None = None,
    ):
        self.enabled = enabled
        self.verbosity = verbosity
        self.use_rich = use_rich
        self.console = console or _console

    def configure(self, enabled: bool, verbosity: int = 1, use_rich: bool = True) -> None:
        self.enabled = enabled
        self.verbosity = verbosity
        self.use_rich = use_rich

        state = "enabled" if enabled else "disabled"
        if use_rich and enabled:
            self.console.print(
                Panel(
                    f"[bold green]✓[/bold green] Event tracing {state}\n"
                    f"[dim]Verbosity: {['minimal', 'normal', 'verbose'][verbosity]}[/dim]",
                    title="Event Tracing",
                    border_style="green",
                )
            )
        elif use_rich:
            self.console.print(f"[yellow]ℹ[/yellow] Event tracing {state}")
        else:
            logger.info(f"Event tracing {state} (verbosity={verbosity})")

    def _format(
        self,
        event_name: EventName,
        kind: str,
        listener_count: int,
        duration_ms: float | None,
        error: BaseException | None,
        stopped: bool,
    ) -> Text:
        color = _KIND_COLORS.get(kind, "white")
        text = Text()
        text.append("⚡ ", style="bold")
        text.append(event_name, style=f"bold {color}")
        text.append(" | ")
        text.append(f"{kind}", style=color)
        text.append(" | ")
        if listener_count > 0:
            text.append(f"listeners: {listener_count}", style="green")
        else:
            text.append("no listeners", style="dim red")

        if duration_ms is not None:
            text.append(" | ")
            if duration_ms < 10:
                dur_style = "green"
            elif duration_ms < 100:
                dur_style = "yellow"
            else:
                dur_style = "red"
            text.append(f"{duration_ms:.2f}ms", style=f"bold {dur_style}")

        if stopped:
            text.append(" | ")
            text.append("stopped", style="yellow")

        if error is not None:
            text.append(" | ")
            text.append(f"ERROR: {error!r}", style="bold red")
        return text

    def _table(self, value: Any) -> Table | None:
        fields = _fields(value)
        if not fields:
            return None
        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Field", style="cyan", width=15)
        table.add_column("Value", overflow="fold")
        for key, field_value in fields.items():
            style = "red" if key == "exception" else None
            table.add_row(Text(str(key)), Text(_truncate(field_value, 100)), style=style)
        return table

    def record(
        self,
        event_name: EventName,
        kind: str,
        value: Any,
        listener_count: int,
        duration_ms: float | None = None,
        error: BaseException | None = None,
        stopped: bool = False,
    ) -> None:
        """Emit one trace record; a no-op when tracing is disabled.

        Never raises; formatting or output failures are logged instead.
        """
        if not self.enabled:
            return
        try:
            self._emit(
                event_name, kind, value, listener_count, duration_ms, error, stopped
            )
        except Exception:
            logger.exception(f"Failed to trace dispatch of {event_name!r}")

    def _emit(
        self,
        event_name: EventName,
        kind: str,
        value: Any,
        listener_count: int,
        duration_ms: float | None,
        error: BaseException | None,
        stopped: bool,
    ) -> None:
        if not self.use_rich:
            parts = [
                "[EVENT TRACE]",
                f"event={event_name!r}",
                f"kind={kind}",
                f"listeners={listener_count}",
            ]
            if duration_ms is not None:
                parts.append(f"duration={duration_ms:.2f}ms")
            if stopped:
                parts.append("stopped=True")
            if error is not None:
                parts.append(f"error={error!r}")
            fields = _fields(value)
            if fields and self.verbosity >= 1:
                parts.append(f"fields={_truncate(fields, 200)}")
            logger.debug(" | ".join(parts))
            return

        text = self._format(
            event_name, kind, listener_count, duration_ms, error, stopped
        )
        if self.verbosity == 1:
            fields = _fields(value)
            if fields:
                items = [f"{k}={_truncate(v, 20)}" for k, v in list(fields.items())[:3]]
                text.append(" [", style="dim")
                text.append(", ".join(items), style="dim")
                if len(fields) > 3:
                    text.append(f", +{len(fields) - 3} more", style="dim italic")
                text.append("]", style="dim")
        self.console.print(text)

        if self.verbosity >= 2:
            table = self._table(value)
            if table is not None:
                self.console.print(table)


__all__ = ["EventTracer"]
