from __future__ import annotations

import logging

import pytest

from callwatch import BeforeFunctionEvent, DispatcherConfig, EventDispatcher
from callwatch.exceptions import (
    CallwatchError,
    DispatchError,
    EmptyEventName,
    InvalidPriority,
    PropagationAlreadyStopped,
)


@pytest.fixture()
def dispatcher() -> EventDispatcher:
    return EventDispatcher()


def test_foreign_listener_error_is_wrapped(dispatcher: EventDispatcher) -> None:
    @dispatcher.on("demo.failure")
    def failing(_) -> None:
        raise RuntimeError("Test exception")

    with pytest.raises(DispatchError) as excinfo:
        dispatcher.dispatch("demo.failure")

    error = excinfo.value
    assert str(error) == 'Error dispatching event "demo.failure": Test exception'
    assert error.event_name == "demo.failure"
    assert error.cause == "Test exception"
    assert isinstance(error.__cause__, RuntimeError)


def test_wrapped_error_uses_variant_key_for_events(
    dispatcher: EventDispatcher,
) -> None:
    @dispatcher.on(BeforeFunctionEvent)
    def failing(_) -> None:
        raise ValueError("bad")

    with pytest.raises(DispatchError) as excinfo:
        dispatcher.dispatch(BeforeFunctionEvent("work"))

    assert excinfo.value.event_name == "BeforeFunctionEvent"


def test_own_error_kinds_propagate_unwrapped(dispatcher: EventDispatcher) -> None:
    @dispatcher.on("demo.own")
    def failing(_) -> None:
        raise EmptyEventName("nested")

    with pytest.raises(EmptyEventName):
        dispatcher.dispatch("demo.own")


def test_nested_dispatch_error_is_not_double_wrapped(
    dispatcher: EventDispatcher,
) -> None:
    @dispatcher.on("outer")
    def outer(_) -> None:
        dispatcher.dispatch("inner")

    @dispatcher.on("inner")
    def inner(_) -> None:
        raise KeyError("missing")

    with pytest.raises(DispatchError) as excinfo:
        dispatcher.dispatch("outer")

    assert excinfo.value.event_name == "inner"


def test_invalid_registration_inside_listener_propagates(
    dispatcher: EventDispatcher,
) -> None:
    @dispatcher.on("demo")
    def registering(_) -> None:
        dispatcher.add_listener("other", lambda _: None, priority=500)

    with pytest.raises(InvalidPriority):
        dispatcher.dispatch("demo")


def test_error_stops_remaining_listeners(dispatcher: EventDispatcher) -> None:
    calls: list[str] = []

    @dispatcher.on("demo", priority=10)
    def failing(_) -> None:
        raise RuntimeError("boom")

    @dispatcher.on("demo", priority=5)
    def never(_) -> None:
        calls.append("never")

    with pytest.raises(DispatchError):
        dispatcher.dispatch("demo")

    assert calls == []


def test_wrapping_can_be_disabled() -> None:
    dispatcher = EventDispatcher(wrap_listener_errors=False)

    @dispatcher.on("demo")
    def failing(_) -> None:
        raise RuntimeError("raw")

    with pytest.raises(RuntimeError, match="raw"):
        dispatcher.dispatch("demo")


def test_raise_on_stopped() -> None:
    dispatcher = EventDispatcher(DispatcherConfig(raise_on_stopped=True))
    event = BeforeFunctionEvent("work")
    event.stop_propagation()

    with pytest.raises(PropagationAlreadyStopped, match="already stopped"):
        dispatcher.dispatch(event)


def test_all_error_kinds_share_base_class() -> None:
    for kind in (DispatchError, EmptyEventName, InvalidPriority, PropagationAlreadyStopped):
        assert issubclass(kind, CallwatchError)


def test_debug_mode_logs_listener_failure(caplog: pytest.LogCaptureFixture) -> None:
    dispatcher = EventDispatcher(debug=True)

    @dispatcher.on("demo")
    def failing(_) -> None:
        raise RuntimeError("logged")

    with caplog.at_level(logging.DEBUG, logger="callwatch"):
        with pytest.raises(DispatchError):
            dispatcher.dispatch("demo")

    assert any("failed for 'demo'" in record.getMessage() for record in caplog.records)


def test_debug_mode_logs_registration(caplog: pytest.LogCaptureFixture) -> None:
    dispatcher = EventDispatcher(debug=True)

    with caplog.at_level(logging.DEBUG, logger="callwatch"):
        dispatcher.add_listener("user.*", lambda _: None, priority=7)

    assert any(
        "for 'user.*' at priority 7 (wildcard)" in record.getMessage()
        for record in caplog.records
    )
