from __future__ import annotations

import gc

import pytest

from callwatch.events import (
    AfterFunctionEvent,
    AfterMethodEvent,
    BeforeFunctionEvent,
    BeforeMethodEvent,
    EventKind,
)


class Service:
    def run(self) -> None:
        return None


def test_each_variant_has_fixed_key() -> None:
    service = Service()

    assert BeforeMethodEvent(service, "run").key == "BeforeMethodEvent"
    assert AfterMethodEvent(service, "run").key == "AfterMethodEvent"
    assert BeforeFunctionEvent("run").key == "BeforeFunctionEvent"
    assert AfterFunctionEvent("run").key == "AfterFunctionEvent"
    assert BeforeMethodEvent.kind is EventKind.BEFORE_METHOD
    assert EventKind.AFTER_FUNCTION.key == "AfterFunctionEvent"


def test_before_kinds() -> None:
    assert EventKind.BEFORE_METHOD.is_before
    assert EventKind.BEFORE_FUNCTION.is_before
    assert not EventKind.AFTER_METHOD.is_before


def test_snapshot_fields_are_read_only() -> None:
    event = BeforeFunctionEvent("work", ["a", "b"], {"flag": True})

    assert event.member == "work"
    assert event.arguments == ("a", "b")
    assert event.kwargs == {"flag": True}

    with pytest.raises(AttributeError):
        event.member = "other"  # type: ignore[misc]
    with pytest.raises(TypeError):
        event.kwargs["flag"] = False  # type: ignore[index]


def test_argument_snapshot_is_taken_at_construction() -> None:
    arguments = ["a"]
    event = BeforeFunctionEvent("work", arguments)

    arguments.append("b")

    assert event.arguments == ("a",)


def test_stop_propagation_is_one_way() -> None:
    event = BeforeFunctionEvent("work")
    assert event.propagation_stopped is False

    event.stop_propagation()
    event.stop_propagation()

    assert event.propagation_stopped is True
    with pytest.raises(AttributeError):
        event.propagation_stopped = False  # type: ignore[misc]


def test_after_event_success_outcome() -> None:
    event = AfterFunctionEvent("work", result="done")

    assert event.result == "done"
    assert event.exception is None
    assert event.has_exception is False


def test_after_event_failure_outcome() -> None:
    error = RuntimeError("boom")
    event = AfterMethodEvent(Service(), "run", exception=error)

    assert event.result is None
    assert event.exception is error
    assert event.has_exception is True


def test_after_event_rejects_result_and_exception() -> None:
    with pytest.raises(ValueError):
        AfterFunctionEvent("work", result=1, exception=RuntimeError("boom"))


def test_method_event_does_not_keep_target_alive() -> None:
    service = Service()
    event = BeforeMethodEvent(service, "run")

    assert event.target is service

    del service
    gc.collect()

    assert event.target is None


def test_method_event_accepts_non_weakrefable_target() -> None:
    event = BeforeMethodEvent(42, "bit_length")

    assert event.target == 42


def test_repr_includes_outcome_and_stop_flag() -> None:
    event = AfterFunctionEvent("work", ("x",), result="X")
    event.stop_propagation()

    text = repr(event)

    assert text.startswith("AfterFunctionEvent(")
    assert "member='work'" in text
    assert "result='X'" in text
    assert "propagation_stopped=True" in text
