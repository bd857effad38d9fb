from __future__ import annotations

import pytest

from callwatch.exceptions import InvalidPriority
from callwatch.interception import (
    Binding,
    BindingSet,
    as_bindings,
    collect_bindings,
    event_after,
    event_before,
)


class UserService:
    @event_before("user.create")
    @event_after("user.create", priority=10)
    def create_user(self, username: str) -> dict:
        return {"username": username}

    @event_before()
    @event_before("audit.before", priority=-5)
    @event_after()
    def delete_user(self, user_id: str) -> bool:
        return True

    def plain(self) -> None:
        return None


def test_binding_defaults_to_member_name() -> None:
    binding = Binding()

    assert binding.event_name("save", "before") == "save.before"
    assert binding.event_name("save", "after") == "save.after"
    assert Binding("custom").event_name("save", "before") == "custom"


@pytest.mark.parametrize("priority", [-101, 101])
def test_binding_validates_priority(priority: int) -> None:
    with pytest.raises(InvalidPriority):
        Binding(priority=priority)


def test_decorators_reject_invalid_priority() -> None:
    with pytest.raises(InvalidPriority):
        event_before("x", priority=200)


def test_decorators_return_original_function() -> None:
    def work() -> None:
        return None

    assert event_before()(work) is work
    assert event_after()(work) is work


def test_collect_bindings_from_function() -> None:
    bindings = collect_bindings(UserService.create_user)

    assert bindings.before == (Binding("user.create"),)
    assert bindings.after == (Binding("user.create", priority=10),)


def test_collect_bindings_keeps_declaration_order() -> None:
    bindings = collect_bindings(UserService.delete_user)

    assert bindings.before == (Binding(None), Binding("audit.before", priority=-5))
    assert bindings.after == (Binding(None),)


def test_collect_bindings_from_bound_method() -> None:
    service = UserService()

    assert collect_bindings(service.create_user) == collect_bindings(
        UserService.create_user
    )


def test_collect_bindings_without_metadata() -> None:
    bindings = collect_bindings(UserService.plain)

    assert bindings == BindingSet()
    assert not bindings


def test_as_bindings_normalizes_names() -> None:
    assert as_bindings(None) == ()
    assert as_bindings(["x.before", None, Binding("y", 3)]) == (
        Binding("x.before"),
        Binding(None),
        Binding("y", 3),
    )


def test_as_bindings_rejects_other_values() -> None:
    with pytest.raises(TypeError):
        as_bindings([42])  # type: ignore[list-item]
