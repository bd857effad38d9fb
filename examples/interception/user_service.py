"""Observe and validate user-service calls through before/after events."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Any

from callwatch import (
    AfterMethodEvent,
    BeforeMethodEvent,
    DispatchError,
    EventDispatcher,
    EventInterceptor,
    event_after,
    event_before,
)
from callwatch.utilities import configure_library_logging


class UserService:
    def __init__(self) -> None:
        self._users: dict[str, dict[str, Any]] = {}
        self._ids = itertools.count(1)

    @event_before("user.create")
    @event_after("user.created")
    def create_user(self, username: str, email: str) -> dict[str, Any]:
        user = {
            "id": str(next(self._ids)),
            "username": username,
            "email": email,
            "created_at": datetime.now(timezone.utc),
        }
        self._users[user["id"]] = user
        return user

    @event_before()
    @event_after()
    def get_user(self, user_id: str) -> dict[str, Any] | None:
        return self._users.get(user_id)

    @event_before("user.delete")
    @event_after("user.deleted")
    def delete_user(self, user_id: str) -> bool:
        return self._users.pop(user_id, None) is not None


dispatcher = EventDispatcher()


@dispatcher.on(BeforeMethodEvent, priority=100)
def audit_calls(event: BeforeMethodEvent) -> None:
    print(f"[audit] {type(event.target).__name__}.{event.member}{event.arguments}")


@dispatcher.on(AfterMethodEvent, priority=100)
def audit_failures(event: AfterMethodEvent) -> None:
    if event.has_exception:
        print(f"[audit] {event.member} failed: {event.exception!r}")


@dispatcher.on("user.create", priority=50)
def validate_email(envelope: dict[str, Any]) -> None:
    _, email = envelope["arguments"]
    if "@" not in email:
        raise ValueError("Invalid email address")


@dispatcher.on("user.{created,deleted}")
def announce(envelope: dict[str, Any]) -> None:
    print(f"{envelope['member']} -> {envelope['result']!r}")


@dispatcher.on("get_user.after")
def report_lookup(envelope: dict[str, Any]) -> None:
    user = envelope["result"]
    print("User not found" if user is None else f"Found {user['username']}")


def main() -> None:
    configure_library_logging()
    dispatcher.set_event_trace(True, verbosity=0)
    service = UserService()
    interceptor = EventInterceptor(dispatcher)
    for member in ("create_user", "get_user", "delete_user"):
        interceptor.install(service, member)

    user = service.create_user("ada", "ada@example.com")
    service.get_user(user["id"])

    try:
        service.create_user("bob", "not-an-email")
    except DispatchError as exc:
        print(f"Rejected: {exc}")

    service.delete_user(user["id"])
    service.get_user(user["id"])


if __name__ == "__main__":
    main()
