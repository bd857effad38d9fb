"""Named events with wildcard listeners, priorities and tracing."""

from __future__ import annotations

from callwatch import EventDispatcher

dispatcher = EventDispatcher(event_trace=True, trace_verbosity=1)


@dispatcher.on("order.*", priority=10)
def stamp(payload: dict) -> None:
    payload.setdefault("seen_by", []).append("stamp")


@dispatcher.on("order.{paid,refunded}")
def ledger(payload: dict) -> None:
    payload["seen_by"].append("ledger")


@dispatcher.on("order.cancelled", priority=20)
def block_cancellation(payload: dict) -> bool:
    # Returning False stops the remaining listeners for this dispatch only.
    return not payload.get("locked", False)


def main() -> None:
    for name in ("order.created", "order.paid", "order.cancelled"):
        payload = dispatcher.dispatch(name, {"order_id": 7, "locked": True})
        print(f"{name}: {payload.get('seen_by', [])}")


if __name__ == "__main__":
    main()
