"""Method and function interception through an EventDispatcher.

The interceptor replaces a callable with a wrapper that runs the call
protocol below on every invocation:

1. BEFORE: for each before-binding, in declaration order, build a Before
   event, dispatch it by its variant key and then by name (the binding's
   override or ``<member>.before``) with an envelope mapping. Once a
   listener stops the event, the remaining before-bindings are skipped. The
   call itself always proceeds.
2. EXECUTE: call the original with the original arguments.
3. AFTER: for each after-binding, build an After event carrying either the
   result or the exception and dispatch it the same way (``<member>.after``
   by default). Once a listener stops the event, the remaining
   after-bindings are skipped.
4. Return the original result unchanged, or re-raise the original exception.

Envelope keys for named dispatches are ``event``, ``target`` (methods only),
``member``, ``arguments``, ``kwargs`` and, for after-notifications, either
``result`` or ``exception``.

A listener that raises during the before or success phases propagates to the
caller, which is how a listener vetoes a call. Listener failures while
reporting an exception from the wrapped call are logged and attached to the
original exception as a note; the original exception is what the caller sees.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable, Iterable
from typing import Any

from ..dispatcher.core import EventDispatcher
from ..events import (
    AfterFunctionEvent,
    AfterMethodEvent,
    BeforeFunctionEvent,
    BeforeMethodEvent,
    Event,
)
from .bindings import Binding, BindingSet, as_bindings, collect_bindings

logger = logging.getLogger(__name__)

_MISSING = object()

BindingsArg = Iterable[Binding | str | None] | None


class _CallSite:
    """Dispatches the notifications of one wrapped callable."""

    __slots__ = ("dispatcher", "member", "target", "bindings")

    def __init__(
        self,
        dispatcher: EventDispatcher,
        member: str,
        bindings: BindingSet,
        target: Any = _MISSING,
    ):
        self.dispatcher = dispatcher
        self.member = member
        self.bindings = bindings
        self.target = target

    @property
    def is_method(self) -> bool:
        return self.target is not _MISSING

    def _before_event(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Event:
        if self.is_method:
            return BeforeMethodEvent(self.target, self.member, args, kwargs)
        return BeforeFunctionEvent(self.member, args, kwargs)

    def _after_event(
        self,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        result: Any,
        exception: BaseException | None,
    ) -> Event:
        if self.is_method:
            return AfterMethodEvent(
                self.target, self.member, args, kwargs, result=result, exception=exception
            )
        return AfterFunctionEvent(
            self.member, args, kwargs, result=result, exception=exception
        )

    def _envelope(self, event: Event, kwargs: dict[str, Any]) -> dict[str, Any]:
        envelope: dict[str, Any] = {"event": event}
        if self.is_method:
            envelope["target"] = self.target
        envelope["member"] = self.member
        envelope["arguments"] = event.arguments
        envelope["kwargs"] = dict(kwargs)
        return envelope

    def _notify(self, event: Event, name: str, envelope: dict[str, Any]) -> bool:
        """Dispatch by variant then by name; True when the event was stopped."""
        self.dispatcher.dispatch(event)
        self.dispatcher.dispatch(name, envelope)
        return event.propagation_stopped

    def before(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        for binding in self.bindings.before:
            event = self._before_event(args, kwargs)
            if self._notify(
                event,
                binding.event_name(self.member, "before"),
                self._envelope(event, kwargs),
            ):
                break

    def after(
        self,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        for binding in self.bindings.after:
            event = self._after_event(args, kwargs, result, exception)
            envelope = self._envelope(event, kwargs)
            if exception is not None:
                envelope["exception"] = exception
            else:
                envelope["result"] = result
            if self._notify(event, binding.event_name(self.member, "after"), envelope):
                break

    def after_failure(
        self, args: tuple[Any, ...], kwargs: dict[str, Any], exception: Exception
    ) -> None:
        """Report ``exception`` without letting a listener replace it."""
        try:
            self.after(args, kwargs, exception=exception)
        except Exception as listener_error:
            logger.exception(
                f"Listener failed while reporting {type(exception).__name__} "
                f"from {self.member!r}"
            )
            exception.add_note(
                f"callwatch: after-listener for {self.member!r} failed: {listener_error!r}"
            )


def _intercept(func: Callable[..., Any], site: _CallSite) -> Callable[..., Any]:
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            site.before(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                site.after_failure(args, kwargs, e)
                raise
            site.after(args, kwargs, result=result)
            return result

        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        site.before(args, kwargs)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            site.after_failure(args, kwargs, e)
            raise
        site.after(args, kwargs, result=result)
        return result

    return sync_wrapper


def _resolve_bindings(
    func: Callable[..., Any], before: BindingsArg, after: BindingsArg
) -> BindingSet:
    if before is None and after is None:
        return collect_bindings(func)
    return BindingSet(as_bindings(before), as_bindings(after))


class EventInterceptor:
    """
    Produces wrappers that emit before/after events through a dispatcher.

    TYPICAL USAGE:
    ```python
    dispatcher = EventDispatcher()
    interceptor = EventInterceptor(dispatcher)

    @dispatcher.on("user.create")
    def validate(envelope: dict) -> None:
        if "@" not in envelope["arguments"][1]:
            raise ValueError("Invalid email address")

    create_user = interceptor.wrap_method(
        service, "create_user", before=["user.create"], after=["user.created"]
    )
    create_user("ada", "ada@example.com")
    ```

    When neither ``before`` nor ``after`` is given, bindings are read from
    the ``@event_before`` / ``@event_after`` decorators on the callable.
    """

    def __init__(self, dispatcher: EventDispatcher):
        self.dispatcher = dispatcher

    def wrap_method(
        self,
        target: Any,
        member: str,
        before: BindingsArg = None,
        after: BindingsArg = None,
    ) -> Callable[..., Any]:
        """
        Wrap ``target.member`` so calls emit method events.

        Args:
            target: Object owning the method
            member: Method name
            before: Before-bindings (Binding, event name, or None for the default
                name); discovered from decorators when both lists are omitted
            after: After-bindings, same forms as ``before``

        Returns:
            Callable taking the method's arguments (without ``self``)
        """
        method = getattr(target, member)
        bindings = _resolve_bindings(method, before, after)
        self._log_wrap(member, bindings)
        return _intercept(method, _CallSite(self.dispatcher, member, bindings, target))

    def wrap_function(
        self,
        function: Callable[..., Any],
        before: BindingsArg = None,
        after: BindingsArg = None,
        *,
        name: str | None = None,
    ) -> Callable[..., Any]:
        """
        Wrap a plain function so calls emit function events.

        Args:
            function: Function to wrap
            before: Before-bindings; discovered from decorators when both lists
                are omitted
            after: After-bindings
            name: Member name used in events; defaults to ``function.__name__``
        """
        member = name or getattr(function, "__name__", repr(function))
        bindings = _resolve_bindings(function, before, after)
        self._log_wrap(member, bindings)
        return _intercept(function, _CallSite(self.dispatcher, member, bindings))

    def wrap(
        self,
        target: Any,
        member: str | None = None,
        before: BindingsArg = None,
        after: BindingsArg = None,
    ) -> Callable[..., Any]:
        """Wrap ``target.member`` when a member name is given, else ``target`` itself."""
        if member is None:
            if not callable(target):
                raise TypeError(f"{target!r} is not callable")
            return self.wrap_function(target, before, after)
        return self.wrap_method(target, member, before, after)

    def install(
        self,
        target: Any,
        member: str,
        before: BindingsArg = None,
        after: BindingsArg = None,
    ) -> Callable[..., Any]:
        """Wrap ``target.member`` and replace it on the instance.

        Later ``target.member(...)`` calls, including calls the object makes
        on itself, go through the wrapper.
        """
        wrapper = self.wrap_method(target, member, before, after)
        setattr(target, member, wrapper)
        return wrapper

    def _log_wrap(self, member: str, bindings: BindingSet) -> None:
        if self.dispatcher.config.debug:
            logger.debug(
                f"Intercepting {member!r} with {len(bindings.before)} before and "
                f"{len(bindings.after)} after bindings"
            )


__all__ = ["EventInterceptor"]
