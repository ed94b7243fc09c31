"""Completion callbacks and readiness tracking.

Subscription-style APIs accept either a plain ``fn(error, result)`` or an
object with ``on_ready`` / ``on_error`` / ``on_stop`` hooks. The value is
resolved once, at the boundary, into the ``Callback`` variant; nothing
downstream inspects its shape again.

``wrap_callback`` runs a callback in the scheduler's root context and then
asks the flush scheduler to resume the caller's context, so callbacks from
several sources wake the caller once per burst.

``ReadinessTracker`` wraps callbacks so the caller can wait until every
callback handed out so far has settled.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from livecursor._errors import InvalidInputError
from livecursor.scheduling.context import current_context

if TYPE_CHECKING:
    from collections.abc import Callable

    from livecursor._types import Thunk
    from livecursor.scheduling.context import ExecutionContext
    from livecursor.scheduling.flush import FlushScheduler

_HOOKS = ("on_ready", "on_error", "on_stop")


@dataclass(frozen=True, slots=True)
class FunctionCallback:
    """A single ``fn(error, result)`` callback."""

    fn: Callable[[BaseException | None, Any], Any]

    def settle(self, error: BaseException | None = None, result: Any = None) -> None:
        self.fn(error, result)


@dataclass(frozen=True, slots=True)
class CallbacksObject:
    """Separate hooks for readiness, failure and stop."""

    on_ready: Callable[[Any], Any] | None = None
    on_error: Callable[[BaseException], Any] | None = None
    on_stop: Callable[[BaseException | None], Any] | None = None

    def ready(self, result: Any = None) -> None:
        if self.on_ready is not None:
            self.on_ready(result)

    def fail(self, error: BaseException) -> None:
        if self.on_error is not None:
            self.on_error(error)

    def stopped(self, error: BaseException | None = None) -> None:
        if self.on_stop is not None:
            self.on_stop(error)


type Callback = FunctionCallback | CallbacksObject


def is_callbacks_object(value: object) -> bool:
    """Whether ``value`` carries at least one callable hook."""
    if isinstance(value, CallbacksObject):
        return True
    if isinstance(value, Mapping):
        return any(callable(value.get(hook)) for hook in _HOOKS)
    return False


def resolve_callback(value: object) -> Callback:
    """Resolve a user-supplied callback into the ``Callback`` variant.

    Raises:
        InvalidInputError: ``value`` is neither a function nor a hooks object.

    """
    if isinstance(value, (FunctionCallback, CallbacksObject)):
        return value
    if isinstance(value, Mapping) and is_callbacks_object(value):
        return CallbacksObject(
            **{hook: value.get(hook) if callable(value.get(hook)) else None for hook in _HOOKS}
        )
    if callable(value):
        return FunctionCallback(value)
    msg = f"expected a callback function or on_ready/on_error/on_stop hooks, got {value!r}"
    raise InvalidInputError(msg)


def wrap_callback(
    value: object,
    scheduler: FlushScheduler,
    *,
    context: ExecutionContext | None = None,
) -> Callback:
    """Resolve ``value`` and bind every hook to ``scheduler``.

    Each hook runs in the scheduler's root context, then asks the scheduler
    to resume ``context``. ``context`` defaults to the context current at
    wrap time, i.e. the caller's. Callbacks from many sources that fire in
    one burst therefore resume the caller once.

    Raises:
        InvalidInputError: ``value`` is neither a function nor a hooks object.

    """
    callback = resolve_callback(value)
    target = context if context is not None else current_context()

    def in_root(fn: Callable[..., Any] | None) -> Callable[..., None] | None:
        if fn is None:
            return None

        def run(*args: Any) -> None:
            scheduler.root.run(fn, *args)
            scheduler.schedule_run(target)

        return run

    match callback:
        case FunctionCallback(fn=fn):
            return FunctionCallback(in_root(fn))
        case CallbacksObject(on_ready=on_ready, on_error=on_error, on_stop=on_stop):
            return CallbacksObject(
                on_ready=in_root(on_ready),
                on_error=in_root(on_error),
                on_stop=in_root(on_stop),
            )


class ReadinessTracker:
    """Tracks callbacks that have been handed out but not yet settled.

    Args:
        loop: Event loop for the settlement futures. Defaults to the
            running loop.
        scheduler: When set, pushed callbacks are first bound to it with
            ``wrap_callback``.

    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        scheduler: FlushScheduler | None = None,
    ) -> None:
        self._loop = loop
        self._scheduler = scheduler
        self._pending: list[asyncio.Future[Any]] = []

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def push(self, value: object, *, context: ExecutionContext | None = None) -> Callback:
        """Wrap ``value`` so its settlement is tracked.

        ``context`` is the context to resume after each hook when the
        tracker has a scheduler; it defaults to the current context.
        """
        if self._scheduler is not None:
            callback = wrap_callback(value, self._scheduler, context=context)
        else:
            callback = resolve_callback(value)
        loop = self._loop or asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        self._pending.append(future)

        def settle(outcome: dict[str, Any]) -> None:
            if not future.done():
                future.set_result(outcome)
            if future in self._pending:
                self._pending.remove(future)

        match callback:
            case FunctionCallback(fn=fn):

                def wrapped_fn(error: BaseException | None, result: Any) -> None:
                    try:
                        fn(error, result)
                    finally:
                        settle({"error": error, "result": result})

                return FunctionCallback(wrapped_fn)
            case CallbacksObject():

                def on_ready(result: Any = None) -> None:
                    try:
                        callback.ready(result)
                    finally:
                        settle({"result": result})

                def on_error(error: BaseException) -> None:
                    try:
                        callback.fail(error)
                    finally:
                        settle({"error": error})

                def on_stop(error: BaseException | None = None) -> None:
                    try:
                        callback.stopped(error)
                    finally:
                        settle({"error": error})

                return CallbacksObject(on_ready=on_ready, on_error=on_error, on_stop=on_stop)

    async def ready(self) -> None:
        """Wait until every callback pending now has settled."""
        pending = list(self._pending)
        if pending:
            await asyncio.gather(*pending)

    def on_ready(self, cb: Thunk) -> asyncio.Task[None]:
        """Run ``cb`` once ``ready()`` completes."""

        async def wait_then_call() -> None:
            await self.ready()
            cb()

        return asyncio.ensure_future(wait_then_call(), loop=self._loop)
