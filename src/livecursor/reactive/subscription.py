"""Sinks and subscriptions — the consumer side of a batch stream.

A sink receives ``next(batch)``, ``error(exc)`` and ``complete()``.
Subscribing returns a ``Subscription``, the capability that ends the sink's
registration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable

    from livecursor._types import Thunk
    from livecursor.changes import Batch
    from livecursor.scheduling.context import ExecutionContext


@runtime_checkable
class Sink(Protocol):
    """Receives batches from an observer or adapter."""

    def next(self, batch: Batch) -> None: ...

    def error(self, exc: BaseException) -> None: ...

    def complete(self) -> None: ...


@dataclass(frozen=True, slots=True, eq=False)
class CallbackSink:
    """Sink built from optional plain callables. Compared by identity."""

    on_next: Callable[[Batch], Any] | None = None
    on_error: Callable[[BaseException], Any] | None = None
    on_complete: Thunk | None = None

    def next(self, batch: Batch) -> None:
        if self.on_next is not None:
            self.on_next(batch)

    def error(self, exc: BaseException) -> None:
        if self.on_error is not None:
            self.on_error(exc)

    def complete(self) -> None:
        if self.on_complete is not None:
            self.on_complete()


def as_sink(obj: Sink | Callable[[Batch], Any]) -> Sink:
    """Accept a ``Sink`` or a bare callable (used as ``next``)."""
    if isinstance(obj, Sink):
        return obj
    if callable(obj):
        return CallbackSink(on_next=obj)
    msg = f"expected a Sink or callable, got {type(obj).__name__}"
    raise TypeError(msg)


class ContextSink:
    """Delivers every notification to ``sink`` inside ``context``.

    Lets a consumer living in one execution context subscribe to a stream
    that emits from another.
    """

    __slots__ = ("_context", "_sink")

    def __init__(self, sink: Sink | Callable[[Batch], Any], context: ExecutionContext) -> None:
        self._sink = as_sink(sink)
        self._context = context

    def next(self, batch: Batch) -> None:
        self._context.run(self._sink.next, batch)

    def error(self, exc: BaseException) -> None:
        self._context.run(self._sink.error, exc)

    def complete(self) -> None:
        self._context.run(self._sink.complete)


class Subscription:
    """Unsubscribe capability returned by ``subscribe()``.

    ``unsubscribe()`` runs the teardown once; later calls are no-ops.
    """

    __slots__ = ("_teardown",)

    def __init__(self, teardown: Thunk | None = None) -> None:
        self._teardown = teardown

    @classmethod
    def closed_subscription(cls) -> Subscription:
        """A subscription that is already closed."""
        return cls(None)

    @property
    def closed(self) -> bool:
        return self._teardown is None

    def unsubscribe(self) -> None:
        teardown, self._teardown = self._teardown, None
        if teardown is not None:
            teardown()

    # Lets a subscription be held by a ResourceHandle.
    stop = unsubscribe
