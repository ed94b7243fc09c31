"""Multicast cursor adapter — one live query, many subscribers.

Wraps a live query as a ref-counted stream of batches. The first subscriber
of a segment creates the LiveQueryObserver; the last unsubscribe tears it
down. A later subscriber starts a new segment with a fresh observer.

``stop()`` is different from the last unsubscribe: it is an explicit,
terminal shutdown. Every registered sink is completed, and sinks that
subscribe afterwards are completed immediately without data. An engine
error is terminal in the same way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from livecursor._errors import InvalidInputError, PreconditionError
from livecursor.handle import ResourceHandle
from livecursor.query import is_live_query
from livecursor.reactive.observer import DEFAULT_DEBOUNCE_MS, LiveQueryObserver
from livecursor.reactive.subscription import CallbackSink, Subscription, as_sink

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable

    from livecursor._types import Document
    from livecursor.changes import Batch
    from livecursor.handle import Stoppable
    from livecursor.observability.collector import FlowCollector
    from livecursor.query import ChangeCallbacks, LiveQuery, ObserveCallbacks
    from livecursor.reactive.subscription import Sink
    from livecursor.scheduling.context import ExecutionContext
    from livecursor.scheduling.flush import FlushScheduler


class MulticastCursorAdapter:
    """Ref-counted multicast of one live query's batches.

    Sinks are kept in registration order. Every sink registered before a
    batch is emitted receives it exactly once, in emission order.

    Args:
        query: The live query. Must expose ``observe``.
        debounce_ms: Debounce window of the underlying observer.
        eager: Use a fetch-once observer instead of live observation.
        context: Context the underlying observer flushes in.
        scheduler: Optional flush scheduler passed to the observer.
        collector: Optional event collector passed to the observer.
        loop: Event loop passed to the observer for its debounce timer.

    Raises:
        InvalidInputError: ``query`` is not a live query.

    """

    def __init__(
        self,
        query: LiveQuery,
        *,
        debounce_ms: float = DEFAULT_DEBOUNCE_MS,
        eager: bool = False,
        context: ExecutionContext | None = None,
        scheduler: FlushScheduler | None = None,
        collector: FlowCollector | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if not is_live_query(query):
            msg = f"expected a live query exposing observe(), got {type(query).__name__}"
            raise InvalidInputError(msg)
        self._query: LiveQuery | None = query
        self._debounce_ms = debounce_ms
        self._eager = eager
        self._context = context
        self._scheduler = scheduler
        self._collector = collector
        self._loop = loop
        self._sinks: list[Sink] = []
        self._observer: LiveQueryObserver | None = None
        self._handle: ResourceHandle | None = None
        self._stopped = False
        self.segments = 0

    @classmethod
    def create(cls, query: LiveQuery, **kwargs: Any) -> MulticastCursorAdapter:
        """Wrap an existing live query."""
        return cls(query, **kwargs)

    @property
    def query(self) -> LiveQuery | None:
        """The wrapped live query (None once stopped)."""
        return self._query

    @property
    def observer(self) -> LiveQueryObserver | None:
        """The observer of the current segment, if one is active."""
        return self._observer

    @property
    def subscriber_count(self) -> int:
        return len(self._sinks)

    @property
    def is_active(self) -> bool:
        """Whether a segment is currently observing."""
        return self._handle is not None

    @property
    def stopped(self) -> bool:
        return self._stopped

    def subscribe(self, sink: Sink | Callable[[Batch], Any]) -> Subscription:
        """Register ``sink``, starting observation if it is the first one."""
        target = as_sink(sink)
        if self._stopped:
            target.complete()
            return Subscription.closed_subscription()

        self._sinks.append(target)
        if self._handle is None:
            self._start_segment()
        if target not in self._sinks:
            # Terminal error while starting the segment.
            return Subscription.closed_subscription()
        return Subscription(lambda: self._remove_sink(target))

    def stop(self) -> None:
        """Release observation, complete all sinks and refuse further use."""
        if self._stopped:
            return
        self._stopped = True
        self._end_segment()
        self._query = None

    def fetch(self) -> list[Document]:
        """Return the live query's current results. Needs no subscription."""
        if self._query is None:
            return []
        return list(self._query.fetch())

    def observe(self, callbacks: ObserveCallbacks) -> Stoppable:
        """Pass-through to the live query's ``observe``."""
        return self._require_query().observe(callbacks)

    def observe_changes(self, callbacks: ChangeCallbacks) -> Stoppable:
        """Pass-through to the live query's ``observe_changes``."""
        return self._require_query().observe_changes(callbacks)

    # ----- Segments -----

    def _start_segment(self) -> None:
        query = self._require_query()
        self.segments += 1
        observer = LiveQueryObserver(
            query,
            self._debounce_ms,
            eager=self._eager,
            context=self._context,
            scheduler=self._scheduler,
            collector=self._collector,
            loop=self._loop,
        )
        self._observer = observer
        try:
            inner = observer.subscribe(
                CallbackSink(on_next=self._run_next, on_error=self._run_error)
            )
        except BaseException:
            # Only the sink that triggered the start is registered here.
            self._observer = None
            self._sinks = []
            raise
        if self._observer is observer:
            self._handle = ResourceHandle(observer, inner)

    def _end_segment(self) -> None:
        handle, self._handle = self._handle, None
        observer, self._observer = self._observer, None
        if handle is not None:
            handle.stop()
        elif observer is not None:
            observer.destroy()
        sinks, self._sinks = self._sinks, []
        for sink in sinks:
            sink.complete()

    def _remove_sink(self, sink: Sink) -> None:
        if sink not in self._sinks:
            return
        self._sinks.remove(sink)
        if not self._sinks:
            self._end_segment()

    # ----- Fan-out -----

    def _run_next(self, batch: Batch) -> None:
        for sink in list(self._sinks):
            sink.next(batch)

    def _run_error(self, exc: BaseException) -> None:
        sinks, self._sinks = self._sinks, []
        self._stopped = True
        self._handle = None
        self._observer = None
        self._query = None
        for sink in sinks:
            sink.error(exc)

    def _require_query(self) -> LiveQuery:
        if self._query is None:
            msg = "adapter has been stopped"
            raise PreconditionError(msg)
        return self._query
