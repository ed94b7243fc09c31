"""Live query observer — turns per-document callbacks into batches.

Subscribes to a live query, converts each positional callback into a
ChangeRecord, buffers the records, and emits the buffer as one Batch when
the debounce window closes:

    live query callback -> ChangeRecord -> buffer -> Debouncer
    -> flush task (in the observer's context) -> Batch -> sinks

Observation starts lazily on the first subscription. In eager mode the
observer fetches once, emits a single batch of additions, and never
observes.

Live query callbacks run in the root context. When a FlushScheduler is
injected, every callback also asks it to resume the observer's context, so
consumers in that context get a single wake-up per burst.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from livecursor._errors import InvalidInputError, PropagatedQueryError
from livecursor.changes import AddChange, MoveChange, RemoveChange, UpdateChange
from livecursor.handle import ResourceHandle
from livecursor.query import ObserveCallbacks, is_live_query
from livecursor.reactive.subscription import Subscription, as_sink
from livecursor.scheduling.context import ROOT_CONTEXT, current_context
from livecursor.scheduling.debounce import Debouncer

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable

    from livecursor._types import Document, ObserverState
    from livecursor.changes import Batch, ChangeRecord
    from livecursor.observability.collector import FlowCollector
    from livecursor.query import LiveQuery
    from livecursor.reactive.subscription import Sink
    from livecursor.scheduling.context import ExecutionContext, ScheduledTask
    from livecursor.scheduling.flush import FlushScheduler

DEFAULT_DEBOUNCE_MS = 50.0


class LiveQueryObserver:
    """Observes one live query and emits batches of change records.

    States: ``idle`` -> ``observing`` (or ``fetched`` in eager mode) ->
    ``destroyed``. A destroyed observer cannot be restarted; construct a new
    one instead.

    Args:
        query: The live query. Must expose ``observe``.
        debounce_ms: Quiet period before a batch is emitted. ``0`` is legal.
        eager: Fetch once and emit a single batch instead of observing.
        context: Context the flush runs in. Defaults to the current context.
        scheduler: Optional flush scheduler to resume ``context`` after
            each live query callback.
        collector: Optional event collector.
        name: Diagnostic name used in events.
        loop: Event loop for the debounce timer. Defaults to the running
            loop at the time of the first callback.

    Raises:
        InvalidInputError: ``query`` is not a live query.

    """

    def __init__(
        self,
        query: LiveQuery,
        debounce_ms: float = DEFAULT_DEBOUNCE_MS,
        *,
        eager: bool = False,
        context: ExecutionContext | None = None,
        scheduler: FlushScheduler | None = None,
        collector: FlowCollector | None = None,
        name: str | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if not is_live_query(query):
            msg = f"expected a live query exposing observe(), got {type(query).__name__}"
            raise InvalidInputError(msg)
        self._query = query
        self._debounce_ms = debounce_ms
        self._eager = eager
        self._context = context if context is not None else current_context()
        self._scheduler = scheduler
        self._collector = collector
        self._loop = loop
        self._name = name or getattr(query, "name", None) or type(query).__name__

        self._state: ObserverState = "idle"
        self._sinks: list[Sink] = []
        self._buffer: list[ChangeRecord] = []
        self._last_changes: Batch = ()
        self._handle: ResourceHandle | None = None
        self._debouncer: Debouncer[ScheduledTask] | None = None
        self._flush_task: ScheduledTask | None = None
        self._batches = 0

    @staticmethod
    def is_live_query(obj: object) -> bool:
        return is_live_query(obj)

    @property
    def query(self) -> LiveQuery:
        return self._query

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> ObserverState:
        return self._state

    @property
    def context(self) -> ExecutionContext:
        return self._context

    @property
    def last_changes(self) -> Batch:
        """The most recently emitted batch (empty before the first flush)."""
        return self._last_changes

    @property
    def sink_count(self) -> int:
        return len(self._sinks)

    def subscribe(self, sink: Sink | Callable[[Batch], Any]) -> Subscription:
        """Register ``sink``; the first subscription starts processing."""
        if self._state == "destroyed":
            return Subscription.closed_subscription()

        target = as_sink(sink)
        self._sinks.append(target)
        subscription = Subscription(lambda: self._remove_sink(target))

        if self._state == "idle":
            self._start()
        return subscription

    def destroy(self) -> None:
        """Stop observing and drop buffered records. Idempotent."""
        if self._state == "destroyed":
            return
        was_observing = self._state == "observing"
        self._state = "destroyed"

        if self._debouncer is not None:
            self._debouncer.cancel()
        if self._flush_task is not None:
            self._flush_task.cancel()
            self._flush_task = None
        self._buffer.clear()

        handle, self._handle = self._handle, None
        if handle is not None:
            handle.stop()

        if was_observing and self._collector is not None:
            self._collector.record_observation_stopped(self._name, batches=self._batches)

    # Lets the observer be held by a ResourceHandle.
    stop = destroy

    # ----- Processing -----

    def _start(self) -> None:
        if self._eager:
            self._state = "fetched"
            if self._collector is not None:
                self._collector.record_observation_started(self._name, mode="fetch")
            changes = tuple(
                AddChange(index, doc) for index, doc in enumerate(self._query.fetch())
            )
            self._emit(changes)
            return

        self._state = "observing"
        if self._collector is not None:
            self._collector.record_observation_started(self._name, mode="observe")
        self._debouncer = Debouncer(
            self._run_flush, self._debounce_ms, self._schedule_flush, loop=self._loop
        )
        callbacks = ObserveCallbacks(
            added_at=self._added_at,
            changed_at=self._changed_at,
            moved_to=self._moved_to,
            removed_at=self._removed_at,
            error=self._query_failed,
        )
        root = self._scheduler.root if self._scheduler is not None else ROOT_CONTEXT
        try:
            live_handle = root.run(self._query.observe, callbacks)
        except BaseException:
            self.destroy()
            raise
        if self._state == "destroyed":
            # The engine failed while replaying its initial result set.
            live_handle.stop()
            return
        self._handle = ResourceHandle(live_handle)

    def _schedule_flush(self) -> ScheduledTask:
        self._flush_task = self._context.schedule_task("flush", self._flush)
        return self._flush_task

    def _run_flush(self, task: ScheduledTask | None) -> None:
        if task is not None:
            task.invoke()
        if self._flush_task is task:
            self._flush_task = None

    def _flush(self) -> None:
        if not self._buffer:
            return
        batch = tuple(self._buffer)
        self._buffer.clear()
        self._emit(batch)

    def _emit(self, batch: Batch) -> None:
        self._last_changes = batch
        self._batches += 1
        sinks = list(self._sinks)
        for sink in sinks:
            sink.next(batch)
        if self._collector is not None:
            self._collector.record_batch(self._name, batch, sinks_notified=len(sinks))

    def _remove_sink(self, sink: Sink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    # ----- Live query callbacks -----

    def _record(self, change: ChangeRecord) -> None:
        if self._state != "observing":
            return
        self._buffer.append(change)
        if self._debouncer is not None:
            self._debouncer.trigger()
        if self._scheduler is not None:
            self._scheduler.schedule_run(self._context)

    def _added_at(self, doc: Document, index: int, before: Any = None) -> None:
        self._record(AddChange(index, doc))

    def _changed_at(self, new_doc: Document, old_doc: Document, index: int) -> None:
        self._record(UpdateChange(index, new_doc))

    def _moved_to(self, doc: Document, from_index: int, to_index: int, before: Any = None) -> None:
        self._record(MoveChange(from_index, to_index))

    def _removed_at(self, old_doc: Document, index: int) -> None:
        self._record(RemoveChange(index))

    def _query_failed(self, exc: BaseException) -> None:
        if self._state == "destroyed":
            return
        error = PropagatedQueryError(f"live query {self._name!r} failed: {exc}", query=self._query)
        error.__cause__ = exc
        sinks, self._sinks = self._sinks, []
        for sink in sinks:
            sink.error(error)
        if self._collector is not None:
            self._collector.record_query_failed(self._name, exc, sinks_notified=len(sinks))
        self.destroy()
