"""Flush scheduler — coalesces "resume context C soon" requests.

Live query callbacks run in the root context. After each one, the observer
asks the scheduler to resume the context its consumer lives in, so the
consumer notices the change. Many observers can ask for the same context
within a short burst; the scheduler makes sure the context is resumed at
most once per burst.

Per context, the scheduler holds at most one pending task. A new request
cancels the pending one and starts a fresh timer (last writer wins), so a
context that keeps receiving requests is only resumed once they stop.
Callbacks registered with ``on_after_run`` while a task is pending run after
that single resumption, newest first.

One instance is meant to be constructed per process and passed to every
observer that needs it.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from livecursor.scheduling.context import ROOT_CONTEXT, noop

if TYPE_CHECKING:
    from collections.abc import Callable

    from livecursor._types import Thunk
    from livecursor.observability.collector import FlowCollector
    from livecursor.scheduling.context import ExecutionContext, ScheduledTask


class FlushScheduler:
    """Merges overlapping resume requests into one run per context.

    Args:
        root: The global context. Requests for it are ignored, and resume
            tasks are owned by it.
        window_ms: Delay before a pending resumption fires.
        loop: Event loop for timers. Defaults to the running loop.
        collector: Optional event collector.

    """

    __slots__ = ("_after_run", "_collector", "_loop", "_root", "_tasks", "_window_ms")

    def __init__(
        self,
        root: ExecutionContext = ROOT_CONTEXT,
        *,
        window_ms: float = 0.0,
        loop: asyncio.AbstractEventLoop | None = None,
        collector: FlowCollector | None = None,
    ) -> None:
        self._root = root
        self._window_ms = window_ms
        self._loop = loop
        self._collector = collector
        self._tasks: dict[ExecutionContext, ScheduledTask] = {}
        self._after_run: dict[ExecutionContext, list[Thunk]] = {}

    @property
    def root(self) -> ExecutionContext:
        return self._root

    @property
    def pending_count(self) -> int:
        """Number of contexts waiting to be resumed."""
        return len(self._tasks)

    def is_pending(self, context: ExecutionContext) -> bool:
        """Whether a resumption of ``context`` is scheduled."""
        return context in self._tasks

    def schedule_run(self, context: ExecutionContext) -> None:
        """Resume ``context`` once the current burst of requests ends."""
        if context is self._root:
            return

        previous = self._tasks.pop(context, None)
        if previous is not None:
            previous.cancel()

        self._tasks[context] = self._root.schedule_periodic_task(
            "run_contexts",
            self._resumer(context),
            {"context": context.name},
            self._start_timer,
            self._clear_timer,
        )

    def on_after_run(self, context: ExecutionContext, cb: Thunk) -> None:
        """Run ``cb`` after the next resumption of ``context``.

        Runs ``cb`` immediately when no resumption is pending.
        """
        if context not in self._tasks:
            cb()
            return
        self._after_run.setdefault(context, []).append(cb)

    def run_contexts(self) -> None:
        """Resume every pending context now."""
        for task in list(self._tasks.values()):
            task.invoke()

    def _resumer(self, context: ExecutionContext) -> Callable[[], None]:
        def resume() -> None:
            context.run(noop)
            callbacks = self._run_after_run_callbacks(context)
            # A callback may have scheduled a fresh run; only drop our own task.
            task = self._tasks.get(context)
            if task is not None and task.state == "running":
                del self._tasks[context]
                task.cancel()
            if self._collector is not None:
                self._collector.record_context_resumed(context.name, callbacks=callbacks)

        return resume

    def _run_after_run_callbacks(self, context: ExecutionContext) -> int:
        cbs = self._after_run.get(context)
        if cbs is None:
            return 0
        count = 0
        while cbs:
            cbs.pop()()
            count += 1
        del self._after_run[context]
        return count

    def _start_timer(self, task: ScheduledTask) -> None:
        loop = self._loop or asyncio.get_running_loop()
        if self._window_ms > 0:
            task.data["handle"] = loop.call_later(self._window_ms / 1000, task.invoke)
        else:
            task.data["handle"] = loop.call_soon(task.invoke)

    def _clear_timer(self, task: ScheduledTask) -> None:
        handle = task.data.pop("handle", None)
        if handle is not None:
            handle.cancel()
