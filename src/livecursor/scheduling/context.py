"""Execution contexts — logical task-ordering domains on one event loop.

A context is an identity with its own FIFO queue of deferred work. Work
posted to a context runs the next time the context is resumed with
``run()``. Contexts are not threads: everything happens on the same event
loop, so "resuming" a context simply means entering it, running a callable
and draining whatever was queued for it.

``ScheduledTask`` is the cancellable, reschedulable deferred-task primitive
used by the debouncer and the flush scheduler. How (and whether) a task is
put on a timer is decided by the ``on_schedule`` / ``on_cancel`` hooks
passed when the task is created; a task without hooks only runs when
invoked explicitly.
"""

from __future__ import annotations

import itertools
from collections import deque
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from collections.abc import Callable

    from livecursor._types import Thunk

type TaskState = Literal["scheduled", "running", "done", "cancelled"]

_task_ids = itertools.count(1)


class ScheduledTask:
    """A deferred callback owned by an execution context.

    Attributes:
        name: Diagnostic name of the task.
        context: The context the callback runs in.
        periodic: Periodic tasks stay scheduled after being invoked.
        options: Free-form options supplied at scheduling time.
        data: Scratch space for ``on_schedule`` hooks (e.g. timer handles).

    """

    __slots__ = (
        "_callback",
        "_on_cancel",
        "context",
        "data",
        "invoke_count",
        "name",
        "options",
        "periodic",
        "state",
        "task_id",
    )

    def __init__(
        self,
        name: str,
        callback: Thunk,
        context: ExecutionContext,
        *,
        periodic: bool = False,
        options: dict[str, Any] | None = None,
        on_cancel: Callable[[ScheduledTask], None] | None = None,
    ) -> None:
        self.task_id = next(_task_ids)
        self.name = name
        self.context = context
        self.periodic = periodic
        self.options = dict(options or {})
        self.data: dict[str, Any] = {}
        self.state: TaskState = "scheduled"
        self.invoke_count = 0
        self._callback = callback
        self._on_cancel = on_cancel

    @property
    def is_scheduled(self) -> bool:
        return self.state == "scheduled"

    def invoke(self) -> Any:
        """Run the callback inside the owning context.

        Invoking a cancelled or finished task does nothing.
        """
        if self.state != "scheduled":
            return None
        self.state = "running"
        self.invoke_count += 1
        try:
            return self.context.run(self._callback)
        finally:
            if self.state == "running":
                self.state = "scheduled" if self.periodic else "done"

    def cancel(self) -> None:
        """Cancel the task and remove its timer. Idempotent."""
        if self.state in ("cancelled", "done"):
            return
        self.state = "cancelled"
        on_cancel, self._on_cancel = self._on_cancel, None
        if on_cancel is not None:
            on_cancel(self)

    def __repr__(self) -> str:
        return f"<ScheduledTask {self.name}#{self.task_id} {self.state} in {self.context.name}>"


class ExecutionContext:
    """A named task-ordering domain with a FIFO queue.

    Contexts compare by identity. Within one context, posted work runs in
    posting order; two contexts never interleave their queues.

    Args:
        name: Diagnostic name.

    """

    __slots__ = ("_queue", "name", "run_count")

    def __init__(self, name: str) -> None:
        self.name = name
        self.run_count = 0
        self._queue: deque[Thunk] = deque()

    @property
    def pending_work(self) -> int:
        """Number of posted callables waiting for the next resumption."""
        return len(self._queue)

    def post(self, fn: Thunk) -> None:
        """Queue ``fn`` to run the next time this context is resumed."""
        self._queue.append(fn)

    def run(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Enter the context, call ``fn`` and drain queued work.

        Exceptions from ``fn`` or from queued work propagate to the caller.
        """
        token = _current.set(self)
        try:
            result = fn(*args)
            while self._queue:
                self._queue.popleft()()
            return result
        finally:
            self.run_count += 1
            _current.reset(token)

    def schedule_task(
        self,
        name: str,
        callback: Thunk,
        *,
        periodic: bool = False,
        options: dict[str, Any] | None = None,
        on_schedule: Callable[[ScheduledTask], None] | None = None,
        on_cancel: Callable[[ScheduledTask], None] | None = None,
    ) -> ScheduledTask:
        """Create a deferred task owned by this context.

        ``on_schedule`` is called once with the new task and is expected to
        arrange for ``task.invoke()`` to be called later; ``on_cancel`` undoes
        that arrangement when the task is cancelled.
        """
        task = ScheduledTask(
            name,
            callback,
            self,
            periodic=periodic,
            options=options,
            on_cancel=on_cancel,
        )
        if on_schedule is not None:
            on_schedule(task)
        return task

    def schedule_periodic_task(
        self,
        name: str,
        callback: Thunk,
        options: dict[str, Any] | None = None,
        on_schedule: Callable[[ScheduledTask], None] | None = None,
        on_cancel: Callable[[ScheduledTask], None] | None = None,
    ) -> ScheduledTask:
        """Schedule a task that stays scheduled after each invocation."""
        return self.schedule_task(
            name,
            callback,
            periodic=True,
            options=options,
            on_schedule=on_schedule,
            on_cancel=on_cancel,
        )

    def __repr__(self) -> str:
        return f"<ExecutionContext {self.name!r}>"


ROOT_CONTEXT = ExecutionContext("root")

_current: ContextVar[ExecutionContext | None] = ContextVar("livecursor_context", default=None)


def current_context() -> ExecutionContext:
    """Return the innermost context entered with ``run()``, or the root."""
    context = _current.get()
    return context if context is not None else ROOT_CONTEXT


def noop() -> None:
    """Do nothing. Running it inside a context just resumes that context."""
