"""Runtime — one scheduler and one collector per process.

Builds observers, cursor adapters and differs that share the same
FlushScheduler and FlowCollector, configured from a LiveCursorConfig::

    runtime = Runtime(load_config(Path(".")))
    cursor = runtime.cursor(todos.find({"done": False}))
    cursor.subscribe(render)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from livecursor.callbacks import ReadinessTracker
from livecursor.config import LiveCursorConfig
from livecursor.observability.collector import FlowCollector
from livecursor.observability.log import EventLog
from livecursor.reactive.differ import ChangeDiffer
from livecursor.reactive.multicast import MulticastCursorAdapter
from livecursor.reactive.observer import LiveQueryObserver
from livecursor.scheduling.context import ROOT_CONTEXT
from livecursor.scheduling.flush import FlushScheduler

if TYPE_CHECKING:
    import asyncio

    from livecursor.query import LiveQuery
    from livecursor.scheduling.context import ExecutionContext


class Runtime:
    """Shared wiring for observers, adapters and differs.

    Args:
        config: Runtime configuration. Defaults to ``LiveCursorConfig()``.
        collector: Event collector. Defaults to one sized by the config.
        root: The global execution context.
        loop: Event loop for every timer the runtime creates. Lets observers
            be subscribed from code that is not running inside the loop.
            Defaults to the running loop.

    """

    def __init__(
        self,
        config: LiveCursorConfig | None = None,
        *,
        collector: FlowCollector | None = None,
        root: ExecutionContext = ROOT_CONTEXT,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.config = config if config is not None else LiveCursorConfig()
        self.loop = loop
        self.collector = collector or FlowCollector(
            EventLog(self.config.max_events), verbose=self.config.verbose
        )
        self.scheduler = FlushScheduler(
            root,
            window_ms=self.config.flush_window_ms,
            loop=loop,
            collector=self.collector,
        )

    def observer(
        self,
        query: LiveQuery,
        *,
        context: ExecutionContext | None = None,
        name: str | None = None,
    ) -> LiveQueryObserver:
        """Create an observer bound to this runtime's scheduler."""
        return LiveQueryObserver(
            query,
            self.config.debounce_ms,
            eager=self.config.eager,
            context=context,
            scheduler=self.scheduler,
            collector=self.collector,
            name=name,
            loop=self.loop,
        )

    def cursor(
        self,
        query: LiveQuery,
        *,
        context: ExecutionContext | None = None,
    ) -> MulticastCursorAdapter:
        """Wrap ``query`` as a multicast cursor."""
        return MulticastCursorAdapter(
            query,
            debounce_ms=self.config.debounce_ms,
            eager=self.config.eager,
            context=context,
            scheduler=self.scheduler,
            collector=self.collector,
            loop=self.loop,
        )

    def differ(self, *, context: ExecutionContext | None = None) -> ChangeDiffer:
        """Create a differ whose observers use this runtime."""
        return ChangeDiffer(lambda query: self.observer(query, context=context))

    def tracker(self) -> ReadinessTracker:
        """Create a readiness tracker whose callbacks resume through the scheduler."""
        return ReadinessTracker(loop=self.loop, scheduler=self.scheduler)

    def run_contexts(self) -> None:
        """Resume every context with a pending flush now."""
        self.scheduler.run_contexts()
