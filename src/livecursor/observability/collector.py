"""Flow collector — records batching and scheduling events.

Observers, adapters and the flush scheduler take an optional collector and
call its ``record_*`` methods at each lifecycle step. Events land in an
``EventLog``; with ``verbose=True`` a one-line summary is also printed to
stderr.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from livecursor.changes import AddChange, MoveChange, RemoveChange, UpdateChange
from livecursor.observability.events import (
    BatchFlushed,
    ContextResumed,
    ObservationStarted,
    ObservationStopped,
    QueryFailed,
    now_ns,
)
from livecursor.observability.log import EventLog

if TYPE_CHECKING:
    from livecursor.changes import Batch


class FlowCollector:
    """Event collector for live query observation and flushing.

    Args:
        log: The EventLog to store events in.
        verbose: Print a one-line summary of each event to stderr.

    """

    __slots__ = ("_log", "_verbose")

    def __init__(self, log: EventLog | None = None, *, verbose: bool = False) -> None:
        self._log = log if log is not None else EventLog()
        self._verbose = verbose

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Observation lifecycle -----

    def record_observation_started(self, query: str, *, mode: str = "observe") -> None:
        """Record that an observer started consuming a live query."""
        self._log.append(
            ObservationStarted(
                query=query,
                mode=mode,  # type: ignore[arg-type]
                timestamp_ns=now_ns(),
            )
        )

    def record_observation_stopped(self, query: str, *, batches: int = 0) -> None:
        """Record that an observer released its live-query handle."""
        self._log.append(
            ObservationStopped(query=query, batches=batches, timestamp_ns=now_ns())
        )

    def record_query_failed(
        self,
        query: str,
        error: BaseException,
        *,
        sinks_notified: int = 0,
    ) -> None:
        """Record an engine error propagated to sinks."""
        self._log.append(
            QueryFailed(
                query=query,
                error=repr(error),
                sinks_notified=sinks_notified,
                timestamp_ns=now_ns(),
            )
        )
        if self._verbose:
            print(f"  Live query error ({query}): {error}", file=sys.stderr)

    # ----- Batching and scheduling -----

    def record_batch(self, query: str, batch: Batch, *, sinks_notified: int = 0) -> None:
        """Record an emitted batch, counting records by kind."""
        added = sum(1 for c in batch if isinstance(c, AddChange))
        removed = sum(1 for c in batch if isinstance(c, RemoveChange))
        moved = sum(1 for c in batch if isinstance(c, MoveChange))
        updated = sum(1 for c in batch if isinstance(c, UpdateChange))
        self._log.append(
            BatchFlushed(
                query=query,
                records=len(batch),
                added=added,
                removed=removed,
                moved=moved,
                updated=updated,
                sinks_notified=sinks_notified,
                timestamp_ns=now_ns(),
            )
        )
        if self._verbose:
            print(
                f"  {query}: +{added} -{removed} ~{moved} *{updated}"
                f" -> {sinks_notified} sink(s)",
                file=sys.stderr,
            )

    def record_context_resumed(self, context: str, *, callbacks: int = 0) -> None:
        """Record a context resumption by the flush scheduler."""
        self._log.append(
            ContextResumed(context=context, callbacks=callbacks, timestamp_ns=now_ns())
        )
