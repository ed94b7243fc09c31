"""Observability — event log for live query batching and scheduling.

Records events from:
- **Observers**: observation start/stop, emitted batches, engine errors
- **Flush scheduler**: context resumptions

All events are frozen dataclasses with nanosecond timestamps.

Quick Start:
    >>> from livecursor.observability import FlowCollector, EventLog
    >>> log = EventLog()
    >>> collector = FlowCollector(log)
    >>> # Pass collector to LiveQueryObserver / FlushScheduler / Runtime

"""

from livecursor.observability.collector import FlowCollector
from livecursor.observability.events import (
    BatchFlushed,
    ContextResumed,
    FlowEvent,
    ObservationStarted,
    ObservationStopped,
    QueryFailed,
    now_ns,
)
from livecursor.observability.log import EventLog

__all__ = [
    "BatchFlushed",
    "ContextResumed",
    "EventLog",
    "FlowCollector",
    "FlowEvent",
    "ObservationStarted",
    "ObservationStopped",
    "QueryFailed",
    "now_ns",
]
