"""Event model for batch and scheduling observability.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Observation lifecycle events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ObservationStarted:
    """An observer started consuming a live query.

    Attributes:
        query: Diagnostic name of the live query.
        mode: ``observe`` for live observation, ``fetch`` for eager mode.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    query: str
    mode: Literal["observe", "fetch"]
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ObservationStopped:
    """An observer released its live-query handle.

    Attributes:
        query: Diagnostic name of the live query.
        batches: Number of batches emitted during the observation.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    query: str
    batches: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class QueryFailed:
    """A live query reported an error that was propagated to sinks.

    Attributes:
        query: Diagnostic name of the live query.
        error: ``repr`` of the engine error.
        sinks_notified: Number of sinks that received ``error()``.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    query: str
    error: str
    sinks_notified: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Batching and scheduling events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BatchFlushed:
    """A batch of change records was emitted.

    Attributes:
        query: Diagnostic name of the live query.
        records: Number of change records in the batch.
        added: Number of add records.
        removed: Number of remove records.
        moved: Number of move records.
        updated: Number of update records.
        sinks_notified: Number of sinks the batch was delivered to.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    query: str
    records: int
    added: int
    removed: int
    moved: int
    updated: int
    sinks_notified: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ContextResumed:
    """The flush scheduler resumed an execution context.

    Attributes:
        context: Name of the resumed context.
        callbacks: Number of after-run callbacks drained.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    context: str
    callbacks: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type FlowEvent = (
    ObservationStarted
    | ObservationStopped
    | QueryFailed
    | BatchFlushed
    | ContextResumed
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
