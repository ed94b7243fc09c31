"""Event log — queryable, thread-safe event store.

Stores a bounded ring buffer of ``FlowEvent`` objects for inspection.
Supports querying by event type, time range, and query/context name.

Thread Safety:
    All methods are protected by a ``threading.Lock``.  Safe for
    concurrent reads and writes from multiple threads.

"""

import threading
from collections import deque
from typing import Any

from livecursor.observability.events import ContextResumed, FlowEvent


def _event_name(event: FlowEvent) -> str:
    """The query or context name an event is about."""
    match event:
        case ContextResumed(context=context):
            return context
        case _:
            return event.query


class EventLog:
    """Bounded event store with query support.

    Events are stored in a ring buffer (deque with maxlen).  When the
    buffer is full, the oldest events are discarded automatically.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[FlowEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: FlowEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        name: str | None = None,
        limit: int = 100,
    ) -> list[FlowEvent]:
        """Query events with optional filters.

        Args:
            event_type: Only return events of this type.
            since_ns: Only return events after this timestamp (nanoseconds).
            name: Only return events for this name. Observer events match on
                their ``query`` name and ``ContextResumed`` on its ``context``
                name. Comparison is exact string equality; there is no prefix
                or substring matching.
            limit: Maximum number of events to return.

        Returns:
            List of matching events, most recent first.

        """
        with self._lock:
            results: list[FlowEvent] = []
            for event in reversed(self._events):
                if len(results) >= limit:
                    break

                if event_type is not None and not isinstance(event, event_type):
                    continue

                if since_ns and event.timestamp_ns < since_ns:
                    continue

                if name is not None and _event_name(event) != name:
                    continue

                results.append(event)

            return results

    def recent(self, n: int = 20) -> list[FlowEvent]:
        """Return the N most recent events, oldest first."""
        with self._lock:
            items = list(self._events)
        return items[-n:]

    def clear(self) -> int:
        """Clear all events and return the count that was cleared."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Return summary statistics about stored events."""
        with self._lock:
            events = list(self._events)

        type_counts: dict[str, int] = {}
        for event in events:
            type_name = type(event).__name__
            type_counts[type_name] = type_counts.get(type_name, 0) + 1

        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": type_counts,
        }
