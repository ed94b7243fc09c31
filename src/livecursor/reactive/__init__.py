"""Reactive layer — from live query callbacks to renderer edit lists.

Connects a live query to its consumers through the observer (batching),
the multicast adapter (ref-counted fan-out) and the differ (edit lists).
"""

from livecursor.reactive.differ import ChangeDiffer, EditRecord, track_by_id
from livecursor.reactive.multicast import MulticastCursorAdapter
from livecursor.reactive.observer import LiveQueryObserver
from livecursor.reactive.subscription import (
    CallbackSink,
    ContextSink,
    Sink,
    Subscription,
    as_sink,
)

__all__ = [
    "CallbackSink",
    "ChangeDiffer",
    "ContextSink",
    "EditRecord",
    "LiveQueryObserver",
    "MulticastCursorAdapter",
    "Sink",
    "Subscription",
    "as_sink",
    "track_by_id",
]
