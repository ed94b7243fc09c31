"""Shared type definitions for livecursor."""

from collections.abc import Callable, Mapping
from typing import Any, Literal

# A document as returned by a live query (usually a mapping with an ``_id``)
type Document = Mapping[str, Any]

# Document identity as reported by ``observe_changes``
type DocumentId = Any

# Zero-argument callable used for after-run callbacks and no-op resumptions
type Thunk = Callable[[], Any]

# Lifecycle of a LiveQueryObserver
type ObserverState = Literal["idle", "observing", "fetched", "destroyed"]
