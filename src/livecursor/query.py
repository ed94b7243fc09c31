"""Live-query capability — what livecursor expects from a query engine.

A live query is any object exposing ``fetch()``, ``observe(callbacks)`` and
``observe_changes(callbacks)``. The engine calls the callbacks synchronously
whenever its result set changes, and the observe methods return a handle
with ``stop()``.

``observe`` reports positional events (``added_at``, ``changed_at``,
``moved_to``, ``removed_at``); ``observe_changes`` reports identity-keyed
field deltas (``added``, ``changed``, ``removed``). Both callback sets carry
an optional ``error`` entry the engine uses to report failures.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from livecursor._types import Document, DocumentId
    from livecursor.handle import Stoppable


@dataclass(frozen=True, slots=True)
class ObserveCallbacks:
    """Positional callbacks for ``LiveQuery.observe``.

    Attributes:
        added_at: ``(doc, index, before)``
        changed_at: ``(new_doc, old_doc, index)``
        moved_to: ``(doc, from_index, to_index, before)``
        removed_at: ``(old_doc, index)``
        added: ``(doc)``, unordered variant.
        changed: ``(new_doc, old_doc)``, unordered variant.
        removed: ``(old_doc)``, unordered variant.
        error: ``(exc)``. The engine failed; no further callbacks follow.

    """

    added_at: Callable[[Document, int, Any], None] | None = None
    changed_at: Callable[[Document, Document, int], None] | None = None
    moved_to: Callable[[Document, int, int, Any], None] | None = None
    removed_at: Callable[[Document, int], None] | None = None
    added: Callable[[Document], None] | None = None
    changed: Callable[[Document, Document], None] | None = None
    removed: Callable[[Document], None] | None = None
    error: Callable[[BaseException], None] | None = None


@dataclass(frozen=True, slots=True)
class ChangeCallbacks:
    """Identity-keyed callbacks for ``LiveQuery.observe_changes``."""

    added: Callable[[DocumentId, dict[str, Any]], None] | None = None
    changed: Callable[[DocumentId, dict[str, Any]], None] | None = None
    removed: Callable[[DocumentId], None] | None = None
    error: Callable[[BaseException], None] | None = None


@runtime_checkable
class LiveQuery(Protocol):
    """The live-query capability consumed by livecursor."""

    def fetch(self) -> list[Document]: ...

    def observe(self, callbacks: ObserveCallbacks) -> Stoppable: ...

    def observe_changes(self, callbacks: ChangeCallbacks) -> Stoppable: ...


def is_live_query(obj: object) -> bool:
    """Return True if ``obj`` can be observed (exposes a callable ``observe``)."""
    return obj is not None and callable(getattr(obj, "observe", None))
