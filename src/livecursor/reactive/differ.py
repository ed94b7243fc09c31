"""Change differ — translates batches into edit lists for a renderer.

A rendering consumer calls ``diff(query)`` on every change-detection pass.
The differ keeps one LiveQueryObserver bound to the query it was last
given, accumulates the batches that observer emits, and on the next
``diff`` call turns them into typed edit lists:

- ``inserted``: item added at ``current_index``
- ``moved``: item moved from ``previous_index`` to ``current_index``
- ``removed``: item removed from ``previous_index``
- ``updated``: item at ``current_index`` changed in place
- ``operations``: inserts, moves and removes in the order they happened

Records are never reordered: consumers apply ``operations`` one by one and
do at most one positional relocation per record.

When the query object changes identity, the old observer is destroyed and
every item it had displayed is removed (a cleanup pass) before the new
query's records are applied, so one ``diff`` call can carry both the
removals of the old query and the additions of the new one.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from livecursor.changes import AddChange, MoveChange, RemoveChange, UpdateChange
from livecursor.query import is_live_query
from livecursor.reactive.observer import LiveQueryObserver

if TYPE_CHECKING:
    from collections.abc import Callable

    from livecursor.changes import Batch
    from livecursor.query import LiveQuery
    from livecursor.reactive.subscription import Subscription


def track_by_id(index: int | None, item: Any) -> Any:
    """Identity of a document: its ``_id`` when it has one."""
    if isinstance(item, Mapping):
        return item.get("_id")
    return getattr(item, "_id", None)


@dataclass(slots=True)
class EditRecord:
    """One edit for the rendering consumer.

    Attributes:
        item: The document (None for moves and cleanup removals).
        previous_index: Position before the edit (None for inserts/updates).
        current_index: Position after the edit (None for removals).
        trackby_id: Identity of ``item`` as given by the differ's ``track_by``.

    """

    item: Any
    previous_index: int | None
    current_index: int | None
    trackby_id: Any = None


class ChangeDiffer:
    """Stateful differ over a live query for a rendering consumer.

    Args:
        observer_factory: Builds the observer for a newly bound query.
            Defaults to ``LiveQueryObserver``.
        track_by: ``(index, item) -> identity`` used for ``trackby_id``.

    """

    def __init__(
        self,
        observer_factory: Callable[[LiveQuery], LiveQueryObserver] | None = None,
        *,
        track_by: Callable[[int | None, Any], Any] = track_by_id,
    ) -> None:
        self._observer_factory = observer_factory or LiveQueryObserver
        self._track_by = track_by
        self._query: LiveQuery | None = None
        self._observer: LiveQueryObserver | None = None
        self._subscription: Subscription | None = None
        self._pending: list[Batch] = []
        self._displayed = 0

        self._inserted: list[EditRecord] = []
        self._removed: list[EditRecord] = []
        self._moved: list[EditRecord] = []
        self._updated: list[EditRecord] = []
        self._operations: list[EditRecord] = []

    @classmethod
    def supports(cls, obj: object) -> bool:
        """Whether this differ can track ``obj``."""
        return is_live_query(obj)

    @property
    def observer(self) -> LiveQueryObserver | None:
        """The observer bound to the current query."""
        return self._observer

    @property
    def displayed_count(self) -> int:
        """Number of items the consumer is currently showing."""
        return self._displayed

    @property
    def inserted(self) -> tuple[EditRecord, ...]:
        return tuple(self._inserted)

    @property
    def removed(self) -> tuple[EditRecord, ...]:
        return tuple(self._removed)

    @property
    def moved(self) -> tuple[EditRecord, ...]:
        return tuple(self._moved)

    @property
    def updated(self) -> tuple[EditRecord, ...]:
        return tuple(self._updated)

    @property
    def operations(self) -> tuple[EditRecord, ...]:
        return tuple(self._operations)

    def for_each_operation(self, fn: Callable[[EditRecord, int | None, int | None], Any]) -> None:
        """Call ``fn(record, previous_index, current_index)`` per operation."""
        for record in self._operations:
            fn(record, record.previous_index, record.current_index)

    def diff(self, query: LiveQuery | None) -> ChangeDiffer | None:
        """Collect edits since the last call.

        Returns:
            ``self`` if the consumer must re-render (the query changed or
            changes were applied), otherwise ``None``.

        Raises:
            InvalidInputError: ``query`` is not a live query. The differ
                stays bound to its previous query.

        """
        self._reset()
        new_query = False
        if query is not None and query is not self._query:
            # Raises before the current binding is touched.
            observer = self._observer_factory(query)
            new_query = True
            self._destroy_observer()
            self._query = query
            self._observer = observer
            self._subscription = observer.subscribe(self._update_latest_value)

        applied = bool(self._pending)
        if applied:
            pending, self._pending = self._pending, []
            for batch in pending:
                self._apply_changes(batch)

        if applied or new_query:
            return self
        return None

    def on_destroy(self) -> None:
        """Destroy the observer and remove every displayed item."""
        self._destroy_observer()
        self._query = None

    def _destroy_observer(self) -> None:
        if self._observer is not None:
            self._observer.destroy()
        if self._subscription is not None:
            self._subscription.unsubscribe()
        self._observer = None
        self._subscription = None
        self._pending = []
        self._apply_cleanup()

    def _update_latest_value(self, batch: Batch) -> None:
        self._pending.append(batch)

    def _reset(self) -> None:
        self._inserted.clear()
        self._moved.clear()
        self._removed.clear()
        self._updated.clear()
        self._operations.clear()

    def _apply_cleanup(self) -> None:
        for _ in range(self._displayed):
            remove = self._record(None, 0, None)
            self._removed.append(remove)
            self._operations.append(remove)
        self._displayed = 0

    def _apply_changes(self, batch: Batch) -> None:
        for change in batch:
            match change:
                case AddChange(index=index, item=item):
                    add = self._record(index, None, item)
                    self._inserted.append(add)
                    self._operations.append(add)
                    self._displayed += 1
                case MoveChange(from_index=from_index, to_index=to_index):
                    move = self._record(to_index, from_index, None)
                    self._moved.append(move)
                    self._operations.append(move)
                case RemoveChange(index=index):
                    remove = self._record(None, index, None)
                    self._removed.append(remove)
                    self._operations.append(remove)
                    self._displayed -= 1
                case UpdateChange(index=index, item=item):
                    self._updated.append(self._record(index, None, item))

    def _record(self, current_index: int | None, previous_index: int | None, item: Any) -> EditRecord:
        return EditRecord(
            item=item,
            previous_index=previous_index,
            current_index=current_index,
            trackby_id=self._track_by(current_index, item),
        )
