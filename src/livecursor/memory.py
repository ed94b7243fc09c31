"""In-memory live-query engine.

A small reference implementation of the live-query capability, used by the
test suite and handy for prototyping consumers without a database.

``MemoryCollection`` stores documents keyed by ``_id``. ``find()`` returns a
``MemoryLiveQuery`` over a selector and an optional sort key. Every
mutation is reported synchronously to active observations:

- ``observe`` replays the current results as ``added_at`` calls, then
  reports each mutation as ``removed_at`` / ``added_at`` / ``moved_to`` /
  ``changed_at`` calls whose indices are valid when applied in order;
- ``observe_changes`` reports ``added`` / ``changed`` / ``removed`` with
  field deltas.
"""

from __future__ import annotations

import itertools
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from livecursor._errors import PreconditionError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from livecursor._types import DocumentId
    from livecursor.query import ChangeCallbacks, ObserveCallbacks

type Selector = Callable[[dict[str, Any]], bool] | Mapping[str, Any] | None


def _matcher(selector: Selector) -> Callable[[dict[str, Any]], bool]:
    if selector is None:
        return lambda doc: True
    if isinstance(selector, Mapping):
        expected = dict(selector)
        return lambda doc: all(doc.get(k) == v for k, v in expected.items())
    return selector


class _Observation:
    """Handle returned by ``observe`` / ``observe_changes``."""

    __slots__ = ("_query", "callbacks", "positional", "results", "stopped")

    def __init__(
        self,
        query: MemoryLiveQuery,
        callbacks: ObserveCallbacks | ChangeCallbacks,
        *,
        positional: bool,
    ) -> None:
        self._query = query
        self.callbacks = callbacks
        self.positional = positional
        self.results: list[dict[str, Any]] = []
        self.stopped = False

    def stop(self) -> None:
        if self.stopped:
            return
        self.stopped = True
        self._query._detach(self)


class MemoryLiveQuery:
    """A live query over a ``MemoryCollection``.

    Args:
        collection: The collection to query.
        selector: Predicate or field-equality mapping. None matches all.
        sort_key: Optional key function ordering the results.
        name: Diagnostic name.

    """

    def __init__(
        self,
        collection: MemoryCollection,
        selector: Selector = None,
        *,
        sort_key: Callable[[dict[str, Any]], Any] | None = None,
        name: str | None = None,
    ) -> None:
        self._collection = collection
        self._matches = _matcher(selector)
        self._sort_key = sort_key
        self._observations: list[_Observation] = []
        self.name = name or collection.name

    @property
    def observation_count(self) -> int:
        return len(self._observations)

    def fetch(self) -> list[dict[str, Any]]:
        """Return copies of the matching documents in result order."""
        docs = [dict(doc) for doc in self._collection._documents.values() if self._matches(doc)]
        if self._sort_key is not None:
            docs.sort(key=self._sort_key)
        return docs

    def observe(self, callbacks: ObserveCallbacks) -> _Observation:
        """Observe positional changes. Replays current results first."""
        observation = _Observation(self, callbacks, positional=True)
        self._attach(observation)
        return observation

    def observe_changes(self, callbacks: ChangeCallbacks) -> _Observation:
        """Observe identity-keyed field changes. Replays current results first."""
        observation = _Observation(self, callbacks, positional=False)
        self._attach(observation)
        return observation

    def fail(self, exc: BaseException) -> None:
        """Report an engine error to every observation and drop them."""
        observations, self._observations = self._observations, []
        for observation in observations:
            observation.stopped = True
            if observation.callbacks.error is not None:
                observation.callbacks.error(exc)

    # ----- Internal -----

    def _attach(self, observation: _Observation) -> None:
        self._observations.append(observation)
        self._collection._watch(self)
        try:
            self._report(observation, self.fetch())
        except BaseException:
            observation.stop()
            raise

    def _detach(self, observation: _Observation) -> None:
        if observation in self._observations:
            self._observations.remove(observation)
        if not self._observations:
            self._collection._unwatch(self)

    def _refresh(self) -> None:
        if not self._observations:
            return
        new_results = self.fetch()
        for observation in list(self._observations):
            if not observation.stopped:
                self._report(observation, new_results)

    def _report(self, observation: _Observation, new_results: list[dict[str, Any]]) -> None:
        old_results = observation.results
        observation.results = new_results
        if observation.positional:
            _report_positional(observation.callbacks, old_results, new_results)
        else:
            _report_changes(observation.callbacks, old_results, new_results)


def _report_positional(
    callbacks: ObserveCallbacks,
    old: list[dict[str, Any]],
    new: list[dict[str, Any]],
) -> None:
    """Walk ``old`` towards ``new`` and report each step.

    Removals first, then each position of ``new`` is fixed in ascending
    order, so every reported index is valid against the list as it stands
    after the previous steps.
    """
    new_ids = {doc["_id"] for doc in new}
    old_by_id = {doc["_id"]: doc for doc in old}
    working = [doc["_id"] for doc in old]

    for doc in old:
        if doc["_id"] in new_ids:
            continue
        index = working.index(doc["_id"])
        working.pop(index)
        if callbacks.removed_at is not None:
            callbacks.removed_at(doc, index)
        elif callbacks.removed is not None:
            callbacks.removed(doc)

    for position, doc in enumerate(new):
        doc_id = doc["_id"]
        before = new[position + 1]["_id"] if position + 1 < len(new) else None
        if doc_id not in old_by_id:
            working.insert(position, doc_id)
            if callbacks.added_at is not None:
                callbacks.added_at(doc, position, before)
            elif callbacks.added is not None:
                callbacks.added(doc)
            continue

        old_doc = old_by_id[doc_id]
        if old_doc != doc:
            current = working.index(doc_id)
            if callbacks.changed_at is not None:
                callbacks.changed_at(doc, old_doc, current)
            elif callbacks.changed is not None:
                callbacks.changed(doc, old_doc)

        current = working.index(doc_id)
        if current != position:
            working.pop(current)
            working.insert(position, doc_id)
            if callbacks.moved_to is not None:
                callbacks.moved_to(doc, current, position, before)


def _report_changes(
    callbacks: ChangeCallbacks,
    old: list[dict[str, Any]],
    new: list[dict[str, Any]],
) -> None:
    old_by_id = {doc["_id"]: doc for doc in old}
    new_ids = set()
    for doc in new:
        doc_id = doc["_id"]
        new_ids.add(doc_id)
        fields = {k: v for k, v in doc.items() if k != "_id"}
        if doc_id not in old_by_id:
            if callbacks.added is not None:
                callbacks.added(doc_id, fields)
            continue
        old_doc = old_by_id[doc_id]
        delta = {k: v for k, v in fields.items() if old_doc.get(k) != v}
        delta.update({k: None for k in old_doc if k != "_id" and k not in doc})
        if delta and callbacks.changed is not None:
            callbacks.changed(doc_id, delta)
    for doc_id in old_by_id:
        if doc_id not in new_ids and callbacks.removed is not None:
            callbacks.removed(doc_id)


class MemoryCollection:
    """A named in-memory document collection.

    Args:
        name: Collection name, used as the default query name.
        documents: Initial documents. Missing ``_id`` values are assigned.

    """

    def __init__(self, name: str = "collection", documents: Iterable[Mapping[str, Any]] = ()) -> None:
        self.name = name
        self._documents: dict[DocumentId, dict[str, Any]] = {}
        self._queries: list[MemoryLiveQuery] = []
        self._ids = itertools.count(1)
        for doc in documents:
            self._store(doc)

    def __len__(self) -> int:
        return len(self._documents)

    def find(
        self,
        selector: Selector = None,
        *,
        sort_key: Callable[[dict[str, Any]], Any] | None = None,
        name: str | None = None,
    ) -> MemoryLiveQuery:
        """Return a live query over matching documents."""
        return MemoryLiveQuery(self, selector, sort_key=sort_key, name=name)

    def get(self, doc_id: DocumentId) -> dict[str, Any] | None:
        doc = self._documents.get(doc_id)
        return dict(doc) if doc is not None else None

    def insert(self, doc: Mapping[str, Any]) -> DocumentId:
        """Insert a document and return its ``_id``."""
        doc_id = self._store(doc)
        self._notify()
        return doc_id

    def update(self, doc_id: DocumentId, fields: Mapping[str, Any]) -> bool:
        """Set ``fields`` on a document. Returns False if it does not exist."""
        doc = self._documents.get(doc_id)
        if doc is None:
            return False
        doc.update(fields)
        doc["_id"] = doc_id
        self._notify()
        return True

    def remove(self, doc_id: DocumentId) -> bool:
        """Remove a document. Returns False if it does not exist."""
        if self._documents.pop(doc_id, None) is None:
            return False
        self._notify()
        return True

    def _store(self, doc: Mapping[str, Any]) -> DocumentId:
        stored = dict(doc)
        doc_id = stored.setdefault("_id", f"{self.name}-{next(self._ids)}")
        if doc_id in self._documents:
            msg = f"duplicate _id {doc_id!r} in {self.name!r}"
            raise PreconditionError(msg)
        self._documents[doc_id] = stored
        return doc_id

    def _watch(self, query: MemoryLiveQuery) -> None:
        if query not in self._queries:
            self._queries.append(query)

    def _unwatch(self, query: MemoryLiveQuery) -> None:
        if query in self._queries:
            self._queries.remove(query)

    def _notify(self) -> None:
        for query in list(self._queries):
            query._refresh()
