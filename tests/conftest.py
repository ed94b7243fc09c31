"""Shared test fixtures for livecursor."""

from __future__ import annotations

import time
from typing import Any

import pytest

from livecursor.changes import AddChange, MoveChange, RemoveChange, UpdateChange
from livecursor.memory import MemoryCollection
from livecursor.scheduling.context import ExecutionContext


class BatchSink:
    """Sink that records every notification it receives."""

    def __init__(self) -> None:
        self.batches: list[tuple[Any, ...]] = []
        self.times: list[float] = []
        self.errors: list[BaseException] = []
        self.completed = 0

    def next(self, batch: tuple[Any, ...]) -> None:
        self.batches.append(batch)
        self.times.append(time.monotonic())

    def error(self, exc: BaseException) -> None:
        self.errors.append(exc)

    def complete(self) -> None:
        self.completed += 1


class _SpyHandle:
    def __init__(self, spy: SpyQuery, inner: Any) -> None:
        self._spy = spy
        self._inner = inner

    def stop(self) -> None:
        self._spy.stops += 1
        self._inner.stop()


class SpyQuery:
    """Wraps a live query and counts observe() and stop() calls."""

    def __init__(self, inner: Any) -> None:
        self._inner = inner
        self.name = inner.name
        self.observe_calls = 0
        self.stops = 0

    def fetch(self) -> list[dict[str, Any]]:
        return self._inner.fetch()

    def observe(self, callbacks: Any) -> _SpyHandle:
        self.observe_calls += 1
        return _SpyHandle(self, self._inner.observe(callbacks))

    def observe_changes(self, callbacks: Any) -> _SpyHandle:
        self.observe_calls += 1
        return _SpyHandle(self, self._inner.observe_changes(callbacks))

    def fail(self, exc: BaseException) -> None:
        self._inner.fail(exc)


class FailOnObserve(SpyQuery):
    """Spy whose engine reports an error while replaying initial results."""

    def observe(self, callbacks: Any) -> _SpyHandle:
        handle = super().observe(callbacks)
        callbacks.error(RuntimeError("replay failed"))
        return handle


def apply_batch(items: list[Any], batch: tuple[Any, ...]) -> list[Any]:
    """Apply change records to ``items`` in order and return it."""
    for change in batch:
        match change:
            case AddChange(index=index, item=item):
                items.insert(index, item)
            case RemoveChange(index=index):
                items.pop(index)
            case MoveChange(from_index=from_index, to_index=to_index):
                items.insert(to_index, items.pop(from_index))
            case UpdateChange(index=index, item=item):
                items[index] = item
    return items


def by_rank(doc: dict[str, Any]) -> Any:
    return doc["rank"]


@pytest.fixture
def todos() -> MemoryCollection:
    """A collection with three ranked documents a, b, c."""
    return MemoryCollection(
        "todos",
        [
            {"_id": "a", "title": "A", "rank": 1},
            {"_id": "b", "title": "B", "rank": 2},
            {"_id": "c", "title": "C", "rank": 3},
        ],
    )


@pytest.fixture
def empty() -> MemoryCollection:
    return MemoryCollection("empty")


@pytest.fixture
def spy(todos: MemoryCollection) -> SpyQuery:
    """Spy over ``todos`` ordered by rank."""
    return SpyQuery(todos.find(sort_key=by_rank))


@pytest.fixture
def ui() -> ExecutionContext:
    return ExecutionContext("ui")


@pytest.fixture
def sink() -> BatchSink:
    return BatchSink()
