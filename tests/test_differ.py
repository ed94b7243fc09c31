"""Tests for livecursor.reactive.differ — batches to renderer edit lists."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from livecursor._errors import InvalidInputError
from livecursor.memory import MemoryCollection
from livecursor.reactive.differ import ChangeDiffer, EditRecord, track_by_id
from livecursor.reactive.observer import LiveQueryObserver

from tests.conftest import SpyQuery, by_rank


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _differ() -> ChangeDiffer:
    return ChangeDiffer(lambda query: LiveQueryObserver(query, 10))


def _apply(items: list[Any], differ: ChangeDiffer) -> list[Any]:
    """Apply the differ's operations to ``items`` the way a renderer would."""

    def step(record: EditRecord, previous: int | None, current: int | None) -> None:
        if previous is None:
            items.insert(current, record.item)
        elif current is None:
            items.pop(previous)
        else:
            items.insert(current, items.pop(previous))

    differ.for_each_operation(step)
    return items


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestTrackBy:
    def test_mapping_id(self) -> None:
        assert track_by_id(0, {"_id": "a"}) == "a"

    def test_attribute_id(self) -> None:
        class Doc:
            _id = "x"

        assert track_by_id(None, Doc()) == "x"

    def test_missing_id(self) -> None:
        assert track_by_id(0, None) is None


class TestSupports:
    def test_supports_live_query(self, spy: SpyQuery) -> None:
        assert ChangeDiffer.supports(spy)

    def test_rejects_plain_objects(self) -> None:
        assert not ChangeDiffer.supports([1, 2, 3])
        assert not ChangeDiffer.supports(None)


class TestDiff:
    """Consuming batches between change-detection passes."""

    @pytest.mark.asyncio
    async def test_first_diff_binds_observer(self, spy: SpyQuery) -> None:
        differ = _differ()
        assert differ.diff(spy) is differ
        assert differ.observer is not None
        assert differ.observer.query is spy
        assert differ.operations == ()

    @pytest.mark.asyncio
    async def test_inserts_reproduce_results(self, spy: SpyQuery) -> None:
        differ = _differ()
        differ.diff(spy)
        await asyncio.sleep(0.05)

        assert differ.diff(spy) is differ
        assert len(differ.inserted) == 3
        assert [r.trackby_id for r in differ.inserted] == ["a", "b", "c"]
        assert differ.displayed_count == 3
        assert _apply([], differ) == spy.fetch()

    @pytest.mark.asyncio
    async def test_no_change_returns_none(self, spy: SpyQuery) -> None:
        differ = _differ()
        differ.diff(spy)
        await asyncio.sleep(0.05)
        differ.diff(spy)

        assert differ.diff(spy) is None
        assert differ.operations == ()

    @pytest.mark.asyncio
    async def test_diff_none_keeps_binding(self, spy: SpyQuery) -> None:
        differ = _differ()
        differ.diff(spy)
        observer = differ.observer
        assert differ.diff(None) is None
        assert differ.observer is observer

    @pytest.mark.asyncio
    async def test_invalid_query_keeps_binding(self, spy: SpyQuery) -> None:
        differ = _differ()
        differ.diff(spy)
        observer = differ.observer

        with pytest.raises(InvalidInputError):
            differ.diff(object())  # type: ignore[arg-type]
        assert differ.observer is observer
        assert observer is not None
        assert observer.query is spy
        assert observer.state == "observing"
        assert spy.stops == 0
        assert differ.removed == ()

        with pytest.raises(InvalidInputError):
            differ.diff(object())  # type: ignore[arg-type]

        await asyncio.sleep(0.05)
        assert differ.diff(spy) is differ
        assert len(differ.inserted) == 3

    @pytest.mark.asyncio
    async def test_edits_track_results(self, todos: MemoryCollection) -> None:
        query = todos.find(sort_key=by_rank)
        differ = _differ()
        differ.diff(query)
        await asyncio.sleep(0.05)
        differ.diff(query)
        displayed = _apply([], differ)

        todos.insert({"_id": "d", "rank": 0})
        todos.remove("b")
        await asyncio.sleep(0.05)
        assert differ.diff(query) is differ
        assert [r.previous_index for r in differ.removed] == [2]
        assert [r.current_index for r in differ.inserted] == [0]
        assert _apply(displayed, differ) == query.fetch()
        assert differ.displayed_count == 3

    @pytest.mark.asyncio
    async def test_moves_and_updates(self, todos: MemoryCollection) -> None:
        query = todos.find(sort_key=by_rank)
        differ = _differ()
        differ.diff(query)
        await asyncio.sleep(0.05)
        differ.diff(query)

        todos.update("a", {"rank": 5})
        await asyncio.sleep(0.05)
        differ.diff(query)

        assert [(r.previous_index, r.current_index) for r in differ.moved] == [(1, 0), (2, 1)]
        assert [r.trackby_id for r in differ.moved] == [None, None]
        assert len(differ.updated) == 1
        assert differ.updated[0].current_index == 2
        assert differ.updated[0].trackby_id == "a"
        assert differ.updated[0] not in differ.operations
        assert len(differ.operations) == 2

    @pytest.mark.asyncio
    async def test_batches_accumulate_between_passes(self, todos: MemoryCollection) -> None:
        query = todos.find(sort_key=by_rank)
        differ = _differ()
        differ.diff(query)
        await asyncio.sleep(0.05)

        todos.insert({"_id": "d", "rank": 4})
        await asyncio.sleep(0.05)
        differ.diff(query)
        # initial three plus the later insert, from two batches
        assert len(differ.inserted) == 4


class TestQuerySwap:
    """A new query identity cleans up the old one first."""

    @pytest.mark.asyncio
    async def test_swap_removes_old_items(self, todos: MemoryCollection, spy: SpyQuery) -> None:
        other = SpyQuery(MemoryCollection("other", [{"_id": "z"}]).find())
        differ = _differ()
        differ.diff(spy)
        await asyncio.sleep(0.05)
        differ.diff(spy)

        todos.insert({"_id": "d", "rank": 4})
        assert differ.diff(other) is differ
        assert spy.stops == 1
        assert differ.observer is not None
        assert differ.observer.query is other
        assert [(r.previous_index, r.current_index) for r in differ.removed] == [(0, None)] * 3
        assert differ.inserted == ()
        assert differ.displayed_count == 0

        await asyncio.sleep(0.05)
        differ.diff(other)
        assert [r.trackby_id for r in differ.inserted] == ["z"]

    @pytest.mark.asyncio
    async def test_on_destroy_cleans_up(self, spy: SpyQuery) -> None:
        differ = _differ()
        differ.diff(spy)
        await asyncio.sleep(0.05)
        differ.diff(spy)

        differ.on_destroy()
        assert spy.stops == 1
        assert differ.observer is None
        assert len(differ.removed) == 3
        assert differ.displayed_count == 0
