"""Tests for livecursor.scheduling.debounce — trailing-edge debouncer."""

from __future__ import annotations

import asyncio

import pytest

from livecursor._errors import PreconditionError
from livecursor.scheduling.debounce import Debouncer, debounce


class _Counter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        return self.calls


class TestDebouncerConstruction:
    def test_negative_wait_rejected(self) -> None:
        with pytest.raises(PreconditionError, match="wait_ms"):
            Debouncer(print, -1)

    def test_zero_wait_allowed(self) -> None:
        assert Debouncer(print, 0).wait_ms == 0

    def test_factory(self) -> None:
        d = debounce(print, 10)
        assert isinstance(d, Debouncer)
        assert not d.pending


class TestDebouncerTiming:
    """Coalescing behaviour on a running loop."""

    @pytest.mark.asyncio
    async def test_burst_fires_once(self) -> None:
        calls: list[object] = []
        first = _Counter()
        d = Debouncer(calls.append, 20, first)

        for _ in range(5):
            d.trigger()
        assert d.pending
        assert first.calls == 1

        await asyncio.sleep(0.1)
        assert calls == [1]
        assert d.fire_count == 1
        assert not d.pending

    @pytest.mark.asyncio
    async def test_spaced_triggers_fire_separately(self) -> None:
        calls: list[object] = []
        d = Debouncer(calls.append, 10, _Counter())

        d.trigger()
        await asyncio.sleep(0.06)
        d()
        await asyncio.sleep(0.06)
        assert calls == [1, 2]

    @pytest.mark.asyncio
    async def test_without_first_call_action_gets_none(self) -> None:
        calls: list[object] = []
        d = Debouncer(calls.append, 5)
        d.trigger()
        await asyncio.sleep(0.05)
        assert calls == [None]

    @pytest.mark.asyncio
    async def test_flush_fires_now(self) -> None:
        calls: list[object] = []
        d = Debouncer(calls.append, 1000, _Counter())
        d.trigger()
        d.flush()
        assert calls == [1]
        assert not d.pending

        d.flush()
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_cancel_drops_window(self) -> None:
        calls: list[object] = []
        d = Debouncer(calls.append, 5)
        d.trigger()
        d.cancel()
        await asyncio.sleep(0.05)
        assert calls == []
        assert d.fire_count == 0


class TestZeroWait:
    """A zero window coalesces before the first fire, not after."""

    @pytest.mark.asyncio
    async def test_initial_burst_coalesces(self) -> None:
        calls: list[object] = []
        d = Debouncer(calls.append, 0, _Counter())
        d.trigger()
        d.trigger()
        d.trigger()
        assert calls == []

        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_after_first_fire_runs_synchronously(self) -> None:
        calls: list[object] = []
        d = Debouncer(calls.append, 0, _Counter())
        d.trigger()
        await asyncio.sleep(0.01)
        assert calls == [1]

        d.trigger()
        assert calls == [1, 2]
        d.trigger()
        assert calls == [1, 2, 3]
        assert d.fire_count == 3
        assert not d.pending
