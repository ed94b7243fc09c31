"""Trailing-edge debouncer on the asyncio event loop.

Collects bursts of ``trigger()`` calls into one deferred ``action`` call.
The window restarts on every trigger, so ``action`` only fires after
``wait_ms`` of quiet.

The first trigger of a window calls ``on_first_call()`` and keeps its
result; ``action`` receives that value when the window closes. The live
query observer uses this to create the flush task at the start of a burst
and invoke it at the end.

A zero window behaves differently before and after the first fire. Until
the first fire, triggers made before the loop yields coalesce into a single
``call_soon`` round (a live query replays its initial result set as a burst
of synchronous callbacks). After that, every trigger runs its own round
immediately.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from livecursor._errors import PreconditionError

if TYPE_CHECKING:
    from collections.abc import Callable


class Debouncer[T]:
    """Trailing-edge debounce of ``action``.

    Args:
        action: Called with the value captured by ``on_first_call``.
        wait_ms: Quiet period in milliseconds. ``0`` is legal.
        on_first_call: Called on the first trigger of each window.
        loop: Event loop for timers. Defaults to the running loop.

    """

    __slots__ = (
        "_action",
        "_data",
        "_handle",
        "_loop",
        "_on_first_call",
        "_wait_ms",
        "fire_count",
    )

    def __init__(
        self,
        action: Callable[[T | None], Any],
        wait_ms: float,
        on_first_call: Callable[[], T] | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if wait_ms < 0:
            msg = f"wait_ms must be >= 0, got {wait_ms!r}"
            raise PreconditionError(msg)
        self._action = action
        self._wait_ms = wait_ms
        self._on_first_call = on_first_call
        self._loop = loop
        self._handle: asyncio.Handle | None = None
        self._data: T | None = None
        self.fire_count = 0

    @property
    def wait_ms(self) -> float:
        return self._wait_ms

    @property
    def pending(self) -> bool:
        """Whether a window is open and waiting to fire."""
        return self._handle is not None

    def __call__(self) -> None:
        self.trigger()

    def trigger(self) -> None:
        """Open or extend the current window."""
        if self._wait_ms == 0 and self.fire_count and self._handle is None:
            self.fire_count += 1
            self._action(self._first_call())
            return

        if self._handle is None:
            self._data = self._first_call()
        else:
            self._handle.cancel()

        loop = self._loop or asyncio.get_running_loop()
        if self._wait_ms == 0:
            self._handle = loop.call_soon(self._fire)
        else:
            self._handle = loop.call_later(self._wait_ms / 1000, self._fire)

    def flush(self) -> None:
        """Fire a pending window now. Does nothing when nothing is pending."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop a pending window without firing it."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._data = None

    def _first_call(self) -> T | None:
        return self._on_first_call() if self._on_first_call is not None else None

    def _fire(self) -> None:
        data = self._data
        self._handle = None
        self._data = None
        self.fire_count += 1
        self._action(data)


def debounce[T](
    action: Callable[[T | None], Any],
    wait_ms: float,
    on_first_call: Callable[[], T] | None = None,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> Debouncer[T]:
    """Return a ``Debouncer`` whose ``trigger()`` (or call) debounces ``action``."""
    return Debouncer(action, wait_ms, on_first_call, loop=loop)
