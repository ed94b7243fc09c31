"""Resource handle — joint, idempotent release of observation capabilities.

Pairs the mandatory observer capability (the live query's observation
handle, or a LiveQueryObserver) with an optional auto-notify capability.
Both only need a ``stop()`` method.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from livecursor._errors import PreconditionError


@runtime_checkable
class Stoppable(Protocol):
    """Anything that can be released with ``stop()``."""

    def stop(self) -> None: ...


def _is_stoppable(obj: object) -> bool:
    return callable(getattr(obj, "stop", None))


class ResourceHandle:
    """Owns one observer capability and at most one auto-notify capability.

    ``stop()`` releases the auto-notify capability first (if any), then the
    observer. Calling it again is a no-op.

    Args:
        observer: Observation handle to release. Must expose ``stop()``.
        auto_notify: Optional secondary capability. Must expose ``stop()``.

    """

    __slots__ = ("_auto_notify", "_observer", "_stopped")

    def __init__(self, observer: Stoppable, auto_notify: Stoppable | None = None) -> None:
        if not _is_stoppable(observer):
            msg = f"observer handle must expose stop(), got {type(observer).__name__}"
            raise PreconditionError(msg)
        if auto_notify is not None and not _is_stoppable(auto_notify):
            msg = f"auto-notify handle must expose stop(), got {type(auto_notify).__name__}"
            raise PreconditionError(msg)
        self._observer: Stoppable | None = observer
        self._auto_notify = auto_notify
        self._stopped = False

    @property
    def stopped(self) -> bool:
        """Whether ``stop()`` has been called."""
        return self._stopped

    def stop(self) -> None:
        """Release both capabilities once."""
        if self._stopped:
            return
        self._stopped = True
        auto_notify, observer = self._auto_notify, self._observer
        self._auto_notify = None
        self._observer = None
        if auto_notify is not None:
            auto_notify.stop()
        if observer is not None:
            observer.stop()
