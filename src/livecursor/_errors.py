"""livecursor error hierarchy.

All livecursor-specific errors inherit from LiveCursorError for easy catching.
"""

from __future__ import annotations

from typing import Any


class LiveCursorError(Exception):
    """Base error for all livecursor operations."""


class PreconditionError(LiveCursorError):
    """A capability check or record invariant failed. Fatal, never retried."""


class InvalidInputError(PreconditionError):
    """The bound object does not satisfy the required capability."""


class ConfigError(LiveCursorError):
    """Invalid or missing configuration."""


class PropagatedQueryError(LiveCursorError):
    """A live query reported an error through its own callback channel.

    The engine's exception is available as ``__cause__``.

    Attributes:
        query: The live query that failed.

    """

    def __init__(self, message: str, *, query: Any = None) -> None:
        super().__init__(message)
        self.query = query
