"""Change records — the four structural edits a live query can report.

A live query reports its result set changes one document at a time. The
observer turns each event into one of these records and groups them into a
``Batch``: an ordered, immutable tuple that consumers apply in sequence.

Records validate their indices on construction. A negative or non-integer
index means the live-query engine broke its contract, which is reported as
a ``PreconditionError`` instead of being silently dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from livecursor._errors import PreconditionError


def _check_index(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        msg = f"{name} must be a non-negative int, got {value!r}"
        raise PreconditionError(msg)


@dataclass(frozen=True, slots=True)
class AddChange:
    """A document entered the result set at ``index``."""

    index: int
    item: Any

    def __post_init__(self) -> None:
        _check_index("index", self.index)


@dataclass(frozen=True, slots=True)
class UpdateChange:
    """The document at ``index`` changed in place."""

    index: int
    item: Any

    def __post_init__(self) -> None:
        _check_index("index", self.index)


@dataclass(frozen=True, slots=True)
class MoveChange:
    """A document moved from ``from_index`` to ``to_index``.

    Identity is unchanged, so the record carries no document.
    """

    from_index: int
    to_index: int

    def __post_init__(self) -> None:
        _check_index("from_index", self.from_index)
        _check_index("to_index", self.to_index)


@dataclass(frozen=True, slots=True)
class RemoveChange:
    """The document at ``index`` left the result set."""

    index: int

    def __post_init__(self) -> None:
        _check_index("index", self.index)


type ChangeRecord = AddChange | UpdateChange | MoveChange | RemoveChange

# Records produced by one flush, in arrival order
type Batch = tuple[ChangeRecord, ...]
