"""
Driver results and their normalization into entities.

The driver boundary never returns bare documents or cursors. Every call
produces one of the tagged variants below, and ``ResultNormalizer``
dispatches on the tag:

- ``Single``    at most one record (``find_one``)
- ``Many``      an already materialized list of records
- ``Stream``    a cursor that still has to be drained
- ``ChangeSet`` before/after snapshots from a mutating call
- ``Inserted`` / ``Updated`` acknowledgements of writes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

E = TypeVar("E")

Record = dict[str, Any]


@dataclass(frozen=True)
class Single:
    record: Record | None
    kind: str = field(default="single", init=False)


@dataclass(frozen=True)
class Many:
    records: list[Record]
    kind: str = field(default="many", init=False)


@dataclass(frozen=True)
class Stream:
    cursor: AsyncIterator[Record]
    kind: str = field(default="stream", init=False)


@dataclass(frozen=True)
class Change:
    """Before/after snapshot of one affected record."""

    old_val: Record | None
    new_val: Record | None = None


@dataclass(frozen=True)
class ChangeSet:
    changes: list[Change]
    deleted: int = 0
    kind: str = field(default="changes", init=False)


@dataclass(frozen=True)
class Inserted:
    generated_keys: list[Any]
    kind: str = field(default="inserted", init=False)


@dataclass(frozen=True)
class Updated:
    matched: int
    modified: int
    kind: str = field(default="updated", init=False)


ReadResult = Single | Many | Stream | ChangeSet


async def drain(cursor: AsyncIterator[Record]) -> list[Record]:
    """Read every record from ``cursor``.

    Errors propagate as raised; nothing read so far is returned.
    """
    return [record async for record in cursor]


class ResultNormalizer(Generic[E]):
    """Turn tagged driver results into entities via a ``make`` function."""

    def __init__(self, make: Callable[[Record], E]) -> None:
        self._make = make

    async def records(self, result: ReadResult) -> list[Record]:
        if isinstance(result, Single):
            return [] if result.record is None else [result.record]
        if isinstance(result, Many):
            return list(result.records)
        if isinstance(result, Stream):
            return await drain(result.cursor)
        if isinstance(result, ChangeSet):
            return [c.old_val for c in result.changes if c.old_val is not None]
        raise TypeError(f"Unsupported result type: {type(result).__name__}")

    async def one(self, result: ReadResult) -> E | None:
        """First record as an entity, or ``None`` when nothing matched."""
        records = await self.records(result)
        return self._make(records[0]) if records else None

    async def many(self, result: ReadResult) -> list[E]:
        """Every record as an entity, in result order."""
        return [self._make(r) for r in await self.records(result)]
