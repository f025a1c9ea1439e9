"""
Entity query options and the filter sanitizer.

Callers describe what they want with a plain mapping of field -> value,
optionally decorated with reserved modifier keys that end in ``$``::

    {"status": "active", "sort$": {"created_at": -1}, "limit$": 2}

``EntityQuery`` parses such a mapping once, validates the modifiers and
exposes them as named fields. The data filters never contain a modifier
key.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from numbers import Real
from typing import Any

from .exceptions import InvalidQueryError
from .serialization import DOC_ID, ID_FIELD

MODIFIER_SUFFIX = "$"

NATIVE = "native$"
SORT = "sort$"
LIMIT = "limit$"
SKIP = "skip$"
FIELDS = "fields$"
ALL = "all$"
LOAD = "load$"


def is_modifier(key: str) -> bool:
    """Return True if ``key`` follows the reserved modifier convention."""
    return key.endswith(MODIFIER_SUFFIX)


def sanitize_filters(filters: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new dict holding only the data filters of ``filters``."""
    return {k: v for k, v in filters.items() if not is_modifier(k)}


@dataclass(frozen=True)
class SortKey:
    """Single-field ordering."""

    field: str
    descending: bool = False

    @property
    def direction(self) -> int:
        return -1 if self.descending else 1


def _parse_count(name: str, value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQueryError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidQueryError(f"{name} must not be negative, got {value}")
    return value


def _parse_sort(value: Any) -> tuple[SortKey | None, tuple[str, ...]]:
    """Return the honoured sort key and the names of any ignored keys."""
    if value is None:
        return None, ()
    if not isinstance(value, Mapping):
        raise InvalidQueryError(f"{SORT} must be a mapping, got {value!r}")
    if not value:
        return None, ()
    keys = list(value)
    name = keys[0]
    direction = value[name]
    if isinstance(direction, bool) or not isinstance(direction, (Real, Decimal)):
        raise InvalidQueryError(
            f"{SORT} direction for {name!r} must be a number, got {direction!r}"
        )
    return SortKey(str(name), descending=direction < 0), tuple(keys[1:])


def _parse_fields(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not hasattr(value, "__iter__"):
        raise InvalidQueryError(f"{FIELDS} must be a collection of field names")
    names = tuple(value)
    for name in names:
        if not isinstance(name, str):
            raise InvalidQueryError(f"{FIELDS} entries must be strings, got {name!r}")
    return names


def _parse_native(value: Any) -> bool | dict[str, Any] | list[dict[str, Any]] | None:
    if value is None or value is False:
        return None
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (list, tuple)):
        return list(value)
    # any other truthy value runs the data filters as they are
    return True if value else None


@dataclass(frozen=True)
class EntityQuery:
    """
    Immutable, validated form of an entity query.

    Attributes:
        filters: Field-equality filters (never contains modifier keys).
        native: Passthrough request. ``True`` runs ``filters`` as a raw
            MongoDB filter, a dict is a raw filter, a list a raw pipeline.
        sort: Single sort key, if any.
        limit: Maximum number of results.
        skip: Number of results to skip (applied after ``limit``).
        fields: Field names to project.
        all: On remove, delete every record in the collection.
        load: On remove, return the removed records.
        ignored_sort_keys: Extra ``sort$`` keys that are not honoured.
    """

    filters: dict[str, Any] = field(default_factory=dict)
    native: bool | dict[str, Any] | list[dict[str, Any]] | None = None
    sort: SortKey | None = None
    limit: int | None = None
    skip: int | None = None
    fields: tuple[str, ...] = ()
    all: bool = False
    load: bool = True
    ignored_sort_keys: tuple[str, ...] = ()

    @classmethod
    def from_mapping(
        cls, query: EntityQuery | Mapping[str, Any] | None
    ) -> EntityQuery:
        """Parse a ``$``-decorated mapping, validating every modifier."""
        if query is None:
            return cls()
        if isinstance(query, EntityQuery):
            return query
        if not isinstance(query, Mapping):
            raise InvalidQueryError(f"query must be a mapping, got {query!r}")
        sort, ignored = _parse_sort(query.get(SORT))
        load = query.get(LOAD)
        return cls(
            filters=sanitize_filters(query),
            native=_parse_native(query.get(NATIVE)),
            sort=sort,
            limit=_parse_count(LIMIT, query.get(LIMIT)),
            skip=_parse_count(SKIP, query.get(SKIP)),
            fields=_parse_fields(query.get(FIELDS)),
            all=bool(query.get(ALL, False)),
            load=True if load is None else bool(load),
            ignored_sort_keys=ignored,
        )

    @property
    def id(self) -> Any:
        """Identifier filter, if the query targets a single record."""
        return self.filters.get("id")

    def native_pipeline(self) -> list[dict[str, Any]]:
        """Build the raw aggregation pipeline of a passthrough query."""
        if isinstance(self.native, list):
            return list(self.native)
        if isinstance(self.native, dict):
            match = self.native
        else:
            match = {
                (DOC_ID if k == ID_FIELD else k): v for k, v in self.filters.items()
            }
        return [{"$match": dict(match)}] if match else []

    def with_filters(self, **filters: Any) -> EntityQuery:
        """Return a copy with additional data filters."""
        for key in filters:
            if is_modifier(key):
                raise InvalidQueryError(f"{key!r} is a modifier, not a filter")
        return EntityQuery(
            filters={**self.filters, **filters},
            native=self.native,
            sort=self.sort,
            limit=self.limit,
            skip=self.skip,
            fields=self.fields,
            all=self.all,
            load=self.load,
            ignored_sort_keys=self.ignored_sort_keys,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise back to the ``$``-decorated mapping form."""
        result: dict[str, Any] = dict(self.filters)
        if self.native is not None:
            result[NATIVE] = self.native
        if self.sort is not None:
            result[SORT] = {self.sort.field: self.sort.direction}
        if self.limit is not None:
            result[LIMIT] = self.limit
        if self.skip is not None:
            result[SKIP] = self.skip
        if self.fields:
            result[FIELDS] = list(self.fields)
        if self.all:
            result[ALL] = True
        if not self.load:
            result[LOAD] = False
        return result
