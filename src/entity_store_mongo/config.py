"""Store configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``overrides`` over ``base`` without mutating either."""
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class StoreOptions:
    """
    Connection settings for ``MongoEntityStore``.

    Attributes:
        host: MongoDB host.
        port: MongoDB port.
        db: Database holding the entity collections.
        url: Full connection string; overrides ``host``/``port`` when set.
        server_selection_timeout_ms: Passed through to the driver.
        connect_timeout_ms: Passed through to the driver.
        client_kwargs: Extra keyword arguments for the motor client.
        connection: An already established connection (a
            ``MongoConnectionManager`` or a motor client). When given,
            ``connect`` is skipped entirely.
    """

    host: str = "localhost"
    port: int = 27017
    db: str = "test"
    url: str | None = None
    server_selection_timeout_ms: int = 5000
    connect_timeout_ms: int = 10000
    client_kwargs: dict[str, Any] = field(default_factory=dict)
    connection: Any = None

    @classmethod
    def from_mapping(cls, spec: Mapping[str, Any] | None = None) -> StoreOptions:
        """Build options from caller overrides merged over the defaults.

        Keys that are not options are handed to the motor client.
        """
        known = {f.name for f in fields(cls)}
        defaults: dict[str, Any] = {
            f.name: getattr(cls, f.name) for f in fields(cls) if f.name != "client_kwargs"
        }
        merged = deep_merge(defaults, spec or {})
        extra = {k: merged.pop(k) for k in list(merged) if k not in known}
        client_kwargs = deep_merge(extra, merged.pop("client_kwargs", None) or {})
        return cls(**merged, client_kwargs=client_kwargs)

    @property
    def connection_url(self) -> str:
        return self.url or f"mongodb://{self.host}:{self.port}"

    def with_overrides(self, **overrides: Any) -> StoreOptions:
        """Return a copy with the given options replaced."""
        return replace(self, **overrides)
