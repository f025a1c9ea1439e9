"""Exceptions raised by the MongoDB entity store."""

from __future__ import annotations


class EntityStoreError(Exception):
    """Root exception for the entity store."""


class InvalidQueryError(EntityStoreError):
    """Raised when a query modifier has a malformed shape.

    Detected while building an ``EntityQuery``, before anything is sent
    to the database.
    """


class StoreError(EntityStoreError):
    """Raised when the database reports a failure.

    Wraps the original driver error so callers only deal with one type.
    """

    def __init__(
        self,
        message: str,
        *,
        store: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.store = store
        self.cause = cause
        super().__init__(message)


class StoreConnectionError(StoreError):
    """Raised when the connection to MongoDB cannot be established.

    Unlike per-operation ``StoreError`` this is fatal to the store.
    """


class SerializationError(StoreError):
    """Raised when an entity payload or a stored record cannot be converted."""
