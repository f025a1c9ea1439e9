"""MongoDB entity store.

Translates store-agnostic entity queries (filters plus ``$`` modifier keys
for sorting, paging, projection and native passthrough) into MongoDB
requests, and normalizes responses back into entities.
"""

from __future__ import annotations

from .compiler import MongoQueryCompiler, base_pipeline
from .config import StoreOptions
from .connection import MongoConnectionManager
from .driver import MongoCollectionDriver
from .entity import CanonicalName, Entity, IEntity, table_name
from .exceptions import (
    EntityStoreError,
    InvalidQueryError,
    SerializationError,
    StoreConnectionError,
    StoreError,
)
from .query import EntityQuery, SortKey, sanitize_filters
from .results import (
    Change,
    ChangeSet,
    Inserted,
    Many,
    ResultNormalizer,
    Single,
    Stream,
    Updated,
)
from .serialization import from_document, to_document
from .store import STORE_NAME, MongoEntityStore, NativeHandle

__all__ = [
    # Store
    "MongoEntityStore",
    "NativeHandle",
    "STORE_NAME",
    "StoreOptions",
    "MongoConnectionManager",
    # Entities
    "Entity",
    "IEntity",
    "CanonicalName",
    "table_name",
    # Queries
    "EntityQuery",
    "SortKey",
    "sanitize_filters",
    "MongoQueryCompiler",
    "base_pipeline",
    # Driver results
    "MongoCollectionDriver",
    "ResultNormalizer",
    "Single",
    "Many",
    "Stream",
    "Change",
    "ChangeSet",
    "Inserted",
    "Updated",
    # Utilities
    "to_document",
    "from_document",
    # Exceptions
    "EntityStoreError",
    "StoreError",
    "StoreConnectionError",
    "InvalidQueryError",
    "SerializationError",
]
