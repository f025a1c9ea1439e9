"""Entity payload <-> BSON document conversion (Decimal, UUID, ``_id``)."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, cast
from uuid import UUID

from bson import Decimal128, ObjectId

from .exceptions import SerializationError

ID_FIELD = "id"
DOC_ID = "_id"


def new_document_id() -> str:
    """Generate a string identifier for a document inserted without one."""
    return str(ObjectId())


def _serialize_value(value: Any) -> Any:
    """Convert Python types to BSON-safe types."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, Mapping):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_serialize_value(v) for v in value]
    return value


def _deserialize_value(value: Any) -> Any:
    """Convert BSON types back to Python types."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _deserialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_deserialize_value(v) for v in value]
    return value


def to_document(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a write payload to a BSON-ready document.

    The payload never carries an identifier; ``_id`` is managed by the store.
    """
    if not isinstance(payload, Mapping):
        raise SerializationError(
            f"Entity payload must be a mapping, got {type(payload).__name__}"
        )
    doc = cast("dict[str, Any]", _serialize_value(payload))
    doc.pop(DOC_ID, None)
    doc.pop(ID_FIELD, None)
    return doc


def from_document(doc: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a stored document to entity fields, mapping ``_id`` to ``id``."""
    if not isinstance(doc, Mapping):
        raise SerializationError("Document must be a mapping")
    data = dict(doc)
    if DOC_ID in data:
        data[ID_FIELD] = data.pop(DOC_ID)
    return cast("dict[str, Any]", _deserialize_value(data))
