"""Entity model consumed by the store: canonical name, payload, reconstruction."""

from __future__ import annotations

from typing import Any, ClassVar, NamedTuple, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict

from .exceptions import SerializationError
from .serialization import from_document

E = TypeVar("E", bound="IEntity")


class CanonicalName(NamedTuple):
    """``(base, name)`` pair identifying an entity type."""

    base: str | None
    name: str


@runtime_checkable
class IEntity(Protocol):
    """What the store needs from an entity.

    ``Entity`` implements it on top of pydantic; any other object with the
    same surface works as well.
    """

    id: Any

    def canon(self) -> CanonicalName: ...

    def data(self) -> dict[str, Any]: ...

    def make(self: E, record: dict[str, Any]) -> E: ...

    def with_id(self: E, entity_id: Any) -> E: ...


def is_internal_field(name: str) -> bool:
    """Bookkeeping fields never written to the database."""
    return name.startswith("_") or name.endswith("$")


def table_name(entity: IEntity) -> str:
    """Derive the collection name: ``{base}_{name}`` or just ``{name}``."""
    base, name = entity.canon()
    return f"{base}_{name}" if base else name


class Entity(BaseModel):
    """Base class for persisted entities.

    Usage::

        class Widget(Entity):
            entity_base: ClassVar[str | None] = "items"
            entity_name: ClassVar[str] = "widget"

            status: str = "active"

        store.save(Widget(status="active"))  # stored in "items_widget"

    Extra fields are allowed so records with additional properties
    round-trip without loss.
    """

    model_config = ConfigDict(extra="allow")

    entity_base: ClassVar[str | None] = None
    entity_name: ClassVar[str] = ""

    id: str | int | None = None

    def canon(self) -> CanonicalName:
        name = self.entity_name or type(self).__name__.lower()
        return CanonicalName(self.entity_base, name)

    def data(self) -> dict[str, Any]:
        """Write payload: every field except ``id`` and internal ones."""
        dumped = self.model_dump(mode="python", exclude={"id"})
        return {k: v for k, v in dumped.items() if not is_internal_field(k)}

    def make(self, record: dict[str, Any]) -> Entity:
        """Build an entity of this type from a stored record."""
        try:
            return type(self).model_validate(from_document(record))
        except SerializationError:
            raise
        except Exception as e:
            raise SerializationError(
                f"Cannot rebuild {type(self).__name__} from record: {e}", cause=e
            ) from e

    def with_id(self, entity_id: Any) -> Entity:
        return self.model_copy(update={"id": entity_id})
