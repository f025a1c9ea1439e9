"""Test configuration for the MongoDB entity store."""

from __future__ import annotations

from typing import ClassVar

import pytest

from entity_store_mongo import Entity, MongoConnectionManager, MongoEntityStore


# Sample entities (names avoid pytest collecting them as test classes)
class Widget(Entity):
    """Namespaced entity stored in ``items_widget``."""

    entity_base: ClassVar[str | None] = "items"
    entity_name: ClassVar[str] = "widget"

    status: str = "active"
    created_at: int = 0
    label: str | None = None


class Note(Entity):
    """Entity without a base, stored in ``note``."""

    entity_name: ClassVar[str] = "note"

    text: str = ""


@pytest.fixture
def mock_client():
    """Create a mock MongoDB client."""
    from mongomock_motor import AsyncMongoMockClient

    return AsyncMongoMockClient(default_database_name="test_db")


@pytest.fixture
def mock_connection(mock_client):
    """Create a connection manager wrapping the mock client."""
    return MongoConnectionManager.from_client(mock_client, database="test_db")


@pytest.fixture
async def store(mock_connection):
    """Create an initialised store over the mock connection."""
    store = MongoEntityStore({"db": "test_db", "connection": mock_connection})
    await store.init()
    yield store
    await store.close()


@pytest.fixture
def widgets(mock_connection):
    """Raw ``items_widget`` collection for seeding and inspection."""
    return mock_connection.database.get_collection("items_widget")


@pytest.fixture
async def seeded_widgets(widgets):
    """5 active and 3 inactive widgets with distinct ``created_at``."""
    docs = [
        {"_id": f"a{i}", "status": "active", "created_at": i, "label": f"active-{i}"}
        for i in range(1, 6)
    ] + [
        {"_id": f"i{i}", "status": "inactive", "created_at": 10 + i}
        for i in range(1, 4)
    ]
    await widgets.insert_many(docs)
    return docs
