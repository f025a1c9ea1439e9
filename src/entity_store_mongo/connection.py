"""MongoConnectionManager — Motor client lifecycle and health check."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .exceptions import StoreConnectionError

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

    from .config import StoreOptions

logger = logging.getLogger("entity_store.mongo.connection")


class MongoConnectionManager:
    """Wrap a Motor client with lifecycle and health-check helpers."""

    def __init__(
        self,
        url: str = "mongodb://localhost:27017",
        *,
        database: str = "test",
        server_selection_timeout_ms: int = 5000,
        connect_timeout_ms: int = 10000,
        **kwargs: Any,
    ) -> None:
        self._url = url
        self._database = database
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._connect_timeout_ms = connect_timeout_ms
        self._kwargs = kwargs
        self._client: AsyncIOMotorClient[Any] | None = None

    @classmethod
    def from_options(cls, options: StoreOptions) -> MongoConnectionManager:
        return cls(
            options.connection_url,
            database=options.db,
            server_selection_timeout_ms=options.server_selection_timeout_ms,
            connect_timeout_ms=options.connect_timeout_ms,
            **options.client_kwargs,
        )

    @classmethod
    def from_client(
        cls, client: AsyncIOMotorClient[Any], database: str = "test"
    ) -> MongoConnectionManager:
        """Adopt an already established client; ``connect`` becomes a no-op."""
        manager = cls(database=database)
        manager._client = client
        return manager

    async def connect(self) -> AsyncIOMotorClient[Any]:
        """Create and cache the Motor client. Idempotent."""
        if self._client is not None:
            return self._client
        try:
            from motor.motor_asyncio import AsyncIOMotorClient
        except ImportError as e:
            raise StoreConnectionError(
                "motor is required; install with motor>=3.3.0", cause=e
            ) from e
        try:
            self._client = AsyncIOMotorClient(
                self._url,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                connectTimeoutMS=self._connect_timeout_ms,
                **self._kwargs,
            )
        except Exception as e:
            raise StoreConnectionError(str(e), cause=e) from e
        logger.debug("Connected to %s (database=%s)", self._url, self._database)
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> AsyncIOMotorClient[Any]:
        """Return the Motor client; raises if not connected."""
        if self._client is None:
            raise StoreConnectionError("Not connected; call connect() first")
        return self._client

    @property
    def database_name(self) -> str:
        return self._database

    @property
    def database(self) -> AsyncIOMotorDatabase[Any]:
        return self.client.get_database(self._database)

    def close(self) -> None:
        """Close the client (synchronous; Motor client.close() is sync)."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug("Closed connection to %s", self._url)

    async def ping(self) -> None:
        """Ping the server; raises ``StoreConnectionError`` if unreachable."""
        try:
            await self.client.admin.command("ping")
        except StoreConnectionError:
            raise
        except Exception as e:
            raise StoreConnectionError(str(e), cause=e) from e

    async def health_check(self) -> bool:
        """Ping the server; return True if reachable."""
        if self._client is None:
            return False
        try:
            await self.ping()
            return True
        except StoreConnectionError:
            return False
