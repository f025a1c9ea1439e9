"""MongoEntityStore — save, load, list and remove entities in MongoDB."""

from __future__ import annotations

import builtins
import contextlib
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from bson.errors import BSONError
from pymongo.errors import PyMongoError

from .compiler import MongoQueryCompiler, base_pipeline, match_document
from .config import StoreOptions
from .connection import MongoConnectionManager
from .driver import MongoCollectionDriver
from .entity import IEntity, table_name
from .exceptions import StoreConnectionError, StoreError
from .query import EntityQuery
from .results import ResultNormalizer
from .serialization import to_document

if TYPE_CHECKING:
    from types import TracebackType

STORE_NAME = "mongo-store"

E = TypeVar("E", bound=IEntity)

QueryLike = EntityQuery | Mapping[str, Any] | None

logger = logging.getLogger("entity_store.mongo")


@dataclass(frozen=True)
class NativeHandle:
    """Raw driver objects for one entity's collection."""

    client: Any
    database: Any
    collection: Any


class MongoEntityStore:
    """
    Entity store over a single shared MongoDB connection.

    Each operation resolves the collection from the entity's canonical
    name, sends one request and normalizes the response into entities.
    Driver failures are logged once and raised as ``StoreError``.

    Usage::

        async with MongoEntityStore({"db": "shop"}) as store:
            widget = await store.save(Widget(status="active"))
            found = await store.load({"id": widget.id}, Widget())
            recent = await store.list(
                {"status": "active", "sort$": {"created_at": -1}, "limit$": 2},
                Widget(),
            )
    """

    name = STORE_NAME

    def __init__(
        self,
        options: StoreOptions | Mapping[str, Any] | None = None,
        *,
        compiler: MongoQueryCompiler | None = None,
    ) -> None:
        if not isinstance(options, StoreOptions):
            options = StoreOptions.from_mapping(options)
        self._options = options
        self._compiler = compiler or MongoQueryCompiler()
        self._connection: MongoConnectionManager | None = None

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def connection(self) -> MongoConnectionManager:
        if self._connection is None:
            raise StoreConnectionError(
                "Store is not initialised; call init() first", store=self.name
            )
        return self._connection

    # -- lifecycle -----------------------------------------------------------

    async def init(self) -> None:
        """Establish the shared connection.

        A connection supplied through the options is adopted without a
        ping; an unconnected manager is connected first.
        Failure to connect is fatal to the store.
        """
        if self._connection is not None:
            return
        supplied = self._options.connection
        if supplied is not None:
            if isinstance(supplied, MongoConnectionManager):
                await supplied.connect()
                self._connection = supplied
            else:
                self._connection = MongoConnectionManager.from_client(
                    supplied, database=self._options.db
                )
            logger.debug("Using supplied connection", extra={"store": self.name})
            return

        connection = MongoConnectionManager.from_options(self._options)
        try:
            await connection.connect()
            await connection.ping()
        except StoreConnectionError as e:
            connection.close()
            logger.critical(
                "Cannot connect to %s",
                self._options.connection_url,
                extra={"store": self.name},
                exc_info=e,
            )
            e.store = self.name
            raise
        self._connection = connection
        logger.debug("init: connect", extra={"store": self.name})

    async def close(self) -> None:
        """Release the shared connection; no-op if never connected."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    async def health_check(self) -> bool:
        if self._connection is None:
            return False
        return await self._connection.health_check()

    async def __aenter__(self) -> MongoEntityStore:
        await self.init()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # -- helpers -------------------------------------------------------------

    def _driver(self, entity: IEntity) -> MongoCollectionDriver:
        return MongoCollectionDriver(
            self.connection.database.get_collection(table_name(entity))
        )

    @contextlib.contextmanager
    def _handle_errors(self, operation: str, entity: IEntity) -> Iterator[None]:
        """Log a driver failure once and re-raise it as ``StoreError``."""
        try:
            yield
        except (PyMongoError, BSONError, StoreError) as e:
            logger.error(
                "%s on %s failed: %s",
                operation,
                table_name(entity),
                e,
                extra={"store": self.name},
                exc_info=e,
            )
            if isinstance(e, StoreError):
                e.store = self.name
                raise
            raise StoreError(str(e), store=self.name, cause=e) from e

    # -- operations ----------------------------------------------------------

    async def save(self, entity: E) -> E:
        """Insert or update ``entity``.

        An entity with an identifier is updated in place; otherwise it is
        inserted and a copy carrying the generated identifier is returned.
        The caller's instance is never mutated.
        """
        with self._handle_errors("save", entity):
            driver = self._driver(entity)
            doc = to_document(entity.data())
            if entity.id:
                await driver.update(entity.id, doc)
                return entity
            inserted = await driver.insert(doc)
            if inserted.generated_keys:
                return entity.with_id(inserted.generated_keys[0])
            return entity

    async def load(self, query: QueryLike, template: E) -> E | None:
        """Load the first entity matching ``query``, or ``None``."""
        options = EntityQuery.from_mapping(query)
        normalizer: ResultNormalizer[E] = ResultNormalizer(template.make)
        with self._handle_errors("load", template):
            driver = self._driver(template)
            if options.id:
                return await normalizer.one(await driver.get(options.id))
            pipeline = [*base_pipeline(options.filters), {"$limit": 1}]
            return await normalizer.one(driver.run(pipeline))

    async def remove(self, query: QueryLike, template: E) -> builtins.list[E]:
        """Delete matching entities (every entity with ``all$``).

        Returns the removed entities as they were immediately before
        deletion, or ``[]`` when ``load$`` is false.
        """
        options = EntityQuery.from_mapping(query)
        normalizer: ResultNormalizer[E] = ResultNormalizer(template.make)
        with self._handle_errors("remove", template):
            driver = self._driver(template)
            match = {} if options.all else match_document(options.filters)
            changes = await driver.delete(match, return_changes=options.load)
            if not options.load:
                return []
            return await normalizer.many(changes)

    async def native(self, entity: IEntity) -> NativeHandle:
        """Raw client, database and collection for ``entity``. No translation."""
        with self._handle_errors("native", entity):
            connection = self.connection
            return NativeHandle(
                client=connection.client,
                database=connection.database,
                collection=connection.database.get_collection(table_name(entity)),
            )

    async def list(self, query: QueryLike, template: E) -> builtins.list[E]:
        """List every entity matching ``query``, shaped by its modifiers.

        The cursor is drained completely before returning. A native query
        (``native$``) skips structured filtering.
        """
        options = EntityQuery.from_mapping(query)
        normalizer: ResultNormalizer[E] = ResultNormalizer(template.make)
        with self._handle_errors("list", template):
            driver = self._driver(template)
            compiled = self._compiler.compile(base_pipeline(options.filters), options)
            if isinstance(compiled, list):
                pipeline = compiled
            else:
                pipeline = EntityQuery.from_mapping(compiled).native_pipeline()
            return await normalizer.many(driver.run(pipeline))
