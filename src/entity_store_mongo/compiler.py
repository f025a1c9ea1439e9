"""Compile entity queries into MongoDB aggregation pipelines."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .query import EntityQuery
from .serialization import DOC_ID, ID_FIELD

logger = logging.getLogger("entity_store.mongo.compiler")

Pipeline = list[dict[str, Any]]


def _field_path(name: str) -> str:
    return DOC_ID if name == ID_FIELD else name


def match_document(filters: Mapping[str, Any]) -> dict[str, Any]:
    """Equality filter document; ``id`` targets the document ``_id``."""
    return {_field_path(k): v for k, v in filters.items()}


def base_pipeline(filters: Mapping[str, Any]) -> Pipeline:
    """Pipeline restricted to the records matching ``filters``."""
    if not filters:
        return []
    return [{"$match": match_document(filters)}]


class MongoQueryCompiler:
    """Applies query modifiers to a base pipeline.

    Stages are appended in a fixed order: sort, limit, skip, projection.
    Limit is applied before skip, so ``limit$=5, skip$=2`` yields the 3rd
    to 5th records of the sorted set. Projection comes last so the sort
    key is still present while sorting.
    """

    def compile(
        self, base: Pipeline, query: EntityQuery | Mapping[str, Any]
    ) -> Pipeline | EntityQuery | Mapping[str, Any]:
        """Return the final request for ``base`` shaped by ``query``.

        A native query bypasses compilation entirely: the original query
        object is returned unchanged and structured filtering is skipped.
        """
        options = EntityQuery.from_mapping(query)
        if options.native:
            return query

        pipeline = list(base)
        sort = self.build_sort(options)
        if sort:
            pipeline.append({"$sort": sort})
        if options.limit:
            pipeline.append({"$limit": options.limit})
        if options.skip:
            pipeline.append({"$skip": options.skip})
        project = self.build_project(options.fields)
        if project:
            pipeline.append({"$project": project})
        logger.debug("Compiled pipeline: %s", pipeline)
        return pipeline

    def build_sort(self, options: EntityQuery) -> dict[str, int] | None:
        """Build the ``$sort`` document. Only single-key sort is supported."""
        if options.sort is None:
            return None
        if options.ignored_sort_keys:
            logger.warning(
                "Only single-key sort is supported; ignoring %s",
                ", ".join(options.ignored_sort_keys),
            )
        return {_field_path(options.sort.field): options.sort.direction}

    def build_project(self, fields: tuple[str, ...]) -> dict[str, int] | None:
        """Build ``$project``: ``{field: 1, ...}``. None means no projection.

        ``_id`` is kept so projected records still map onto an entity id.
        """
        if not fields:
            return None
        project = dict.fromkeys((_field_path(f) for f in fields), 1)
        project.setdefault(DOC_ID, 1)
        return project
