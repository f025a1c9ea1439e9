"""Thin boundary over a Motor collection returning tagged results."""

from __future__ import annotations

from typing import Any

from .results import Change, ChangeSet, Inserted, Single, Stream, Updated
from .serialization import DOC_ID, new_document_id


class MongoCollectionDriver:
    """Execute requests against one collection.

    Driver errors (``pymongo.errors.PyMongoError``) propagate unchanged;
    translating them is the store's job.
    """

    def __init__(self, collection: Any) -> None:
        self._collection = collection

    @property
    def collection(self) -> Any:
        return self._collection

    async def get(self, doc_id: Any) -> Single:
        return Single(await self._collection.find_one({DOC_ID: doc_id}))

    def run(self, pipeline: list[dict[str, Any]]) -> Stream:
        """Start an aggregation; the returned cursor is read lazily."""
        return Stream(self._collection.aggregate(pipeline))

    async def insert(self, doc: dict[str, Any]) -> Inserted:
        doc = {DOC_ID: new_document_id(), **doc}
        result = await self._collection.insert_one(doc)
        return Inserted([result.inserted_id])

    async def update(self, doc_id: Any, doc: dict[str, Any]) -> Updated:
        result = await self._collection.update_one({DOC_ID: doc_id}, {"$set": doc})
        return Updated(result.matched_count, result.modified_count)

    async def delete(
        self, match: dict[str, Any], *, return_changes: bool = True
    ) -> ChangeSet:
        """Delete documents matching ``match`` (``{}`` deletes everything).

        With ``return_changes`` the matching documents are read first and
        exactly those are deleted, so the change set holds the state
        immediately before deletion.
        """
        if not return_changes:
            result = await self._collection.delete_many(match)
            return ChangeSet([], deleted=result.deleted_count)
        snapshot = [doc async for doc in self._collection.find(match)]
        if not snapshot:
            return ChangeSet([])
        ids = [doc[DOC_ID] for doc in snapshot]
        result = await self._collection.delete_many({DOC_ID: {"$in": ids}})
        return ChangeSet(
            [Change(old_val=doc) for doc in snapshot], deleted=result.deleted_count
        )
