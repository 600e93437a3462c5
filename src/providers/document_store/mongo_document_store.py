"""MongoDB-backed document store provider.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing IDocumentStore).
# Backend: pymongo's native asyncio client (AsyncMongoClient).
#
# Identity mapping:
#   - ``_id`` values leave this module as 24-char hex strings.
#   - A string ``_id`` in a filter is turned back into an ObjectId when it
#     is a valid one, so callers never import bson.
#   - Cross-document references (story_id, chapter_id, ...) are stored as
#     the same hex strings.
#
# Every pymongo failure is re-raised as PersistenceError.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import structlog
from bson import ObjectId
from pymongo import AsyncMongoClient, UpdateOne
from pymongo.errors import PyMongoError

from src.interfaces.document_store import (
    BulkWriteSummary,
    Document,
    IDocumentStore,
    UpsertOperation,
)
from src.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER = "mongodb"


def _to_object_id(value: Any) -> Any:
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _prepare_filter(filter: Document | None) -> Document:
    if not filter:
        return {}
    prepared = dict(filter)
    if "_id" in prepared:
        prepared["_id"] = _to_object_id(prepared["_id"])
    return prepared


def _export(document: Document) -> Document:
    exported = dict(document)
    if isinstance(exported.get("_id"), ObjectId):
        exported["_id"] = str(exported["_id"])
    return exported


def _update_document(operation: UpsertOperation) -> Document:
    update: Document = {}
    if operation.set_fields:
        update["$set"] = dict(operation.set_fields)
    if operation.set_on_insert:
        update["$setOnInsert"] = dict(operation.set_on_insert)
    return update


class MongoDocumentStore(IDocumentStore):
    """Document store over a single MongoDB database.

    Parameters
    ----------
    uri:
        MongoDB connection string.
    database:
        Database holding every collection.
    client:
        Pre-built client, mainly for tests.  When omitted one is created
        with ``tz_aware=True`` so datetimes round-trip as UTC-aware values.
    """

    def __init__(
        self,
        uri: str,
        database: str,
        client: AsyncMongoClient | None = None,
    ) -> None:
        self._client = client if client is not None else AsyncMongoClient(uri, tz_aware=True)
        self._db = self._client[database]
        self._database_name = database

    # ------------------------------------------------------------------
    # IDocumentStore implementation
    # ------------------------------------------------------------------

    async def find_one(self, collection: str, filter: Document) -> Document | None:
        try:
            document = await self._db[collection].find_one(_prepare_filter(filter))
        except PyMongoError as exc:
            raise self._wrap("find_one", collection, exc) from exc
        return _export(document) if document is not None else None

    async def find(
        self, collection: str, filter: Document | None = None
    ) -> AsyncIterator[Document]:
        try:
            cursor = self._db[collection].find(_prepare_filter(filter))
            async for document in cursor:
                yield _export(document)
        except PyMongoError as exc:
            raise self._wrap("find", collection, exc) from exc

    async def exists(self, collection: str, filter: Document) -> bool:
        try:
            document = await self._db[collection].find_one(
                _prepare_filter(filter), projection={"_id": 1}
            )
        except PyMongoError as exc:
            raise self._wrap("exists", collection, exc) from exc
        return document is not None

    async def insert_one(self, collection: str, document: Document) -> str:
        try:
            # pymongo writes the generated _id into the dict it is given.
            result = await self._db[collection].insert_one(dict(document))
        except PyMongoError as exc:
            raise self._wrap("insert_one", collection, exc) from exc
        return str(result.inserted_id)

    async def insert_many(self, collection: str, documents: list[Document]) -> list[str]:
        if not documents:
            return []
        try:
            result = await self._db[collection].insert_many([dict(d) for d in documents])
        except PyMongoError as exc:
            raise self._wrap("insert_many", collection, exc) from exc
        return [str(inserted_id) for inserted_id in result.inserted_ids]

    async def bulk_upsert(
        self, collection: str, operations: list[UpsertOperation]
    ) -> BulkWriteSummary:
        if not operations:
            return BulkWriteSummary()
        requests = [
            UpdateOne(_prepare_filter(op.filter), _update_document(op), upsert=op.upsert)
            for op in operations
        ]
        try:
            result = await self._db[collection].bulk_write(requests, ordered=False)
        except PyMongoError as exc:
            raise self._wrap("bulk_upsert", collection, exc) from exc
        summary = BulkWriteSummary(
            matched=result.matched_count,
            modified=result.modified_count,
            upserted=result.upserted_count,
        )
        logger.debug(
            "mongo_bulk_upsert",
            collection=collection,
            operations=len(requests),
            matched=summary.matched,
            upserted=summary.upserted,
        )
        return summary

    async def delete_many(self, collection: str, filter: Document) -> int:
        try:
            result = await self._db[collection].delete_many(_prepare_filter(filter))
        except PyMongoError as exc:
            raise self._wrap("delete_many", collection, exc) from exc
        return result.deleted_count

    async def count(self, collection: str, filter: Document | None = None) -> int:
        try:
            return await self._db[collection].count_documents(_prepare_filter(filter))
        except PyMongoError as exc:
            raise self._wrap("count", collection, exc) from exc

    def get_provider_name(self) -> str:
        return _PROVIDER

    async def close(self) -> None:
        await self._client.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _wrap(self, operation: str, collection: str, exc: PyMongoError) -> PersistenceError:
        logger.error(
            "mongo_operation_failed",
            operation=operation,
            database=self._database_name,
            collection=collection,
            error=str(exc),
        )
        return PersistenceError(
            message=f"{operation} on {collection} failed: {exc}",
            provider_name=_PROVIDER,
        )
