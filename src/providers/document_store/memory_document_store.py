"""In-memory document store provider.

Simple dict-backed store for dry runs and tests.  Supports equality
filters on top-level fields plus ``$set`` / ``$setOnInsert`` upserts,
which is everything the ingestion repository needs.  Nothing persists
past the process.
"""

from __future__ import annotations

import copy
from collections.abc import AsyncIterator

import structlog
from bson import ObjectId

from src.interfaces.document_store import (
    BulkWriteSummary,
    Document,
    IDocumentStore,
    UpsertOperation,
)

logger = structlog.get_logger(logger_name=__name__)


def _matches(document: Document, filter: Document | None) -> bool:
    if not filter:
        return True
    return all(document.get(key) == value for key, value in filter.items())


class MemoryDocumentStore(IDocumentStore):
    """Process-local document store.

    Documents are deep-copied on the way in and out so callers can never
    mutate stored state by accident.  Ids are ObjectId hex strings, the
    same shape the MongoDB backend hands out.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}

    def _collection(self, name: str) -> dict[str, Document]:
        return self._collections.setdefault(name, {})

    # ------------------------------------------------------------------
    # IDocumentStore implementation
    # ------------------------------------------------------------------

    async def find_one(self, collection: str, filter: Document) -> Document | None:
        for document in self._collection(collection).values():
            if _matches(document, filter):
                return copy.deepcopy(document)
        return None

    async def find(
        self, collection: str, filter: Document | None = None
    ) -> AsyncIterator[Document]:
        # Snapshot so writes during iteration don't disturb the walk.
        snapshot = [d for d in self._collection(collection).values() if _matches(d, filter)]
        for document in snapshot:
            yield copy.deepcopy(document)

    async def exists(self, collection: str, filter: Document) -> bool:
        return any(_matches(d, filter) for d in self._collection(collection).values())

    async def insert_one(self, collection: str, document: Document) -> str:
        stored = copy.deepcopy(document)
        doc_id = str(stored.get("_id") or ObjectId())
        stored["_id"] = doc_id
        self._collection(collection)[doc_id] = stored
        return doc_id

    async def insert_many(self, collection: str, documents: list[Document]) -> list[str]:
        return [await self.insert_one(collection, document) for document in documents]

    async def bulk_upsert(
        self, collection: str, operations: list[UpsertOperation]
    ) -> BulkWriteSummary:
        matched = modified = upserted = 0
        store = self._collection(collection)
        for op in operations:
            target = next((d for d in store.values() if _matches(d, op.filter)), None)
            if target is not None:
                matched += 1
                changed = any(target.get(k) != v for k, v in op.set_fields.items())
                target.update(copy.deepcopy(op.set_fields))
                if changed:
                    modified += 1
            elif op.upsert:
                # New documents take the equality filter fields as well.
                new_doc = {**op.filter, **op.set_on_insert, **op.set_fields}
                await self.insert_one(collection, new_doc)
                upserted += 1
        return BulkWriteSummary(matched=matched, modified=modified, upserted=upserted)

    async def delete_many(self, collection: str, filter: Document) -> int:
        store = self._collection(collection)
        doomed = [doc_id for doc_id, d in store.items() if _matches(d, filter)]
        for doc_id in doomed:
            del store[doc_id]
        return len(doomed)

    async def count(self, collection: str, filter: Document | None = None) -> int:
        return sum(1 for d in self._collection(collection).values() if _matches(d, filter))

    def get_provider_name(self) -> str:
        return "memory"
