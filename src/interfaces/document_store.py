"""Abstract base class for document-store backends.

Defines a small, collection-oriented contract over a document database:
equality filters, inserts, upserts with ``$set`` / ``$setOnInsert``
semantics and bulk writes.  Documents are plain ``dict`` objects whose
``"_id"`` is exposed as a string; mapping to typed records happens one
layer up in :class:`~src.services.ingestion.ingestion_repository.IngestionRepository`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

Document = dict[str, Any]


@dataclass(frozen=True)
class UpsertOperation:
    """One idempotent write keyed by a natural-identity filter.

    ``set_fields`` is applied on every write; ``set_on_insert`` only when
    the filter matched nothing and a new document is created.
    """

    filter: Document
    set_fields: Document
    set_on_insert: Document = field(default_factory=dict)
    upsert: bool = True


@dataclass(frozen=True)
class BulkWriteSummary:
    """Counts reported by one bulk write."""

    matched: int = 0
    modified: int = 0
    upserted: int = 0

    @property
    def touched(self) -> int:
        """Documents matched or created by the batch."""
        return self.matched + self.upserted


# Concrete implementations:
#   MongoDocumentStore   -- pymongo AsyncMongoClient
#   MemoryDocumentStore  -- in-process dicts, for dry runs and tests
# Located in: src/providers/document_store/
class IDocumentStore(ABC):
    """Contract for the persistent store behind the ingestion repository.

    All methods raise :class:`~src.utils.errors.PersistenceError` when the
    backend fails.
    """

    @abstractmethod
    async def find_one(self, collection: str, filter: Document) -> Document | None:
        """Return the first document matching *filter*, or ``None``."""

    @abstractmethod
    def find(self, collection: str, filter: Document | None = None) -> AsyncIterator[Document]:
        """Iterate over every document matching *filter* (all when ``None``)."""

    @abstractmethod
    async def exists(self, collection: str, filter: Document) -> bool:
        """Return ``True`` if at least one document matches *filter*."""

    @abstractmethod
    async def insert_one(self, collection: str, document: Document) -> str:
        """Insert *document* and return its generated id."""

    @abstractmethod
    async def insert_many(self, collection: str, documents: list[Document]) -> list[str]:
        """Insert *documents* in one call and return their ids in order.

        An empty list is a no-op returning ``[]``.
        """

    @abstractmethod
    async def bulk_upsert(
        self, collection: str, operations: list[UpsertOperation]
    ) -> BulkWriteSummary:
        """Apply *operations* as a single unordered batch."""

    @abstractmethod
    async def delete_many(self, collection: str, filter: Document) -> int:
        """Delete every document matching *filter*; return the count removed."""

    @abstractmethod
    async def count(self, collection: str, filter: Document | None = None) -> int:
        """Return the number of documents matching *filter*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"mongodb"`` or ``"memory"``."""

    async def close(self) -> None:
        """Release connections.  Backends without resources need not override."""
        return None
