"""Document store implementations of IDocumentStore.

    MongoDocumentStore   -- pymongo AsyncMongoClient; the production store.
    MemoryDocumentStore  -- in-process dicts; dry runs and tests.
"""

from src.providers.document_store.memory_document_store import MemoryDocumentStore
from src.providers.document_store.mongo_document_store import MongoDocumentStore

__all__ = ["MemoryDocumentStore", "MongoDocumentStore"]
