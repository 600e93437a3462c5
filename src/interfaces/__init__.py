"""Public interface definitions for all external collaborators.

Every external system storyHarvester talks to is reached through one of
the abstract base classes here.  Concrete adapters live in
``src/providers/`` and are wired together in ``src/main.py``.

CONCRETE PROVIDER MAP:
    Interface              ->  Concrete implementations (in src/providers/)
    ---------------------------------------------------------------------
    IDocumentStore         ->  MongoDocumentStore, MemoryDocumentStore
    IEmbeddingProvider     ->  GeminiEmbeddingProvider, OpenAIEmbeddingProvider
    IPageExtractor         ->  RoyalRoadExtractor
"""

from src.interfaces.document_store import (
    BulkWriteSummary,
    Document,
    IDocumentStore,
    UpsertOperation,
)
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.page_extractor import IPageExtractor

__all__ = [
    "BulkWriteSummary",
    "Document",
    "IDocumentStore",
    "IEmbeddingProvider",
    "IPageExtractor",
    "UpsertOperation",
]
