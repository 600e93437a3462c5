"""Persistence and chunk/embed sync for storyHarvester.

Pipeline stages overview:

1. **Persist** (ingestion_repository.py / IngestionRepository) -- Typed,
   idempotent operations over the document store.  Both the harvester and
   the sync pipeline go through it.

2. **Chunk** (chunker.py / TextChunker) -- Fixed-size sliding windows with
   overlap over chapter bodies.

3. **Embed & store** (embedding_sync_service.py / EmbeddingSyncService) --
   Story summaries, chapters and reviews turned into embedded chunks,
   skipping anything already indexed.
"""

from src.services.ingestion.chunker import TextChunker, chunk_text
from src.services.ingestion.embedding_sync_service import EmbeddingSyncService
from src.services.ingestion.ingestion_repository import IngestionRepository

__all__ = [
    "EmbeddingSyncService",
    "IngestionRepository",
    "TextChunker",
    "chunk_text",
]
