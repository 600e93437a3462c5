"""Typed persistence operations over the document store.

Both halves of the system go through :class:`IngestionRepository`: the
harvester writes stories, chapters, comments and reviews; the sync
pipeline reads them back and appends embedded chunks.  This is the only
module that knows document field names; everything above it handles
frozen pydantic records.

Every deduplication decision (does this story / chapter / chunk already
exist?) is a query made here, so callers keep no "seen" state between
calls and a re-run after a crash converges on the same end state.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any

import structlog

from src.config.settings import Settings
from src.interfaces.document_store import (
    BulkWriteSummary,
    Document,
    IDocumentStore,
    UpsertOperation,
)
from src.models.chapter import Chapter, ChapterComment
from src.models.chunk import ChunkDataType, ChunkSyncMarker, EmbeddedChunk
from src.models.pages import StoryPage
from src.models.review import StoryReview
from src.models.story import Story, StoryStatistics

logger = structlog.get_logger(logger_name=__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _with_id(document: Document) -> dict[str, Any]:
    """Move the store's ``_id`` into an ``id`` key for model validation."""
    data = {k: v for k, v in document.items() if k != "_id"}
    if "_id" in document:
        data["id"] = str(document["_id"])
    return data


class IngestionRepository:
    """Idempotent, natural-key-aware operations on the six collections.

    Parameters
    ----------
    store:
        Any :class:`IDocumentStore` backend.
    settings:
        Supplies the collection names.
    """

    def __init__(self, store: IDocumentStore, settings: Settings) -> None:
        self._store = store
        self.stories_collection = settings.stories_collection
        self.chapters_collection = settings.chapters_collection
        self.comments_collection = settings.comments_collection
        self.reviews_collection = settings.reviews_collection
        self.chunks_collection = settings.chunks_collection
        self.markers_collection = settings.chunk_markers_collection

    # ------------------------------------------------------------------
    # Stories
    # ------------------------------------------------------------------

    async def find_story_by_title(self, title: str) -> Story | None:
        document = await self._store.find_one(self.stories_collection, {"title": title})
        return self._story_from_document(document) if document else None

    async def get_story(self, story_id: str) -> Story | None:
        document = await self._store.find_one(self.stories_collection, {"_id": story_id})
        return self._story_from_document(document) if document else None

    async def upsert_story(self, page: StoryPage, toc_url: str) -> tuple[Story, bool]:
        """Create the story on first harvest, else refresh its statistics.

        Returns
        -------
        tuple[Story, bool]
            The stored story (with id) and ``True`` if it was just created.
        """
        now = _utcnow()
        existing = await self.find_story_by_title(page.title)
        if existing is None:
            story = Story(
                title=page.title,
                author=page.author,
                genres=page.genres,
                description=page.description,
                url=toc_url,
                statistics=page.statistics,
                created_at=now,
            )
            document = story.model_dump(exclude={"id", "updated_at"})
            story_id = await self._store.insert_one(self.stories_collection, document)
            logger.info("story_created", story_id=story_id, title=story.title)
            return story.model_copy(update={"id": story_id}), True

        await self._store.bulk_upsert(
            self.stories_collection,
            [
                UpsertOperation(
                    filter={"_id": existing.id},
                    set_fields={
                        "statistics": page.statistics.model_dump(),
                        "updated_at": now,
                    },
                    upsert=False,
                )
            ],
        )
        logger.info("story_statistics_refreshed", story_id=existing.id, title=existing.title)
        return existing.model_copy(update={"statistics": page.statistics, "updated_at": now}), False

    async def iter_stories(self) -> AsyncIterator[Story]:
        async for document in self._store.find(self.stories_collection):
            yield self._story_from_document(document)

    @staticmethod
    def _story_from_document(document: Document) -> Story:
        data = _with_id(document)
        data["statistics"] = StoryStatistics(**(data.get("statistics") or {}))
        data.setdefault("url", "")
        return Story.model_validate(data)

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    async def find_chapter_by_url(self, url: str) -> Chapter | None:
        document = await self._store.find_one(self.chapters_collection, {"url": url})
        return self._chapter_from_document(document) if document else None

    async def insert_chapter(self, chapter: Chapter) -> Chapter:
        stamped = chapter if chapter.crawled_at else chapter.model_copy(
            update={"crawled_at": _utcnow()}
        )
        chapter_id = await self._store.insert_one(
            self.chapters_collection, stamped.model_dump(exclude={"id"})
        )
        return stamped.model_copy(update={"id": chapter_id})

    async def iter_chapters(self) -> AsyncIterator[Chapter]:
        async for document in self._store.find(self.chapters_collection):
            yield self._chapter_from_document(document)

    @staticmethod
    def _chapter_from_document(document: Document) -> Chapter:
        data = _with_id(document)
        data.setdefault("content", "")
        data["story_id"] = str(data.get("story_id", ""))
        return Chapter.model_validate(data)

    # ------------------------------------------------------------------
    # Comments & reviews (upserts)
    # ------------------------------------------------------------------

    @staticmethod
    def comment_upsert(comment: ChapterComment) -> UpsertOperation:
        """Build the upsert for *comment* keyed on (chapter, user, date)."""
        now = _utcnow()
        return UpsertOperation(
            filter={
                "chapter_id": comment.chapter_id,
                "user": comment.user,
                "comment_date": comment.comment_date,
            },
            set_fields={
                "story_id": comment.story_id,
                "chapter_id": comment.chapter_id,
                "user": comment.user,
                "content": comment.content,
                "comment_date": comment.comment_date,
                "source_url": comment.source_url,
                "type": comment.type,
                "crawled_at": comment.crawled_at or now,
            },
            set_on_insert={"created_at": comment.created_at or now},
        )

    @staticmethod
    def review_upsert(review: StoryReview) -> UpsertOperation:
        """Build the upsert for *review* keyed on (story, reviewer)."""
        now = _utcnow()
        return UpsertOperation(
            filter={"story_id": review.story_id, "reviewer": review.reviewer},
            set_fields={
                "story_id": review.story_id,
                "reviewer": review.reviewer,
                "comment_text": review.comment_text,
                "rating": review.rating,
                "source_url": review.source_url,
                "type": review.type,
                "crawled_at": review.crawled_at or now,
            },
            set_on_insert={"created_at": review.created_at or now},
        )

    async def bulk_upsert(
        self, collection: str, operations: list[UpsertOperation]
    ) -> BulkWriteSummary:
        """Flush a batch of upserts to *collection* in one write."""
        return await self._store.bulk_upsert(collection, operations)

    async def iter_reviews(self) -> AsyncIterator[StoryReview]:
        async for document in self._store.find(self.reviews_collection):
            data = _with_id(document)
            data["story_id"] = str(data.get("story_id", ""))
            data.setdefault("comment_text", "")
            yield StoryReview.model_validate(data)

    # ------------------------------------------------------------------
    # Embedded chunks
    # ------------------------------------------------------------------

    async def has_chunk(self, source_id: str, data_type: ChunkDataType) -> bool:
        return await self._store.exists(
            self.chunks_collection,
            {"source_id": source_id, "data_type": data_type.value},
        )

    async def insert_chunk(self, chunk: EmbeddedChunk) -> str:
        return await self._store.insert_one(self.chunks_collection, self._chunk_document(chunk))

    async def insert_chunks(self, chunks: list[EmbeddedChunk]) -> list[str]:
        return await self._store.insert_many(
            self.chunks_collection, [self._chunk_document(c) for c in chunks]
        )

    async def delete_chunks(self, source_id: str, data_type: ChunkDataType) -> int:
        return await self._store.delete_many(
            self.chunks_collection,
            {"source_id": source_id, "data_type": data_type.value},
        )

    @staticmethod
    def _chunk_document(chunk: EmbeddedChunk) -> Document:
        document = chunk.model_dump(exclude={"id"}, mode="python")
        document["data_type"] = chunk.data_type.value
        if document.get("created_at") is None:
            document["created_at"] = _utcnow()
        if document.get("reviewer") is None:
            document.pop("reviewer", None)
        return document

    async def has_sync_marker(self, source_id: str, data_type: ChunkDataType) -> bool:
        return await self._store.exists(
            self.markers_collection,
            {"source_id": source_id, "data_type": data_type.value},
        )

    async def insert_sync_marker(self, marker: ChunkSyncMarker) -> str:
        document = marker.model_dump()
        document["data_type"] = marker.data_type.value
        document["completed_at"] = marker.completed_at or _utcnow()
        return await self._store.insert_one(self.markers_collection, document)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def collection_counts(self) -> dict[str, int]:
        """Document count per collection, keyed by collection name."""
        names = (
            self.stories_collection,
            self.chapters_collection,
            self.comments_collection,
            self.reviews_collection,
            self.chunks_collection,
            self.markers_collection,
        )
        return {name: await self._store.count(name) for name in names}
