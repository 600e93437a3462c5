"""Chunk-and-embed sync from stored stories, chapters and reviews.

Pipeline stages per source: **select -> chunk -> embed -> store**.

The :class:`EmbeddingSyncService` walks three sources in order, one unit at
a time, with a fixed courtesy delay after each embedding call:

    1. Story summaries -- one chunk per story (synopsis or a title/author
       fallback), skipped when a ``summary`` chunk for the story exists.
    2. Chapters -- sliding-window chunks of the chapter body, embedded
       all-or-nothing and committed with a completion marker.
    3. Reviews -- one chunk per review of at least ``min_review_length``
       characters, skipped when a ``review`` chunk for it exists.

Every "already done?" decision is a repository query, so running the sync
twice over an unchanged store writes nothing the second time.  An empty
vector from the embedding provider skips the unit (``embedding_failed``)
without writing, and the next run retries it.  Persistence errors
propagate.

All dependencies are injected via the constructor.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.chapter import Chapter
from src.models.chunk import ChunkDataType, ChunkSyncMarker, EmbeddedChunk
from src.models.outcome import OutcomeStatus, SyncReport, UnitOutcome
from src.models.review import StoryReview
from src.models.story import Story
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_repository import IngestionRepository

logger = structlog.get_logger(logger_name=__name__)

UNKNOWN_STORY_TITLE = "Unknown Story"


def summary_text(story: Story) -> str:
    """Text stored for a story's summary chunk."""
    return story.description or f"Story: {story.title} by {story.author}"


class EmbeddingSyncService:
    """Derives the embedded-passage index from stored raw text.

    Parameters
    ----------
    repository:
        Source of stories/chapters/reviews and sink for chunks.
    embedder:
        Any :class:`IEmbeddingProvider`; ``[]`` means the call failed.
    chunker:
        Window splitter for chapter bodies.
    settings:
        Supplies ``min_review_length`` and the three courtesy delays.
    sleep:
        Awaitable delay function; injectable so tests run without waiting.
    """

    def __init__(
        self,
        repository: IngestionRepository,
        embedder: IEmbeddingProvider,
        chunker: TextChunker,
        settings: Settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._repository = repository
        self._embedder = embedder
        self._chunker = chunker
        self._sleep = sleep
        self._min_review_length = settings.min_review_length
        self._summary_delay = settings.summary_embed_delay
        self._chapter_chunk_delay = settings.chapter_chunk_delay
        self._review_delay = settings.review_embed_delay

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def sync_all(self) -> SyncReport:
        """Run the summary, chapter and review phases in order."""
        titles: dict[str, str] = {}
        summaries = await self.sync_summaries(titles)
        chapters = await self.sync_chapters(titles)
        reviews = await self.sync_reviews(titles)
        report = SyncReport(summaries=summaries, chapters=chapters, reviews=reviews)
        logger.info(
            "embedding_sync_complete",
            provider=self._embedder.get_provider_name(),
            chunks_written=report.chunks_written,
            succeeded=report.count(OutcomeStatus.SUCCESS),
            skipped=report.count(OutcomeStatus.SKIPPED),
        )
        return report

    async def sync_summaries(self, titles: dict[str, str] | None = None) -> list[UnitOutcome]:
        """Embed one summary chunk per story that has none yet."""
        outcomes: list[UnitOutcome] = []
        async for story in self._repository.iter_stories():
            if story.id is None:
                continue
            if titles is not None:
                titles[story.id] = story.title
            outcomes.append(await self._sync_summary(story, story.id))
        logger.info("summary_sync_complete", units=len(outcomes))
        return outcomes

    async def sync_chapters(self, titles: dict[str, str] | None = None) -> list[UnitOutcome]:
        """Embed every chapter that has no completion marker."""
        titles = {} if titles is None else titles
        outcomes: list[UnitOutcome] = []
        async for chapter in self._repository.iter_chapters():
            if chapter.id is None:
                continue
            outcomes.append(await self._sync_chapter(chapter, chapter.id, titles))
        logger.info("chapter_sync_complete", units=len(outcomes))
        return outcomes

    async def sync_reviews(self, titles: dict[str, str] | None = None) -> list[UnitOutcome]:
        """Embed every sufficiently long review that has no chunk yet."""
        titles = {} if titles is None else titles
        outcomes: list[UnitOutcome] = []
        async for review in self._repository.iter_reviews():
            if review.id is None:
                continue
            outcomes.append(await self._sync_review(review, review.id, titles))
        logger.info("review_sync_complete", units=len(outcomes))
        return outcomes

    # ------------------------------------------------------------------
    # Per-unit work
    # ------------------------------------------------------------------

    async def _sync_summary(self, story: Story, story_id: str) -> UnitOutcome:
        if await self._repository.has_chunk(story_id, ChunkDataType.SUMMARY):
            return UnitOutcome(unit=story_id, status=OutcomeStatus.SKIPPED, reason="already_embedded")

        description = summary_text(story)
        vector = await self._embedder.embed_single(f"Synopsis of {story.title}: {description}")
        if not vector:
            logger.warning("summary_embedding_failed", story_id=story_id, title=story.title)
            return UnitOutcome(unit=story_id, status=OutcomeStatus.SKIPPED, reason="embedding_failed")

        await self._repository.insert_chunk(
            EmbeddedChunk(
                story_id=story_id,
                source_id=story_id,
                story_title=story.title,
                data_type=ChunkDataType.SUMMARY,
                content=description,
                embedding=vector,
            )
        )
        logger.info("summary_embedded", story_id=story_id, title=story.title)
        await self._sleep(self._summary_delay)
        return UnitOutcome(unit=story_id, status=OutcomeStatus.SUCCESS, written=1)

    async def _sync_chapter(
        self, chapter: Chapter, chapter_id: str, titles: dict[str, str]
    ) -> UnitOutcome:
        if await self._repository.has_sync_marker(chapter_id, ChunkDataType.CHAPTER_CONTENT):
            return UnitOutcome(
                unit=chapter_id, status=OutcomeStatus.SKIPPED, reason="already_embedded"
            )

        story_title = await self._story_title(chapter.story_id, titles)
        pieces = self._chunker.chunk(chapter.content)

        vectors: list[list[float]] = []
        for index, piece in enumerate(pieces):
            vector = await self._embedder.embed_single(
                f"{story_title} - {chapter.chapter_title}: {piece}"
            )
            if not vector:
                logger.warning(
                    "chapter_embedding_failed",
                    chapter_id=chapter_id,
                    chunk_index=index,
                    chunks=len(pieces),
                )
                return UnitOutcome(
                    unit=chapter_id, status=OutcomeStatus.SKIPPED, reason="embedding_failed"
                )
            vectors.append(vector)
            await self._sleep(self._chapter_chunk_delay)

        # Chunks without a marker come from an interrupted run.
        orphaned = await self._repository.delete_chunks(chapter_id, ChunkDataType.CHAPTER_CONTENT)
        if orphaned:
            logger.info("orphaned_chunks_removed", chapter_id=chapter_id, removed=orphaned)

        await self._repository.insert_chunks(
            [
                EmbeddedChunk(
                    story_id=chapter.story_id,
                    source_id=chapter_id,
                    story_title=story_title,
                    data_type=ChunkDataType.CHAPTER_CONTENT,
                    content=piece,
                    embedding=vector,
                )
                for piece, vector in zip(pieces, vectors)
            ]
        )
        await self._repository.insert_sync_marker(
            ChunkSyncMarker(
                source_id=chapter_id,
                story_id=chapter.story_id,
                chunk_count=len(pieces),
            )
        )
        if not pieces:
            return UnitOutcome(unit=chapter_id, status=OutcomeStatus.SKIPPED, reason="empty_content")

        logger.info(
            "chapter_embedded",
            chapter_id=chapter_id,
            chapter_title=chapter.chapter_title,
            chunks=len(pieces),
        )
        return UnitOutcome(unit=chapter_id, status=OutcomeStatus.SUCCESS, written=len(pieces))

    async def _sync_review(
        self, review: StoryReview, review_id: str, titles: dict[str, str]
    ) -> UnitOutcome:
        text = review.comment_text
        if len(text) < self._min_review_length:
            return UnitOutcome(unit=review_id, status=OutcomeStatus.SKIPPED, reason="too_short")
        if await self._repository.has_chunk(review_id, ChunkDataType.REVIEW):
            return UnitOutcome(unit=review_id, status=OutcomeStatus.SKIPPED, reason="already_embedded")

        story_title = await self._story_title(review.story_id, titles)
        vector = await self._embedder.embed_single(
            f"Review by {review.reviewer} for story {story_title}: {text}"
        )
        if not vector:
            logger.warning("review_embedding_failed", review_id=review_id, reviewer=review.reviewer)
            return UnitOutcome(unit=review_id, status=OutcomeStatus.SKIPPED, reason="embedding_failed")

        await self._repository.insert_chunk(
            EmbeddedChunk(
                story_id=review.story_id,
                source_id=review_id,
                story_title=story_title,
                data_type=ChunkDataType.REVIEW,
                content=text,
                embedding=vector,
                reviewer=review.reviewer,
            )
        )
        await self._sleep(self._review_delay)
        return UnitOutcome(unit=review_id, status=OutcomeStatus.SUCCESS, written=1)

    async def _story_title(self, story_id: str, titles: dict[str, str]) -> str:
        if story_id not in titles:
            story = await self._repository.get_story(story_id) if story_id else None
            titles[story_id] = story.title if story is not None else UNKNOWN_STORY_TITLE
        return titles[story_id]
