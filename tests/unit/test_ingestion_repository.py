"""Unit tests for IngestionRepository over the in-memory store."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from src.models.chapter import Chapter, ChapterComment
from src.models.chunk import ChunkDataType, ChunkSyncMarker, EmbeddedChunk
from src.models.pages import StoryPage
from src.models.review import StoryReview
from src.models.story import StoryStatistics
from src.providers.document_store.memory_document_store import MemoryDocumentStore
from src.services.ingestion.ingestion_repository import IngestionRepository
from tests.conftest import TOC_URL, make_settings

WHEN = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _page(followers: int = 10, author: str = "Quill") -> StoryPage:
    return StoryPage(
        title="The Long Road",
        author=author,
        genres=["Fantasy"],
        description="A long walk.",
        statistics=StoryStatistics(followers=followers, total_views=100),
        chapter_urls=[],
    )


class TestStories:
    @pytest.mark.asyncio
    async def test_first_upsert_creates(self, repository: IngestionRepository) -> None:
        story, created = await repository.upsert_story(_page(), TOC_URL)

        assert created is True
        assert story.id is not None
        assert story.created_at is not None
        assert story.url == TOC_URL
        stored = await repository.get_story(story.id)
        assert stored is not None
        assert stored.title == "The Long Road"
        assert stored.statistics.followers == 10
        assert stored.updated_at is None

    @pytest.mark.asyncio
    async def test_second_upsert_only_refreshes_statistics(
        self, repository: IngestionRepository
    ) -> None:
        first, _ = await repository.upsert_story(_page(followers=10), TOC_URL)

        second, created = await repository.upsert_story(
            _page(followers=99, author="Someone Else"), TOC_URL
        )

        assert created is False
        assert second.id == first.id
        stored = await repository.find_story_by_title("The Long Road")
        assert stored is not None
        assert stored.statistics.followers == 99
        assert stored.author == "Quill"
        assert stored.created_at == first.created_at
        assert stored.updated_at is not None
        assert [s async for s in repository.iter_stories()] == [stored]

    @pytest.mark.asyncio
    async def test_legacy_document_without_statistics_loads(
        self, memory_store: MemoryDocumentStore, repository: IngestionRepository
    ) -> None:
        story_id = await memory_store.insert_one(
            repository.stories_collection, {"title": "Old", "author": "A"}
        )

        story = await repository.get_story(story_id)

        assert story is not None
        assert story.statistics == StoryStatistics()
        assert story.url == ""

    def test_collection_names_come_from_settings(self, memory_store: MemoryDocumentStore) -> None:
        repository = IngestionRepository(memory_store, make_settings(stories_collection="Books"))
        assert repository.stories_collection == "Books"


class TestChapters:
    @pytest.mark.asyncio
    async def test_insert_and_find_by_url(self, repository: IngestionRepository) -> None:
        url = f"{TOC_URL}/chapter/1/one"
        assert await repository.find_chapter_by_url(url) is None

        inserted = await repository.insert_chapter(
            Chapter(story_id="s1", chapter_title="One", content="text", url=url)
        )

        assert inserted.id is not None
        assert inserted.crawled_at is not None
        found = await repository.find_chapter_by_url(url)
        assert found == inserted

    @pytest.mark.asyncio
    async def test_legacy_object_id_reference_is_stringified(
        self, memory_store: MemoryDocumentStore, repository: IngestionRepository
    ) -> None:
        oid = ObjectId()
        await memory_store.insert_one(
            repository.chapters_collection,
            {"story_id": oid, "chapter_title": "Old", "url": "u"},
        )

        (chapter,) = [c async for c in repository.iter_chapters()]

        assert chapter.story_id == str(oid)
        assert chapter.content == ""


class TestCommentAndReviewUpserts:
    def test_comment_upsert_keys_on_chapter_user_and_date(self) -> None:
        op = IngestionRepository.comment_upsert(
            ChapterComment(
                story_id="s1",
                chapter_id="c1",
                user="alice",
                content="hi",
                comment_date=WHEN,
                source_url="u",
            )
        )

        assert op.filter == {"chapter_id": "c1", "user": "alice", "comment_date": WHEN}
        assert op.set_fields["content"] == "hi"
        assert op.set_fields["type"] == "ChapterComment"
        assert "created_at" in op.set_on_insert
        assert "created_at" not in op.set_fields
        assert op.upsert is True

    def test_review_upsert_keys_on_story_and_reviewer(self) -> None:
        op = IngestionRepository.review_upsert(
            StoryReview(story_id="s1", reviewer="bob", comment_text="good", rating=4.0)
        )

        assert op.filter == {"story_id": "s1", "reviewer": "bob"}
        assert op.set_fields["rating"] == 4.0
        assert op.set_fields["type"] == "StoryReview"

    @pytest.mark.asyncio
    async def test_created_at_survives_later_upserts(
        self, repository: IngestionRepository
    ) -> None:
        original = StoryReview(
            story_id="s1", reviewer="bob", comment_text="v1", created_at=WHEN
        )
        await repository.bulk_upsert(
            repository.reviews_collection, [repository.review_upsert(original)]
        )
        edited = original.model_copy(update={"comment_text": "v2", "created_at": None})
        await repository.bulk_upsert(
            repository.reviews_collection, [repository.review_upsert(edited)]
        )

        (review,) = [r async for r in repository.iter_reviews()]
        assert review.comment_text == "v2"
        assert review.created_at == WHEN


class TestChunks:
    @pytest.mark.asyncio
    async def test_chunk_lifecycle(self, repository: IngestionRepository) -> None:
        chunk = EmbeddedChunk(
            story_id="s1",
            source_id="c1",
            story_title="T",
            data_type=ChunkDataType.CHAPTER_CONTENT,
            content="piece",
            embedding=[0.1, 0.2],
        )
        assert await repository.has_chunk("c1", ChunkDataType.CHAPTER_CONTENT) is False

        ids = await repository.insert_chunks([chunk, chunk])

        assert len(ids) == 2
        assert await repository.has_chunk("c1", ChunkDataType.CHAPTER_CONTENT) is True
        assert await repository.has_chunk("c1", ChunkDataType.SUMMARY) is False
        assert await repository.delete_chunks("c1", ChunkDataType.CHAPTER_CONTENT) == 2

    @pytest.mark.asyncio
    async def test_chunk_document_shape(
        self, memory_store: MemoryDocumentStore, repository: IngestionRepository
    ) -> None:
        await repository.insert_chunk(
            EmbeddedChunk(
                story_id="s1",
                source_id="s1",
                story_title="T",
                data_type=ChunkDataType.SUMMARY,
                content="synopsis",
                embedding=[1.0],
            )
        )

        document = await memory_store.find_one(repository.chunks_collection, {"source_id": "s1"})

        assert document is not None
        assert document["data_type"] == "summary"
        assert "reviewer" not in document
        assert document["created_at"] is not None

    @pytest.mark.asyncio
    async def test_sync_marker(self, repository: IngestionRepository) -> None:
        assert await repository.has_sync_marker("c1", ChunkDataType.CHAPTER_CONTENT) is False

        await repository.insert_sync_marker(
            ChunkSyncMarker(source_id="c1", story_id="s1", chunk_count=3)
        )

        assert await repository.has_sync_marker("c1", ChunkDataType.CHAPTER_CONTENT) is True

    @pytest.mark.asyncio
    async def test_collection_counts(self, repository: IngestionRepository) -> None:
        await repository.upsert_story(_page(), TOC_URL)

        counts = await repository.collection_counts()

        assert counts[repository.stories_collection] == 1
        assert len(counts) == 6
