"""Unit tests for PaginatedHarvester over review and comment listings."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
import pytest_asyncio

from src.models.chapter import Chapter
from src.models.outcome import OutcomeStatus
from src.models.story import Story
from src.providers.extraction.royalroad_extractor import RoyalRoadExtractor
from src.services.harvest.listings import comment_listing, review_listing
from src.services.harvest.page_fetcher import PageFetcher
from src.services.harvest.paginated_harvester import PaginatedHarvester
from src.services.ingestion.ingestion_repository import IngestionRepository
from tests.conftest import (
    TOC_URL,
    FakeSite,
    chapter_url,
    comment_page_url,
    comments_html,
    review_page_url,
    reviews_html,
)

STORY = Story(id="5f0000000000000000000001", title="The Long Road", url=TOC_URL)
CHAPTER = Chapter(
    id="5f00000000000000000000c1",
    story_id=STORY.id or "",
    chapter_title="Chapter 1",
    content="It began.",
    url=chapter_url(1),
)


def _review_page(start: int, count: int) -> str:
    return reviews_html(
        [(f"reader{i}", f"Review text number {i}", 4.0) for i in range(start, start + count)]
    )


def _comment_page(start: int, count: int, page: int, has_next: bool) -> str:
    return comments_html(
        [(f"user{i}", f"comment {i}", 1_700_000_000 + i) for i in range(start, start + count)],
        page=page,
        has_next=has_next,
    )


@pytest_asyncio.fixture
async def harvester(
    fake_site: FakeSite,
    repository: IngestionRepository,
    no_sleep: Callable[[float], Any],
) -> AsyncIterator[PaginatedHarvester]:
    client = fake_site.client()
    yield PaginatedHarvester(PageFetcher(client), repository, sleep=no_sleep)
    await client.aclose()


def _reviews(extractor: RoyalRoadExtractor, repository: IngestionRepository, delay: float = 1.0):
    return review_listing(extractor, repository, STORY, TOC_URL, page_delay=delay)


class TestReviewWalk:
    @pytest.mark.asyncio
    async def test_walks_until_empty_page(
        self,
        harvester: PaginatedHarvester,
        fake_site: FakeSite,
        extractor: RoyalRoadExtractor,
        repository: IngestionRepository,
        no_sleep: Any,
    ) -> None:
        fake_site.add(review_page_url(1), _review_page(0, 20))
        fake_site.add(review_page_url(2), _review_page(20, 20))
        fake_site.add(review_page_url(3), _review_page(40, 5))
        fake_site.add(review_page_url(4), reviews_html([]))

        outcome = await harvester.harvest(_reviews(extractor, repository), target=50)

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.persisted == 45
        assert outcome.pages_fetched == 4
        assert await repository._store.count(repository.reviews_collection) == 45
        # Courtesy delay between pages, none after the last one.
        assert no_sleep.delays == [1.0, 1.0, 1.0]

    @pytest.mark.asyncio
    async def test_second_harvest_does_not_duplicate(
        self,
        harvester: PaginatedHarvester,
        fake_site: FakeSite,
        extractor: RoyalRoadExtractor,
        repository: IngestionRepository,
    ) -> None:
        fake_site.add(review_page_url(1), _review_page(0, 20))
        fake_site.add(review_page_url(2), _review_page(20, 20))
        fake_site.add(review_page_url(3), _review_page(40, 5))
        fake_site.add(review_page_url(4), reviews_html([]))

        await harvester.harvest(_reviews(extractor, repository), target=50)
        await harvester.harvest(_reviews(extractor, repository), target=50)

        assert await repository._store.count(repository.reviews_collection) == 45

    @pytest.mark.asyncio
    async def test_edited_review_replaces_text(
        self,
        harvester: PaginatedHarvester,
        fake_site: FakeSite,
        extractor: RoyalRoadExtractor,
        repository: IngestionRepository,
    ) -> None:
        fake_site.add(review_page_url(1), reviews_html([("alice", "First draft of a review", 3.0)]))
        fake_site.add(review_page_url(2), reviews_html([]))
        await harvester.harvest(_reviews(extractor, repository), target=50)

        fake_site.add(review_page_url(1), reviews_html([("alice", "Edited review text", 5.0)]))
        await harvester.harvest(_reviews(extractor, repository), target=50)

        reviews = [r async for r in repository.iter_reviews()]
        assert len(reviews) == 1
        assert reviews[0].comment_text == "Edited review text"
        assert reviews[0].rating == 5.0

    @pytest.mark.asyncio
    async def test_stops_mid_page_at_target(
        self,
        harvester: PaginatedHarvester,
        fake_site: FakeSite,
        extractor: RoyalRoadExtractor,
        repository: IngestionRepository,
    ) -> None:
        fake_site.add(review_page_url(1), _review_page(0, 20))
        fake_site.add(review_page_url(2), _review_page(20, 20))

        outcome = await harvester.harvest(_reviews(extractor, repository), target=25)

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.persisted == 25
        assert fake_site.count(review_page_url(3)) == 0
        assert await repository._store.count(repository.reviews_collection) == 25

    @pytest.mark.asyncio
    async def test_transport_failure_keeps_earlier_pages(
        self,
        harvester: PaginatedHarvester,
        fake_site: FakeSite,
        extractor: RoyalRoadExtractor,
        repository: IngestionRepository,
    ) -> None:
        fake_site.add(review_page_url(1), _review_page(0, 20))
        fake_site.add(review_page_url(2), 503)

        outcome = await harvester.harvest(_reviews(extractor, repository), target=50)

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.persisted == 20
        assert outcome.pages_fetched == 1
        assert "503" in (outcome.reason or "")
        assert await repository._store.count(repository.reviews_collection) == 20

    @pytest.mark.asyncio
    async def test_non_positive_target_is_skipped(
        self,
        harvester: PaginatedHarvester,
        fake_site: FakeSite,
        extractor: RoyalRoadExtractor,
        repository: IngestionRepository,
    ) -> None:
        outcome = await harvester.harvest(_reviews(extractor, repository), target=0)

        assert outcome.status == OutcomeStatus.SKIPPED
        assert outcome.reason == "no_target"
        assert fake_site.requests == []


class TestCommentWalk:
    @pytest.mark.asyncio
    async def test_stops_when_no_next_page(
        self,
        harvester: PaginatedHarvester,
        fake_site: FakeSite,
        extractor: RoyalRoadExtractor,
        repository: IngestionRepository,
    ) -> None:
        fake_site.add(comment_page_url(1, 1), _comment_page(0, 3, page=1, has_next=True))
        fake_site.add(comment_page_url(1, 2), _comment_page(3, 2, page=2, has_next=False))

        listing = comment_listing(extractor, repository, CHAPTER, page_delay=0.5)
        assert listing is not None
        outcome = await harvester.harvest(listing, target=10)

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.persisted == 5
        assert outcome.pages_fetched == 2
        assert fake_site.count(comment_page_url(1, 3)) == 0

    @pytest.mark.asyncio
    async def test_comment_records_carry_chapter_and_story(
        self,
        harvester: PaginatedHarvester,
        fake_site: FakeSite,
        extractor: RoyalRoadExtractor,
        repository: IngestionRepository,
    ) -> None:
        fake_site.add(comment_page_url(1, 1), _comment_page(0, 2, page=1, has_next=False))

        listing = comment_listing(extractor, repository, CHAPTER, page_delay=0.0)
        assert listing is not None
        await harvester.harvest(listing, target=7)
        await harvester.harvest(listing, target=7)

        stored = [
            d
            async for d in repository._store.find(
                repository.comments_collection, {"chapter_id": CHAPTER.id}
            )
        ]
        assert len(stored) == 2
        assert {d["story_id"] for d in stored} == {STORY.id}
        assert all(d["type"] == "ChapterComment" for d in stored)
        assert all("created_at" in d for d in stored)

    def test_chapter_without_id_has_no_listing(
        self, extractor: RoyalRoadExtractor, repository: IngestionRepository
    ) -> None:
        odd = CHAPTER.model_copy(update={"url": "https://www.royalroad.com/fiction/1000/x/prologue"})

        assert comment_listing(extractor, repository, odd, page_delay=0.0) is None
