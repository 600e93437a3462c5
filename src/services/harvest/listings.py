"""Paginated sub-resource descriptions.

A :class:`Listing` tells the :class:`PaginatedHarvester` everything that
differs between walking a chapter's comments and walking a story's
reviews: the URL of page ``n``, how to extract items from a page, how to
turn an item into an idempotent upsert, where to write it and how long to
wait between pages.  The harvester itself stays resource-agnostic.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from src.interfaces.document_store import UpsertOperation
from src.interfaces.page_extractor import IPageExtractor
from src.models.chapter import Chapter, ChapterComment
from src.models.pages import CommentItem, ExtractedPage, ReviewItem
from src.models.review import StoryReview
from src.models.story import Story
from src.services.ingestion.ingestion_repository import IngestionRepository

ItemT = TypeVar("ItemT")


@dataclass(frozen=True)
class Listing(Generic[ItemT]):
    """One paginated sub-resource of a story or chapter."""

    name: str
    collection: str
    page_url: Callable[[int], str]
    extract: Callable[[str, str, int], ExtractedPage[ItemT]]
    to_upsert: Callable[[ItemT], UpsertOperation]
    page_delay: float = 0.0
    context: dict[str, Any] | None = None


def review_listing(
    extractor: IPageExtractor,
    repository: IngestionRepository,
    story: Story,
    toc_url: str,
    page_delay: float,
) -> Listing[ReviewItem]:
    """Listing for the reviews of *story*, keyed on (story id, reviewer)."""
    if story.id is None:
        raise ValueError("story must be persisted before its reviews are harvested")
    story_id = story.id

    def to_upsert(item: ReviewItem) -> UpsertOperation:
        return repository.review_upsert(
            StoryReview(
                story_id=story_id,
                reviewer=item.reviewer,
                comment_text=item.text,
                rating=item.rating,
                source_url=toc_url,
            )
        )

    return Listing(
        name="reviews",
        collection=repository.reviews_collection,
        page_url=lambda page: extractor.reviews_url(toc_url, page),
        extract=extractor.extract_reviews,
        to_upsert=to_upsert,
        page_delay=page_delay,
        context={"story_id": story_id},
    )


def comment_listing(
    extractor: IPageExtractor,
    repository: IngestionRepository,
    chapter: Chapter,
    page_delay: float,
) -> Listing[CommentItem] | None:
    """Listing for the comments under *chapter*.

    Returns ``None`` when the chapter URL has no natural id, i.e. there is
    no comment endpoint to walk.
    """
    if chapter.id is None:
        raise ValueError("chapter must be persisted before its comments are harvested")
    if extractor.comments_url(chapter.url, 1) is None:
        return None
    chapter_id = chapter.id

    def page_url(page: int) -> str:
        # Non-None for every page once page 1 resolved.
        return cast(str, extractor.comments_url(chapter.url, page))

    def to_upsert(item: CommentItem) -> UpsertOperation:
        return repository.comment_upsert(
            ChapterComment(
                story_id=chapter.story_id,
                chapter_id=chapter_id,
                user=item.user,
                content=item.content,
                comment_date=item.comment_date,
                source_url=chapter.url,
            )
        )

    return Listing(
        name="comments",
        collection=repository.comments_collection,
        page_url=page_url,
        extract=extractor.extract_comments,
        to_upsert=to_upsert,
        page_delay=page_delay,
        context={"chapter_id": chapter_id},
    )
