"""Typed records produced by the page extractors.

These are the shapes parsed out of remote HTML before anything is stored:
the extractor knows nothing about ids, collections or timestamps, and the
harvest services know nothing about HTML.
"""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from src.models.story import StoryStatistics

ItemT = TypeVar("ItemT")


class StoryPage(BaseModel):
    """A parsed table-of-contents page."""

    model_config = ConfigDict(frozen=True)

    title: str
    author: str = "Unknown"
    genres: list[str] = Field(default_factory=list)
    description: str | None = None
    statistics: StoryStatistics = Field(default_factory=StoryStatistics)
    chapter_urls: list[str] = Field(
        default_factory=list, description="Absolute chapter URLs in table order."
    )


class ChapterPage(BaseModel):
    """A parsed chapter page."""

    model_config = ConfigDict(frozen=True)

    chapter_title: str = "Unknown"
    content: str


class CommentItem(BaseModel):
    """One comment as it appears on a chapter's comment page."""

    model_config = ConfigDict(frozen=True)

    user: str = "Guest"
    content: str
    comment_date: datetime


class ReviewItem(BaseModel):
    """One review as it appears on a story's review page."""

    model_config = ConfigDict(frozen=True)

    reviewer: str = "Anon"
    text: str
    rating: float = 0.0


class ExtractedPage(BaseModel, Generic[ItemT]):
    """Items from one page of a paginated listing.

    ``has_next_page`` is ``True`` or ``False`` when the page shows (or
    lacks) a link to the following page, and ``None`` when the page type
    carries no pagination hint; callers then walk until an empty page.
    """

    model_config = ConfigDict(frozen=True)

    items: list[ItemT] = Field(default_factory=list)
    has_next_page: bool | None = None
