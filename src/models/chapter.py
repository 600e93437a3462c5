"""Pydantic v2 models for chapters and the comments posted under them."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from src.models.story import SOURCE_ROYALROAD


class Chapter(BaseModel):
    """One chapter of a story.

    Identified by its source URL until persisted.  Created once per URL and
    never re-fetched afterwards.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    story_id: str
    chapter_title: str = "Unknown"
    content: str
    url: str
    source: str = SOURCE_ROYALROAD
    crawled_at: datetime | None = None


class ChapterComment(BaseModel):
    """A reader comment under a chapter.

    Natural key: (chapter_id, user, comment_date).  Upserted on every
    harvest, so edits replace earlier text; ``created_at`` is only written
    on first insert.
    """

    model_config = ConfigDict(frozen=True)

    story_id: str
    chapter_id: str
    user: str = "Guest"
    content: str
    comment_date: datetime
    source_url: str
    type: str = "ChapterComment"
    crawled_at: datetime | None = None
    created_at: datetime | None = None
