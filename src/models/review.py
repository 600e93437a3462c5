"""Pydantic v2 model for story-level reader reviews."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StoryReview(BaseModel):
    """A reader review of a whole story.

    Natural key: (story_id, reviewer).  A reviewer who edits their review
    overwrites the stored text; history is not kept.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    story_id: str
    reviewer: str = "Anon"
    comment_text: str
    rating: float = Field(default=0.0, ge=0.0)
    source_url: str = ""
    type: str = "StoryReview"
    crawled_at: datetime | None = None
    created_at: datetime | None = None
