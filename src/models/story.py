"""Pydantic v2 models for stories harvested from the remote site.

A story is identified by its title (natural key).  The first harvest of a
table-of-contents page creates it; later harvests only refresh the
statistics snapshot and ``updated_at``.  All models are frozen; state
changes go through ``model_copy(update={...})``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

SOURCE_ROYALROAD = "RoyalRoad"


class StoryStatistics(BaseModel):
    """Snapshot of the public counters shown on a story page."""

    model_config = ConfigDict(frozen=True)

    total_views: int = Field(default=0, ge=0)
    followers: int = Field(default=0, ge=0)
    favorites: int = Field(default=0, ge=0)
    rating_count: int = Field(default=0, ge=0)
    overall_score: float = Field(default=0.0, ge=0.0)
    style_score: float = Field(default=0.0, ge=0.0)
    story_score: float = Field(default=0.0, ge=0.0)
    grammar_score: float = Field(default=0.0, ge=0.0)
    character_score: float = Field(default=0.0, ge=0.0)


class Story(BaseModel):
    """A serialized story as stored in the stories collection."""

    model_config = ConfigDict(frozen=True)

    id: str | None = Field(default=None, description="Store-generated identifier.")
    title: str = Field(description="Story title; the natural key.")
    author: str = Field(default="Unknown")
    genres: list[str] = Field(default_factory=list)
    description: str | None = Field(
        default=None, description="Synopsis text when the site provides one."
    )
    url: str = Field(description="Table-of-contents URL the story was harvested from.")
    source: str = Field(default=SOURCE_ROYALROAD)
    statistics: StoryStatistics = Field(default_factory=StoryStatistics)
    created_at: datetime | None = None
    updated_at: datetime | None = None
