"""Pydantic v2 models for the embedded-passage index.

An :class:`EmbeddedChunk` is a (text, vector) pair with provenance back to
the story, chapter or review it came from.  Chunks are append-only: the
sync pipeline inserts them and nothing updates them.

A :class:`ChunkSyncMarker` records that *every* chunk of a chapter has
been written.  Chapters are only treated as embedded once their marker
exists, so a run interrupted half-way through a chapter is repaired on the
next run instead of leaving a truncated index behind.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChunkDataType(str, Enum):  # noqa: UP042
    """Which kind of source document a chunk was derived from."""

    SUMMARY = "summary"                  # one chunk per story synopsis
    CHAPTER_CONTENT = "chapter_content"  # sliding-window chunks of a chapter
    REVIEW = "review"                    # one chunk per review


class EmbeddedChunk(BaseModel):
    """A persisted, embedded passage."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    story_id: str
    source_id: str = Field(description="Id of the story, chapter or review embedded.")
    story_title: str
    data_type: ChunkDataType
    content: str = Field(description="Chunk text as stored (without context prefix).")
    embedding: list[float]
    reviewer: str | None = None
    created_at: datetime | None = None


class ChunkSyncMarker(BaseModel):
    """Completion record for a multi-chunk source (chapters)."""

    model_config = ConfigDict(frozen=True)

    source_id: str
    story_id: str
    data_type: ChunkDataType = ChunkDataType.CHAPTER_CONTENT
    chunk_count: int = Field(ge=0)
    completed_at: datetime | None = None
