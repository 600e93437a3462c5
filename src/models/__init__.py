"""storyHarvester domain models; re-exports all public model classes.

Other modules import from ``src.models`` rather than the individual files.
The models are organized by concern:
    - story.py    Story and its statistics snapshot
    - chapter.py  Chapter and ChapterComment
    - review.py   StoryReview
    - chunk.py    EmbeddedChunk, ChunkSyncMarker and ChunkDataType
    - pages.py    Records parsed out of remote pages, before storage
    - outcome.py  Per-unit outcomes and the run reports built from them
"""

from __future__ import annotations

# --- Stored records ---
from src.models.chapter import Chapter, ChapterComment
from src.models.chunk import ChunkDataType, ChunkSyncMarker, EmbeddedChunk
# --- Run results ---
from src.models.outcome import (
    ChapterImportOutcome,
    HarvestOutcome,
    OutcomeStatus,
    ScheduleReport,
    StoryHarvestReport,
    SyncReport,
    UnitOutcome,
)
# --- Extracted page records ---
from src.models.pages import (
    ChapterPage,
    CommentItem,
    ExtractedPage,
    ReviewItem,
    StoryPage,
)
from src.models.review import StoryReview
from src.models.story import SOURCE_ROYALROAD, Story, StoryStatistics

__all__ = [
    # stored
    "Chapter",
    "ChapterComment",
    "ChunkDataType",
    "ChunkSyncMarker",
    "EmbeddedChunk",
    "SOURCE_ROYALROAD",
    "Story",
    "StoryReview",
    "StoryStatistics",
    # pages
    "ChapterPage",
    "CommentItem",
    "ExtractedPage",
    "ReviewItem",
    "StoryPage",
    # outcomes
    "ChapterImportOutcome",
    "HarvestOutcome",
    "OutcomeStatus",
    "ScheduleReport",
    "StoryHarvestReport",
    "SyncReport",
    "UnitOutcome",
]
