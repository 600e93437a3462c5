"""Structured results for harvest and sync runs.

Every unit of work (one page walk, one chapter, one story summary, one
review embedding) ends in a :class:`UnitOutcome` instead of a silently
swallowed exception.  Outcomes roll up into the per-run reports below,
which the CLI prints and the services log.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OutcomeStatus(str, Enum):  # noqa: UP042
    """Terminal state of one unit of work."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class UnitOutcome(BaseModel):
    """Result of a single unit of work (one chapter, one chunk source, ...)."""

    model_config = ConfigDict(frozen=True)

    unit: str = Field(description="What was processed: a URL or a record id.")
    status: OutcomeStatus
    reason: str | None = Field(
        default=None,
        description='Short machine-friendly reason, e.g. "already_exists", "embedding_failed".',
    )
    written: int = Field(default=0, ge=0, description="Records written for this unit.")


class HarvestOutcome(BaseModel):
    """Result of walking one paginated sub-resource (comments or reviews)."""

    model_config = ConfigDict(frozen=True)

    resource: str = Field(description='Listing name, e.g. "reviews" or "comments".')
    status: OutcomeStatus
    persisted: int = Field(default=0, ge=0, description="Items upserted before stopping.")
    pages_fetched: int = Field(default=0, ge=0)
    reason: str | None = None


class ChapterImportOutcome(BaseModel):
    """Result of importing one chapter URL and harvesting its comments."""

    model_config = ConfigDict(frozen=True)

    url: str
    chapter: UnitOutcome
    comments: HarvestOutcome | None = None

    @property
    def status(self) -> OutcomeStatus:
        return self.chapter.status


class ScheduleReport(BaseModel):
    """Aggregate of one scheduler run over a fixed list of chapter URLs."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(ge=0)
    completed: int = Field(ge=0, description="Final value of the shared completion counter.")
    outcomes: list[ChapterImportOutcome] = Field(default_factory=list)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(OutcomeStatus.SUCCESS)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def comments_persisted(self) -> int:
        return sum(o.comments.persisted for o in self.outcomes if o.comments is not None)

    @property
    def comments_failed(self) -> int:
        """Chapters whose comment walk failed, whatever the chapter's own status."""
        return sum(
            1
            for o in self.outcomes
            if o.comments is not None and o.comments.status == OutcomeStatus.FAILED
        )


class StoryHarvestReport(BaseModel):
    """Everything one ``harvest <toc_url>`` run did."""

    model_config = ConfigDict(frozen=True)

    toc_url: str
    story_id: str | None = None
    title: str | None = None
    created: bool = Field(default=False, description="True when the story was new.")
    story: UnitOutcome
    reviews: HarvestOutcome | None = None
    chapters: ScheduleReport | None = None

    @property
    def ok(self) -> bool:
        """True when the story page parsed and no chapter failed."""
        if self.story.status == OutcomeStatus.FAILED:
            return False
        return self.chapters is None or self.chapters.failed == 0


class SyncReport(BaseModel):
    """Aggregate of one chunk/embed sync pass."""

    model_config = ConfigDict(frozen=True)

    summaries: list[UnitOutcome] = Field(default_factory=list)
    chapters: list[UnitOutcome] = Field(default_factory=list)
    reviews: list[UnitOutcome] = Field(default_factory=list)

    @property
    def chunks_written(self) -> int:
        return sum(o.written for o in (*self.summaries, *self.chapters, *self.reviews))

    def count(self, status: OutcomeStatus) -> int:
        """Number of units across all three phases with ``status``."""
        return sum(
            1
            for o in (*self.summaries, *self.chapters, *self.reviews)
            if o.status == status
        )
