"""Bounded-concurrency import of a story's chapters.

Each chapter URL is one task:

    existence check by URL -> (if absent) fetch -> parse -> insert
    -> harvest that chapter's comments

Tasks run on :func:`~src.utils.concurrency.run_bounded`: K workers pulling
from a shared queue, every URL attempted exactly once, and a lock-guarded
completion counter driving the progress callback.  A failing chapter is
recorded as ``FAILED`` in the report and never cancels its siblings.
There is no ordering guarantee across chapters.
"""

from __future__ import annotations

import inspect

import structlog

from src.config.settings import Settings
from src.interfaces.page_extractor import IPageExtractor
from src.models.chapter import Chapter
from src.models.outcome import (
    ChapterImportOutcome,
    HarvestOutcome,
    OutcomeStatus,
    ScheduleReport,
    UnitOutcome,
)
from src.models.story import Story
from src.services.harvest.listings import comment_listing
from src.services.harvest.page_fetcher import PageFetcher
from src.services.harvest.paginated_harvester import PaginatedHarvester
from src.services.ingestion.ingestion_repository import IngestionRepository
from src.utils.concurrency import ProgressCallback, run_bounded
from src.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)


class ChapterScheduler:
    """Imports chapters of one story with at most K in flight."""

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: IPageExtractor,
        repository: IngestionRepository,
        harvester: PaginatedHarvester,
        settings: Settings,
    ) -> None:
        self._fetcher = fetcher
        self._extractor = extractor
        self._repository = repository
        self._harvester = harvester
        self._default_concurrency = settings.max_parallel_requests
        self._default_max_comments = settings.max_comments_per_chapter
        self._comment_page_delay = settings.comment_page_delay

    async def run_all(
        self,
        story: Story,
        urls: list[str],
        concurrency: int | None = None,
        on_progress: ProgressCallback | None = None,
        max_comments: int | None = None,
    ) -> ScheduleReport:
        """Import every URL in *urls* for *story*.

        Duplicate URLs are collapsed first so that two workers never race
        on the same chapter's existence check.
        """
        unique_urls = list(dict.fromkeys(urls))
        limit = concurrency or self._default_concurrency
        comment_target = self._default_max_comments if max_comments is None else max_comments
        completed = 0

        async def _counted_progress(done: int, total: int, url: object) -> None:
            nonlocal completed
            completed = done
            if on_progress is not None:
                result = on_progress(done, total, url)
                if inspect.isawaitable(result):
                    await result

        async def _task(url: str) -> ChapterImportOutcome:
            return await self._import_chapter(story, url, comment_target)

        logger.info(
            "chapter_schedule_started",
            story_id=story.id,
            chapters=len(unique_urls),
            concurrency=limit,
        )
        results = await run_bounded(unique_urls, _task, limit, on_progress=_counted_progress)

        outcomes: list[ChapterImportOutcome] = []
        for url, result in zip(unique_urls, results):
            if isinstance(result, Exception):
                logger.warning(
                    "chapter_import_failed",
                    url=url,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                outcomes.append(
                    ChapterImportOutcome(
                        url=url,
                        chapter=UnitOutcome(
                            unit=url, status=OutcomeStatus.FAILED, reason=str(result)
                        ),
                    )
                )
            else:
                outcomes.append(result)

        report = ScheduleReport(total=len(unique_urls), completed=completed, outcomes=outcomes)
        logger.info(
            "chapter_schedule_complete",
            story_id=story.id,
            total=report.total,
            succeeded=report.succeeded,
            skipped=report.skipped,
            failed=report.failed,
            comments=report.comments_persisted,
            comments_failed=report.comments_failed,
        )
        return report

    async def _import_chapter(
        self, story: Story, url: str, comment_target: int
    ) -> ChapterImportOutcome:
        if story.id is None:
            raise ValueError("story must be persisted before its chapters are imported")

        chapter = await self._repository.find_chapter_by_url(url)
        if chapter is not None:
            chapter_outcome = UnitOutcome(
                unit=url, status=OutcomeStatus.SKIPPED, reason="already_exists"
            )
        else:
            html = await self._fetcher.fetch(url)
            page = self._extractor.extract_chapter(html, url)
            chapter = await self._repository.insert_chapter(
                Chapter(
                    story_id=story.id,
                    chapter_title=page.chapter_title,
                    content=page.content,
                    url=url,
                )
            )
            chapter_outcome = UnitOutcome(unit=url, status=OutcomeStatus.SUCCESS, written=1)
            logger.debug("chapter_inserted", url=url, chapter_id=chapter.id)

        comments = await self._harvest_comments(chapter, comment_target)
        return ChapterImportOutcome(url=url, chapter=chapter_outcome, comments=comments)

    async def _harvest_comments(self, chapter: Chapter, target: int) -> HarvestOutcome:
        listing = comment_listing(
            self._extractor, self._repository, chapter, self._comment_page_delay
        )
        if listing is None:
            return HarvestOutcome(
                resource="comments", status=OutcomeStatus.SKIPPED, reason="no_chapter_id"
            )
        try:
            return await self._harvester.harvest(listing, target)
        except PersistenceError as exc:
            # The chapter itself is stored; only its comment walk failed.
            logger.warning(
                "comment_harvest_failed",
                chapter_id=chapter.id,
                url=chapter.url,
                error=str(exc),
            )
            return HarvestOutcome(
                resource="comments", status=OutcomeStatus.FAILED, reason=str(exc)
            )
