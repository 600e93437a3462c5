"""One full harvest of a story from its table-of-contents URL.

Order of work:

1. Fetch and parse the table of contents (title, author, genres,
   synopsis, statistics, chapter links).
2. Create the story, or refresh its statistics if the title is known.
3. Walk the story's reviews up to the review target.
4. Import every chapter with bounded concurrency, harvesting each
   chapter's comments as part of its task.

A table of contents that cannot be fetched or parsed, or that lists no
chapters, stops the run before anything is written.
"""

from __future__ import annotations

import structlog

from src.config.settings import Settings
from src.interfaces.page_extractor import IPageExtractor
from src.models.outcome import OutcomeStatus, StoryHarvestReport, UnitOutcome
from src.services.harvest.chapter_scheduler import ChapterScheduler
from src.services.harvest.listings import review_listing
from src.services.harvest.page_fetcher import PageFetcher
from src.services.harvest.paginated_harvester import PaginatedHarvester
from src.services.ingestion.ingestion_repository import IngestionRepository
from src.utils.concurrency import ProgressCallback
from src.utils.errors import ExtractionError, TransportError

logger = structlog.get_logger(logger_name=__name__)


class StoryHarvestService:
    """Orchestrates story upsert, review walk and chapter import."""

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: IPageExtractor,
        repository: IngestionRepository,
        harvester: PaginatedHarvester,
        scheduler: ChapterScheduler,
        settings: Settings,
    ) -> None:
        self._fetcher = fetcher
        self._extractor = extractor
        self._repository = repository
        self._harvester = harvester
        self._scheduler = scheduler
        self._max_reviews = settings.max_reviews_per_story
        self._review_page_delay = settings.review_page_delay

    async def harvest(
        self,
        toc_url: str,
        concurrency: int | None = None,
        max_comments: int | None = None,
        max_reviews: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> StoryHarvestReport:
        """Harvest the story at *toc_url*.

        Parameters
        ----------
        toc_url:
            Table-of-contents URL of the story.
        concurrency:
            Chapter workers; defaults to ``max_parallel_requests``.
        max_comments:
            Comment target per chapter; defaults to ``max_comments_per_chapter``.
        max_reviews:
            Review target for the story; defaults to ``max_reviews_per_story``.
        on_progress:
            ``(completed, total, url)`` callback fired after each chapter.
        """
        log = logger.bind(toc_url=toc_url)

        try:
            html = await self._fetcher.fetch(toc_url)
            page = self._extractor.extract_story(html, toc_url)
        except (TransportError, ExtractionError) as exc:
            log.error("story_page_failed", error=str(exc))
            return StoryHarvestReport(
                toc_url=toc_url,
                story=UnitOutcome(unit=toc_url, status=OutcomeStatus.FAILED, reason=str(exc)),
            )

        if not page.chapter_urls:
            log.error("story_has_no_chapters", title=page.title)
            return StoryHarvestReport(
                toc_url=toc_url,
                title=page.title,
                story=UnitOutcome(unit=toc_url, status=OutcomeStatus.FAILED, reason="no_chapters"),
            )

        story, created = await self._repository.upsert_story(page, toc_url)
        log = log.bind(story_id=story.id, title=story.title)
        log.info(
            "story_harvest_started",
            created=created,
            author=story.author,
            chapters=len(page.chapter_urls),
            followers=story.statistics.followers,
        )

        review_target = self._max_reviews if max_reviews is None else max_reviews
        reviews = await self._harvester.harvest(
            review_listing(
                self._extractor, self._repository, story, toc_url, self._review_page_delay
            ),
            review_target,
        )

        chapters = await self._scheduler.run_all(
            story,
            page.chapter_urls,
            concurrency=concurrency,
            on_progress=on_progress,
            max_comments=max_comments,
        )

        report = StoryHarvestReport(
            toc_url=toc_url,
            story_id=story.id,
            title=story.title,
            created=created,
            story=UnitOutcome(unit=toc_url, status=OutcomeStatus.SUCCESS, written=1),
            reviews=reviews,
            chapters=chapters,
        )
        log.info(
            "story_harvest_complete",
            reviews=reviews.persisted,
            chapters_new=chapters.succeeded,
            chapters_existing=chapters.skipped,
            chapters_failed=chapters.failed,
        )
        return report
