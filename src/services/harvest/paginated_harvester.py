"""Walk a paginated listing until a target count or the end of data.

One harvest is a sequence of fetch -> extract -> flush cycles:

1. Fetch page ``n`` and extract its items.  No items means end of data.
2. Build one upsert per item, stopping mid-page once the running total
   reaches the target, and flush the page's batch as one bulk write.
3. If more items are wanted and the page did not say "no next page",
   sleep the listing's courtesy delay and advance to page ``n + 1``.

Transport and extraction failures end the walk for that resource and are
reported in the :class:`HarvestOutcome`; whatever was flushed before the
failure stays, since every write is an idempotent upsert.  Persistence
failures propagate to the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from src.interfaces.document_store import UpsertOperation
from src.models.outcome import HarvestOutcome, OutcomeStatus
from src.services.harvest.listings import Listing
from src.services.harvest.page_fetcher import PageFetcher
from src.services.ingestion.ingestion_repository import IngestionRepository
from src.utils.errors import ExtractionError, TransportError

logger = structlog.get_logger(logger_name=__name__)


class PaginatedHarvester:
    """Sequential page walker shared by the review and comment harvests.

    Parameters
    ----------
    fetcher:
        Fetches raw page HTML.
    repository:
        Receives each page's batch of upserts.
    sleep:
        Awaitable delay function; injectable so tests run without waiting.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        repository: IngestionRepository,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._fetcher = fetcher
        self._repository = repository
        self._sleep = sleep

    async def harvest(self, listing: Listing[Any], target: int) -> HarvestOutcome:
        """Upsert up to *target* items from *listing*.

        Returns
        -------
        HarvestOutcome
            ``SUCCESS`` when the walk reached the target or the end of
            data, ``SKIPPED`` for a non-positive target, ``FAILED`` when a
            page could not be fetched or parsed.
        """
        log = logger.bind(listing=listing.name, **(listing.context or {}))
        if target <= 0:
            return HarvestOutcome(
                resource=listing.name, status=OutcomeStatus.SKIPPED, reason="no_target"
            )

        persisted = 0
        pages_fetched = 0
        page = 1
        while persisted < target:
            url = listing.page_url(page)
            try:
                html = await self._fetcher.fetch(url)
                extracted = listing.extract(html, url, page)
            except (TransportError, ExtractionError) as exc:
                log.warning("harvest_page_failed", page=page, url=url, error=str(exc))
                return HarvestOutcome(
                    resource=listing.name,
                    status=OutcomeStatus.FAILED,
                    persisted=persisted,
                    pages_fetched=pages_fetched,
                    reason=str(exc),
                )
            pages_fetched += 1

            if not extracted.items:
                log.debug("harvest_end_of_data", page=page)
                break

            batch: list[UpsertOperation] = []
            for item in extracted.items:
                if persisted + len(batch) >= target:
                    break
                batch.append(listing.to_upsert(item))

            if batch:
                await self._repository.bulk_upsert(listing.collection, batch)
                persisted += len(batch)
                log.debug("harvest_page_flushed", page=page, batch=len(batch), total=persisted)

            if persisted >= target or extracted.has_next_page is False:
                break

            page += 1
            await self._sleep(listing.page_delay)

        log.info("harvest_complete", persisted=persisted, pages=pages_fetched, target=target)
        return HarvestOutcome(
            resource=listing.name,
            status=OutcomeStatus.SUCCESS,
            persisted=persisted,
            pages_fetched=pages_fetched,
        )
