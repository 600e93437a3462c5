"""Harvest half of storyHarvester: remote site -> document store.

- **page_fetcher** -- httpx GET with failures mapped to TransportError.
- **listings** -- Descriptions of the paginated sub-resources (reviews,
  comments).
- **paginated_harvester** -- Fetch/extract/flush walk over one listing.
- **chapter_scheduler** -- Bounded-concurrency chapter import.
- **story_harvest_service** -- One full story harvest.
"""

from src.services.harvest.chapter_scheduler import ChapterScheduler
from src.services.harvest.listings import Listing, comment_listing, review_listing
from src.services.harvest.page_fetcher import PageFetcher
from src.services.harvest.paginated_harvester import PaginatedHarvester
from src.services.harvest.story_harvest_service import StoryHarvestService

__all__ = [
    "ChapterScheduler",
    "Listing",
    "PageFetcher",
    "PaginatedHarvester",
    "StoryHarvestService",
    "comment_listing",
    "review_listing",
]
