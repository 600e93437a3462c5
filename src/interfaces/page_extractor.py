"""Abstract base class for remote-site page extractors.

One extraction function per page type.  Extractors receive raw HTML plus
the URL it came from and return the typed records in
:mod:`src.models.pages`.  They never fetch, sleep or store anything, so a
site layout change is confined to one adapter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.pages import (
    ChapterPage,
    CommentItem,
    ExtractedPage,
    ReviewItem,
    StoryPage,
)


# Concrete implementations:
#   RoyalRoadExtractor  -- BeautifulSoup over royalroad.com markup
# Located in: src/providers/extraction/
class IPageExtractor(ABC):
    """Contract for turning fetched HTML into typed page records."""

    @abstractmethod
    def extract_story(self, html: str, url: str) -> StoryPage:
        """Parse a table-of-contents page.

        Raises
        ------
        src.utils.errors.ExtractionError
            If the page has no recognisable story title.
        """

    @abstractmethod
    def extract_chapter(self, html: str, url: str) -> ChapterPage:
        """Parse a chapter page.

        Raises
        ------
        src.utils.errors.ExtractionError
            If the chapter content node is missing.
        """

    @abstractmethod
    def extract_comments(self, html: str, url: str, page: int) -> ExtractedPage[CommentItem]:
        """Parse one page of chapter comments.

        An empty item list means the walk has reached the end.
        """

    @abstractmethod
    def extract_reviews(self, html: str, url: str, page: int) -> ExtractedPage[ReviewItem]:
        """Parse one page of story reviews."""

    @abstractmethod
    def comments_url(self, chapter_url: str, page: int) -> str | None:
        """Build the URL of comment page *page* for *chapter_url*.

        Returns ``None`` when the chapter URL carries no natural id, in which
        case there are no comments to harvest.
        """

    @abstractmethod
    def reviews_url(self, toc_url: str, page: int) -> str:
        """Build the URL of review page *page* for the story at *toc_url*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short site identifier such as ``"royalroad"``."""
