"""Royal Road page extractor.

Parses the four page types the harvester fetches from royalroad.com using
BeautifulSoup with the stdlib ``html.parser`` backend:

- table of contents (``/fiction/{id}/{slug}``): title, author, genres,
  synopsis, statistics and chapter links;
- chapter (``/fiction/{id}/{slug}/chapter/{cid}/{slug}``): title and body;
- chapter comments (``/fiction/chapter/{cid}/comments/{page}``);
- story reviews (``{toc}?reviews={page}``).

HTML entities are decoded by BeautifulSoup's text extraction.  Missing
optional fields fall back to defaults; only a missing story title or
chapter body is an :class:`~src.utils.errors.ExtractionError`.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup, Tag

from src.interfaces.page_extractor import IPageExtractor
from src.models.pages import (
    ChapterPage,
    CommentItem,
    ExtractedPage,
    ReviewItem,
    StoryPage,
)
from src.models.story import StoryStatistics
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER = "royalroad"
_DEFAULT_BASE_URL = "https://www.royalroad.com"

_CHAPTER_ID_RE = re.compile(r"chapter/(\d+)")
_FIRST_INT_RE = re.compile(r"\d+")
_FIRST_FLOAT_RE = re.compile(r"\d+(?:\.\d+)?")

# Statistic label on the story page -> StoryStatistics field.
_COUNT_LABELS: dict[str, str] = {
    "Total Views": "total_views",
    "Followers": "followers",
    "Favorites": "favorites",
    "Ratings": "rating_count",
}
_SCORE_LABELS: dict[str, str] = {
    "Overall Score": "overall_score",
    "Style Score": "style_score",
    "Story Score": "story_score",
    "Grammar Score": "grammar_score",
    "Character Score": "character_score",
}


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _text(node: Tag | None) -> str:
    return node.get_text(strip=True) if node is not None else ""


class RoyalRoadExtractor(IPageExtractor):
    """Extractor for royalroad.com markup.

    Parameters
    ----------
    base_url:
        Site root used to absolutise chapter links and build comment URLs.
    """

    def __init__(self, base_url: str = _DEFAULT_BASE_URL) -> None:
        self._base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Table of contents
    # ------------------------------------------------------------------

    def extract_story(self, html: str, url: str) -> StoryPage:
        soup = _soup(html)

        title = _text(soup.find("h1"))
        if not title:
            raise ExtractionError(
                message=f"No story title on {url}",
                provider_name=_PROVIDER,
            )

        author = _text(soup.select_one('h4 a[href*="/profile/"]'))
        if not author:
            meta = soup.find("meta", attrs={"property": "books:author"})
            author = (meta.get("content") or "").strip() if meta is not None else ""

        genres = [
            tag.get_text(strip=True)
            for tag in soup.select("span.tags a")
            if tag.get_text(strip=True)
        ]

        description_node = soup.select_one("div.description")
        description = (
            description_node.get_text("\n", strip=True) if description_node is not None else ""
        )

        chapter_urls = [
            urljoin(self._base_url + "/", link["href"])
            for link in soup.select("table#chapters td:nth-of-type(1) > a[href]")
        ]

        page = StoryPage(
            title=title,
            author=author or "Unknown",
            genres=genres,
            description=description or None,
            statistics=self._parse_statistics(soup),
            chapter_urls=chapter_urls,
        )
        logger.debug(
            "story_page_extracted",
            url=url,
            title=page.title,
            chapters=len(page.chapter_urls),
        )
        return page

    def _parse_statistics(self, soup: BeautifulSoup) -> StoryStatistics:
        container = soup.select_one("div.stats-content")
        if container is None:
            for candidate in soup.select("div.portlet-body"):
                if any("Total Views" in li.get_text() for li in candidate.find_all("li")):
                    container = candidate
                    break
        if container is None:
            return StoryStatistics()

        values: dict[str, int | float] = {}
        for label, field_name in _COUNT_LABELS.items():
            value_node = self._stat_value_node(container, label)
            if value_node is not None:
                match = _FIRST_INT_RE.search(value_node.get_text().replace(",", ""))
                if match:
                    values[field_name] = int(match.group())
        for label, field_name in _SCORE_LABELS.items():
            value_node = self._stat_value_node(container, label)
            span = value_node.find("span") if value_node is not None else None
            if span is not None:
                score = self._parse_score(span)
                if score is not None:
                    values[field_name] = score
        return StoryStatistics(**values)

    @staticmethod
    def _stat_value_node(container: Tag, label: str) -> Tag | None:
        """Return the ``li`` that follows the ``li`` labelled *label*."""
        for li in container.find_all("li"):
            if label in li.get_text():
                return li.find_next_sibling("li")
        return None

    @staticmethod
    def _parse_score(span: Tag) -> float | None:
        # "4.52 / 5" in data-content, or "4.52 stars" in aria-label.
        for attr in ("data-content", "aria-label"):
            raw = span.get(attr) or ""
            match = _FIRST_FLOAT_RE.search(raw.split("/")[0])
            if match:
                return float(match.group())
        return None

    # ------------------------------------------------------------------
    # Chapter
    # ------------------------------------------------------------------

    def extract_chapter(self, html: str, url: str) -> ChapterPage:
        soup = _soup(html)
        content_node = soup.select_one("div.chapter-content")
        if content_node is None:
            raise ExtractionError(
                message=f"No chapter content node on {url}",
                provider_name=_PROVIDER,
            )

        for junk in content_node.select("script, style, div.w-full"):
            junk.decompose()
        for br in content_node.find_all("br"):
            br.replace_with("\n")

        return ChapterPage(
            chapter_title=_text(soup.find("h1")) or "Unknown",
            content=content_node.get_text().strip(),
        )

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def comments_url(self, chapter_url: str, page: int) -> str | None:
        match = _CHAPTER_ID_RE.search(chapter_url)
        if match is None:
            return None
        return f"{self._base_url}/fiction/chapter/{match.group(1)}/comments/{page}"

    def extract_comments(self, html: str, url: str, page: int) -> ExtractedPage[CommentItem]:
        soup = _soup(html)
        items: list[CommentItem] = []
        for node in soup.select("div.comment"):
            body = node.select_one("div.comment-body")
            if body is None:
                continue
            for actions in body.select("div.comment-actions"):
                actions.decompose()
            content = body.get_text().strip()
            if not content:
                continue

            comment_date = self._parse_unixtime(node.select_one("time[unixtime]"))
            if comment_date is None:
                # Without a timestamp the comment has no stable identity.
                logger.debug("comment_without_timestamp_skipped", url=url)
                continue

            user_node = node.select_one("h4 span.name a") or node.select_one(
                'a[href*="/profile/"]'
            )
            items.append(
                CommentItem(
                    user=_text(user_node) or "Guest",
                    content=content,
                    comment_date=comment_date,
                )
            )

        next_link = soup.select_one(f'ul.pagination a[href*="comments={page + 1}"]')
        return ExtractedPage[CommentItem](items=items, has_next_page=next_link is not None)

    @staticmethod
    def _parse_unixtime(node: Tag | None) -> datetime | None:
        if node is None:
            return None
        try:
            return datetime.fromtimestamp(int(node["unixtime"]), tz=timezone.utc)
        except (KeyError, ValueError, OverflowError, OSError):
            return None

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def reviews_url(self, toc_url: str, page: int) -> str:
        return f"{toc_url.split('?')[0]}?reviews={page}"

    def extract_reviews(self, html: str, url: str, page: int) -> ExtractedPage[ReviewItem]:
        soup = _soup(html)
        items: list[ReviewItem] = []
        for node in soup.select("div.review[id]"):
            text = _text(node.select_one("div.review-content"))
            if not text:
                continue
            items.append(
                ReviewItem(
                    reviewer=_text(node.select_one("div.review-meta a")) or "Anon",
                    text=text,
                    rating=self._parse_review_rating(node.select_one("div.scores")),
                )
            )
        # Review pages carry no usable pagination hint.
        return ExtractedPage[ReviewItem](items=items, has_next_page=None)

    @staticmethod
    def _parse_review_rating(scores: Tag | None) -> float:
        if scores is None:
            return 0.0
        star = scores.find(attrs={"aria-label": re.compile("stars")})
        if star is None:
            return 0.0
        match = _FIRST_FLOAT_RE.match(star.get("aria-label", "").strip())
        return float(match.group()) if match else 0.0

    def get_provider_name(self) -> str:
        return _PROVIDER
