"""Shared pytest fixtures for the storyHarvester test suite."""

from __future__ import annotations

import hashlib
import struct
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.providers.document_store.memory_document_store import MemoryDocumentStore
from src.providers.extraction.royalroad_extractor import RoyalRoadExtractor
from src.services.ingestion.ingestion_repository import IngestionRepository

BASE_URL = "https://www.royalroad.com"
TOC_URL = f"{BASE_URL}/fiction/1000/the-long-road"


def make_settings(**overrides: Any) -> Settings:
    """Build Settings for tests: memory store, no delays, no .env file."""
    defaults: dict[str, Any] = {
        "document_store_backend": "memory",
        "gemini_api_key": "test-gemini-key",
        "openai_api_key": "",
        "comment_page_delay": 0.0,
        "review_page_delay": 0.0,
        "summary_embed_delay": 0.0,
        "chapter_chunk_delay": 0.0,
        "review_embed_delay": 0.0,
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


# ---------------------------------------------------------------------------
# HTML builders mirroring royalroad.com markup
# ---------------------------------------------------------------------------


def chapter_url(chapter_id: int, slug: str = "chapter") -> str:
    return f"{BASE_URL}/fiction/1000/the-long-road/chapter/{chapter_id}/{slug}"


def toc_html(
    title: str = "The Long Road",
    author: str | None = "Quill",
    chapter_ids: list[int] | None = None,
    genres: list[str] | None = None,
    description: str | None = "A traveller walks a very long road.",
    followers: str = "1,234",
) -> str:
    chapter_ids = [1, 2, 3] if chapter_ids is None else chapter_ids
    rows = "".join(
        f'<tr><td><a href="/fiction/1000/the-long-road/chapter/{cid}/chapter">'
        f"Chapter {cid}</a></td><td>2 days ago</td></tr>"
        for cid in chapter_ids
    )
    author_html = (
        f'<h4><span>by</span> <a href="/profile/42">{author}</a></h4>' if author else ""
    )
    tags = "".join(f'<a class="label" href="#">{g}</a>' for g in (genres or ["Fantasy", "Adventure"]))
    description_html = (
        f'<div class="description"><div class="hidden-content"><p>{description}</p></div></div>'
        if description
        else ""
    )
    return f"""
    <html><head><meta property="books:author" content="MetaAuthor"></head>
    <body>
      <h1>{title}</h1>
      {author_html}
      <span class="tags">{tags}</span>
      {description_html}
      <div class="stats-content">
        <ul>
          <li>Overall Score</li>
          <li><span class="star" data-content="4.52 / 5" aria-label="4.52 stars"></span></li>
          <li>Style Score</li>
          <li><span class="star" data-content="4.1 / 5"></span></li>
          <li>Story Score</li>
          <li><span class="star" aria-label="3.9 stars"></span></li>
        </ul>
        <ul>
          <li>Total Views :</li><li>98,765</li>
          <li>Followers :</li><li>{followers}</li>
          <li>Favorites :</li><li>321</li>
          <li>Ratings :</li><li>45</li>
        </ul>
      </div>
      <table id="chapters"><tbody>{rows}</tbody></table>
    </body></html>
    """


def chapter_html(title: str = "Chapter 1", body: str | None = "<p>It began.</p>") -> str:
    content = f'<div class="chapter-inner chapter-content">{body}</div>' if body is not None else ""
    return f"<html><body><h1>{title}</h1>{content}</body></html>"


def comments_html(
    comments: list[tuple[str, str, int]],
    page: int = 1,
    has_next: bool = False,
) -> str:
    """*comments* is a list of (user, text, unixtime)."""
    nodes = "".join(
        f"""
        <div class="comment">
          <div class="media-body">
            <h4><span class="name"><a href="/profile/{i}">{user}</a></span>
                <time unixtime="{ts}">some time ago</time></h4>
            <div class="comment-body">{text}<div class="comment-actions">Reply</div></div>
          </div>
        </div>"""
        for i, (user, text, ts) in enumerate(comments)
    )
    pagination = (
        f'<ul class="pagination"><li><a href="?comments={page + 1}">Next</a></li></ul>'
        if has_next
        else ""
    )
    return f"<html><body>{nodes}{pagination}</body></html>"


def reviews_html(reviews: list[tuple[str, str, float]]) -> str:
    """*reviews* is a list of (reviewer, text, stars)."""
    nodes = "".join(
        f"""
        <div class="review" id="review-{i}">
          <div class="review-side"><div class="scores">
            <div>Overall Score</div><div aria-label="{stars} stars"></div>
          </div></div>
          <div class="review-meta"><a href="/profile/{i}">{reviewer}</a></div>
          <div class="review-content"><p>{text}</p></div>
        </div>"""
        for i, (reviewer, text, stars) in enumerate(reviews)
    )
    return f"<html><body>{nodes}</body></html>"


def review_page_url(page: int, toc_url: str = TOC_URL) -> str:
    return f"{toc_url}?reviews={page}"


def comment_page_url(chapter_id: int, page: int) -> str:
    return f"{BASE_URL}/fiction/chapter/{chapter_id}/comments/{page}"


# ---------------------------------------------------------------------------
# Fake remote site
# ---------------------------------------------------------------------------


class FakeSite:
    """URL -> HTML routing table served through ``httpx.MockTransport``.

    Unknown URLs return 404, so a walk past the last scripted page sees an
    empty page only when the test scripts one explicitly.
    """

    def __init__(self) -> None:
        self.pages: dict[str, str | int | Callable[[], str]] = {}
        self.requests: list[str] = []

    def add(self, url: str, body: str | int | Callable[[], str]) -> None:
        self.pages[url] = body

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        body = self.pages.get(url)
        if body is None:
            return httpx.Response(404, text="not found")
        if isinstance(body, int):
            return httpx.Response(body, text="error")
        text = body() if callable(body) else body
        return httpx.Response(200, text=text)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handle))

    def count(self, url: str) -> int:
        return self.requests.count(url)


# ---------------------------------------------------------------------------
# Deterministic embedding provider
# ---------------------------------------------------------------------------

_EMBEDDING_DIM = 8


def _hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Deterministic fixed-length vector derived from SHA-256 of *text*."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    values = struct.unpack(f"{dim}I", digest[: dim * 4])
    return [v / 2**32 for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory embedding provider that records every text it sees.

    Texts containing any string in ``fail_on`` get an empty vector, the
    same signal a real provider gives for a failed call.
    """

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.calls: list[str] = []
        self.fail_on = fail_on

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        if any(marker in text for marker in self.fail_on):
            return []
        return _hash_to_vector(text)

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def repository(memory_store: MemoryDocumentStore, settings: Settings) -> IngestionRepository:
    return IngestionRepository(memory_store, settings)


@pytest.fixture
def extractor() -> RoyalRoadExtractor:
    return RoyalRoadExtractor(base_url=BASE_URL)


@pytest.fixture
def fake_site() -> FakeSite:
    return FakeSite()


@pytest.fixture
def mock_embedder() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def no_sleep() -> Callable[[float], Any]:
    """Recording replacement for asyncio.sleep."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep
