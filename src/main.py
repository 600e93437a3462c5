"""storyHarvester composition root.

Wires together all providers and services via constructor injection.
:func:`build_context` is called once per CLI invocation with the loaded
:class:`Settings`; nothing else in the code base reads configuration or
holds module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.page_extractor import IPageExtractor
from src.providers.document_store.memory_document_store import MemoryDocumentStore
from src.providers.document_store.mongo_document_store import MongoDocumentStore
from src.providers.embedding.gemini_embedding_provider import GeminiEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.extraction.royalroad_extractor import RoyalRoadExtractor
from src.services.harvest.chapter_scheduler import ChapterScheduler
from src.services.harvest.page_fetcher import PageFetcher
from src.services.harvest.paginated_harvester import PaginatedHarvester
from src.services.harvest.story_harvest_service import StoryHarvestService
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.embedding_sync_service import EmbeddingSyncService
from src.services.ingestion.ingestion_repository import IngestionRepository

logger = structlog.get_logger(logger_name=__name__)


@dataclass
class AppContext:
    """Every long-lived component of one run.

    ``embedder`` and ``sync_service`` are ``None`` unless the context was
    built with embedding enabled.
    """

    settings: Settings
    http_client: httpx.AsyncClient
    store: IDocumentStore
    repository: IngestionRepository
    extractor: IPageExtractor
    fetcher: PageFetcher
    harvester: PaginatedHarvester
    scheduler: ChapterScheduler
    harvest_service: StoryHarvestService
    embedder: IEmbeddingProvider | None = None
    sync_service: EmbeddingSyncService | None = None

    async def aclose(self) -> None:
        """Close the HTTP client, the embedding client and the store."""
        await self.http_client.aclose()
        if isinstance(self.embedder, OpenAIEmbeddingProvider):
            await self.embedder.aclose()
        await self.store.close()


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _make_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared client: browser-like User-Agent, redirects followed."""
    return httpx.AsyncClient(
        timeout=settings.http_timeout,
        headers={"User-Agent": settings.user_agent},
        follow_redirects=True,
    )


def _build_document_store(settings: Settings) -> IDocumentStore:
    if settings.document_store_backend.lower() == "memory":
        logger.warning("memory_document_store_selected", note="nothing will persist")
        return MemoryDocumentStore()
    return MongoDocumentStore(uri=settings.mongodb_uri, database=settings.mongodb_database)


def _build_embedding_provider(
    settings: Settings, http_client: httpx.AsyncClient
) -> IEmbeddingProvider:
    if settings.embedding_provider.lower() == "openai":
        return OpenAIEmbeddingProvider(settings=settings)
    return GeminiEmbeddingProvider(settings=settings, http_client=http_client)


# ---------------------------------------------------------------------------
# Full assembly
# ---------------------------------------------------------------------------


def build_context(
    settings: Settings,
    *,
    with_embedding: bool = False,
    http_client: httpx.AsyncClient | None = None,
    store: IDocumentStore | None = None,
) -> AppContext:
    """Validate *settings* and construct every component.

    Parameters
    ----------
    settings:
        Loaded application settings.
    with_embedding:
        Also build the embedding provider and sync service (validates the
        embedding settings).
    http_client, store:
        Pre-built collaborators, mainly for tests.

    Raises
    ------
    src.utils.errors.ConfigurationError
        If the store or (when requested) embedding settings are unusable.
    """
    if store is None:
        settings.validate_for_store()
    if with_embedding:
        settings.validate_for_embedding()

    client = http_client if http_client is not None else _make_http_client(settings)
    document_store = store if store is not None else _build_document_store(settings)

    repository = IngestionRepository(document_store, settings)
    extractor = RoyalRoadExtractor(base_url=settings.site_base_url)
    fetcher = PageFetcher(client, provider_name=extractor.get_provider_name())
    harvester = PaginatedHarvester(fetcher, repository)
    scheduler = ChapterScheduler(fetcher, extractor, repository, harvester, settings)
    harvest_service = StoryHarvestService(
        fetcher, extractor, repository, harvester, scheduler, settings
    )

    embedder: IEmbeddingProvider | None = None
    sync_service: EmbeddingSyncService | None = None
    if with_embedding:
        embedder = _build_embedding_provider(settings, client)
        sync_service = EmbeddingSyncService(
            repository,
            embedder,
            TextChunker(chunk_size=settings.chunk_size, overlap=settings.chunk_overlap),
            settings,
        )

    logger.debug(
        "app_context_built",
        store=document_store.get_provider_name(),
        embedder=embedder.get_provider_name() if embedder else None,
    )
    return AppContext(
        settings=settings,
        http_client=client,
        store=document_store,
        repository=repository,
        extractor=extractor,
        fetcher=fetcher,
        harvester=harvester,
        scheduler=scheduler,
        harvest_service=harvest_service,
        embedder=embedder,
        sync_service=sync_service,
    )
