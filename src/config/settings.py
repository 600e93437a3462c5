"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# Values are read from two sources, in priority order:
#
#   1. Environment variables, e.g. MONGODB_URI=mongodb://localhost:27017
#   2. .env file in the working directory (local development)
#
# Field ``mongodb_uri`` maps to env var ``MONGODB_URI`` automatically.
# Defaults below apply when neither source sets a value.
#
# Settings are built once at startup and handed to ``build_context`` in
# src/main.py; nothing in the harvest or sync code reads the environment.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.errors import ConfigurationError

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """storyHarvester settings.

    Environment variables override defaults.  Loaded from .env when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Document store ===
    mongodb_uri: str = ""
    mongodb_database: str = ""
    # "mongodb" for the real store, "memory" for throwaway dry runs.
    document_store_backend: str = "mongodb"
    stories_collection: str = "EnglishBooks"
    chapters_collection: str = "EnglishChapters"
    comments_collection: str = "EnglishComment"
    reviews_collection: str = "EnglishReview"
    chunks_collection: str = "StoryChunks"
    chunk_markers_collection: str = "StoryChunkMarkers"

    # === Remote site ===
    site_base_url: str = "https://www.royalroad.com"
    user_agent: str = _DEFAULT_USER_AGENT
    http_timeout: float = 30.0

    # === Harvest limits & courtesy delays ===
    max_parallel_requests: int = Field(default=3, ge=1)
    max_comments_per_chapter: int = Field(default=7, ge=0)
    max_reviews_per_story: int = Field(default=50, ge=0)
    comment_page_delay: float = Field(default=0.5, ge=0.0)
    review_page_delay: float = Field(default=1.0, ge=0.0)

    # === Embedding providers ===
    # "gemini" (default) or "openai".
    embedding_provider: str = "gemini"
    gemini_api_key: str = ""
    gemini_embedding_model: str = "text-embedding-004"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_embedding_model: str = "text-embedding-3-small"

    # === Chunk / embed sync ===
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=100, ge=0)
    min_review_length: int = Field(default=30, ge=0)
    summary_embed_delay: float = Field(default=1.0, ge=0.0)
    chapter_chunk_delay: float = Field(default=0.5, ge=0.0)
    review_embed_delay: float = Field(default=1.0, ge=0.0)

    # === App ===
    app_env: str = "development"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Startup validation
    # ------------------------------------------------------------------

    def validate_for_store(self) -> None:
        """Raise :class:`ConfigurationError` if the document store is unusable."""
        backend = self.document_store_backend.lower()
        if backend not in ("mongodb", "memory"):
            raise ConfigurationError(
                f"Unknown document_store_backend {self.document_store_backend!r}",
            )
        if backend == "mongodb":
            if not self.mongodb_uri:
                raise ConfigurationError("MONGODB_URI is not set", provider_name="mongodb")
            if not self.mongodb_database:
                raise ConfigurationError("MONGODB_DATABASE is not set", provider_name="mongodb")

    def validate_for_embedding(self) -> None:
        """Raise :class:`ConfigurationError` if no embedding backend is usable."""
        provider = self.embedding_provider.lower()
        if provider == "gemini":
            if not self.gemini_api_key:
                raise ConfigurationError("GEMINI_API_KEY is not set", provider_name="gemini")
        elif provider == "openai":
            if not self.openai_api_key:
                raise ConfigurationError("OPENAI_API_KEY is not set", provider_name="openai")
        else:
            raise ConfigurationError(f"Unknown embedding_provider {self.embedding_provider!r}")
        if self.chunk_overlap >= self.chunk_size:
            raise ConfigurationError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})",
            )
