"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports real OpenAI and OpenAI-compatible hosts via a custom ``base_url``
and model name.  Same contract as the Gemini adapter: a failed call
returns an empty vector instead of raising.
"""

from __future__ import annotations

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` unless ``openai_embedding_model`` says
    otherwise.  When ``openai_base_url`` is configured the client points
    at that URL.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key

        # Build client kwargs, adding base_url only when configured.
        client_kwargs: dict = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = client or openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_embedding_model or "text-embedding-3-small"
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_single(self, text: str) -> list[float]:
        """Embed *text*; return ``[]`` on any API failure."""
        try:
            return await self._create(text)
        except EmbeddingError as exc:
            logger.warning(
                "openai_embedding_failed",
                model=self._model,
                provider=self._provider_label,
                error=exc.message,
            )
            return []

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    async def aclose(self) -> None:
        await self._client.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _create(self, text: str) -> list[float]:
        try:
            response = await self._client.embeddings.create(input=[text], model=self._model)
        except openai.OpenAIError as exc:
            raise EmbeddingError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data:
            raise EmbeddingError(
                message="Response contained no embeddings",
                provider_name=self.get_provider_name(),
            )
        logger.debug(
            "openai_embedding_created",
            model=self._model,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return list(response.data[0].embedding)
