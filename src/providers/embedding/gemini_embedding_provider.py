"""Google Gemini embedding provider adapter.

Calls the Generative Language REST API ``embedContent`` method directly
over httpx to implement :class:`IEmbeddingProvider` with
``text-embedding-004`` (768 dimensions).

Request::

    POST {base}/models/{model}:embedContent?key={api_key}
    {"model": "models/{model}", "content": {"parts": [{"text": "..."}]}}

Response::

    {"embedding": {"values": [0.01, -0.02, ...]}}

Any failure (transport error, non-2xx, body without ``embedding.values``)
is logged and returned as an empty vector.
"""

from __future__ import annotations

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)


class GeminiEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by the Gemini ``embedContent`` endpoint.

    Parameters
    ----------
    settings:
        Supplies ``gemini_api_key``, ``gemini_embedding_model`` and
        ``gemini_base_url``.
    http_client:
        Shared :class:`httpx.AsyncClient`.  Its lifetime is owned by the
        caller (the application context).
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._api_key = settings.gemini_api_key
        self._model = settings.gemini_embedding_model
        self._base_url = settings.gemini_base_url.rstrip("/")
        self._http = http_client

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_single(self, text: str) -> list[float]:
        """Embed *text*; return ``[]`` on any provider failure."""
        try:
            return await self._request_embedding(text)
        except EmbeddingError as exc:
            logger.warning(
                "gemini_embedding_failed",
                model=self._model,
                error=exc.message,
                text_length=len(text),
            )
            return []

    def get_provider_name(self) -> str:
        return f"gemini-{self._model}"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _request_embedding(self, text: str) -> list[float]:
        url = f"{self._base_url}/models/{self._model}:embedContent"
        payload = {
            "model": f"models/{self._model}",
            "content": {"parts": [{"text": text}]},
        }
        try:
            response = await self._http.post(url, params={"key": self._api_key}, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise EmbeddingError(
                message=f"HTTP {exc.response.status_code} from embedContent",
                provider_name=self.get_provider_name(),
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise EmbeddingError(
                message=f"embedContent request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        embedding = body.get("embedding") if isinstance(body, dict) else None
        values = embedding.get("values") if isinstance(embedding, dict) else None
        if not isinstance(values, list) or not values:
            raise EmbeddingError(
                message="Response has no embedding.values",
                provider_name=self.get_provider_name(),
            )
        try:
            return [float(v) for v in values]
        except (TypeError, ValueError) as exc:
            raise EmbeddingError(
                message=f"Non-numeric value in embedding.values: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
