"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into a vector.  Implementations wrap
Google Gemini ``text-embedding-004`` or OpenAI ``text-embedding-3-small``.

Embedding calls fail transiently (quota, timeouts).  Providers therefore
never raise out of :meth:`IEmbeddingProvider.embed_single`: a failed call
returns an empty list, which the sync pipeline treats as "skip this unit
and retry on the next run".
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   GeminiEmbeddingProvider  -- text-embedding-004 over httpx (default)
#   OpenAIEmbeddingProvider  -- text-embedding-3-small via the openai SDK
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the sync pipeline."""

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for one text.

        Parameters
        ----------
        text:
            The text string to embed.

        Returns
        -------
        list[float]
            The embedding vector, or ``[]`` if the provider call failed for
            any reason (transport error, non-2xx status, malformed body).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"gemini-text-embedding-004"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has the credentials it needs."""
