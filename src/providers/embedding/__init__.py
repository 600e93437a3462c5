"""Embedding provider implementations.

Two implementations of IEmbeddingProvider:
    1. GeminiEmbeddingProvider  -- text-embedding-004 (768 dims) over httpx.
       Default backend.
    2. OpenAIEmbeddingProvider  -- text-embedding-3-small (1536 dims) via the
       openai SDK, or any OpenAI-compatible host.

Both return an empty vector on failure rather than raising.
"""

from src.providers.embedding.gemini_embedding_provider import GeminiEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["GeminiEmbeddingProvider", "OpenAIEmbeddingProvider"]
