"""Utility modules for storyHarvester.

- **errors** -- Exception hierarchy rooted at StoryHarvesterError; one
  subclass per failure class (transport, extraction, persistence,
  embedding, configuration).
- **concurrency** -- Bounded asyncio worker pool with an exact, lock-guarded
  progress counter, used by the chapter scheduler.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
"""

from src.utils.concurrency import ProgressCounter, run_bounded
from src.utils.errors import (
    ConfigurationError,
    EmbeddingError,
    ExtractionError,
    PersistenceError,
    StoryHarvesterError,
    TransportError,
)
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "EmbeddingError",
    "ExtractionError",
    "PersistenceError",
    "ProgressCounter",
    "StoryHarvesterError",
    "TransportError",
    "configure_logging",
    "get_logger",
    "run_bounded",
]
