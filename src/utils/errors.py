"""Custom exception hierarchy for storyHarvester.

All application exceptions inherit from :class:`StoryHarvesterError`, which
carries an optional ``provider_name`` so log lines can identify which
external collaborator (e.g. "royalroad", "gemini", "mongodb") caused the
failure.

The hierarchy follows the error taxonomy of the harvest and sync halves:

    StoryHarvesterError  (base -- catch-all for any storyHarvester error)
    +-- TransportError       (page fetch failed: network error or non-2xx)
    +-- ExtractionError      (expected page structure is missing)
    +-- PersistenceError     (document store write/read failed)
    +-- EmbeddingError       (embedding provider call failed)
    +-- ConfigurationError   (startup / missing settings)

Transport and extraction errors are caught at the smallest unit of work
(one page, one chapter) and turned into a structured outcome.  Persistence
errors propagate.  Configuration errors are fatal before any network call.
"""


class StoryHarvesterError(Exception):
    """Base exception for all storyHarvester errors.

    ``__str__`` prefixes the provider name in brackets for log scanning,
    e.g. ``[royalroad] HTTP 503 for https://...``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Harvest errors
# ---------------------------------------------------------------------------

class TransportError(StoryHarvesterError):
    """Raised when a remote page cannot be fetched (network failure, non-2xx)."""

    def __init__(
        self,
        message: str = "Remote page fetch failed",
        provider_name: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.url = url
        self.status_code = status_code


class ExtractionError(StoryHarvesterError):
    """Raised when a fetched page lacks the structure an extractor expects."""

    def __init__(
        self,
        message: str = "Expected page structure not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage / embedding errors
# ---------------------------------------------------------------------------

class PersistenceError(StoryHarvesterError):
    """Raised when the document store rejects or fails an operation."""

    def __init__(
        self,
        message: str = "Document store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(StoryHarvesterError):
    """Raised when the embedding provider fails or returns an unusable body.

    Providers convert this into an empty vector at their public boundary,
    which the sync pipeline reads as "skip this unit for now".
    """

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(StoryHarvesterError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
