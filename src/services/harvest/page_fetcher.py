"""HTTP page fetching for the harvester.

Thin wrapper over the shared :class:`httpx.AsyncClient` that turns every
failure mode (connection error, timeout, non-2xx status) into a
:class:`~src.utils.errors.TransportError`, so callers only handle one
exception type per unit of work.  No retries: a failed page is reported
and the next run picks it up again.
"""

from __future__ import annotations

import httpx
import structlog

from src.utils.errors import TransportError

logger = structlog.get_logger(logger_name=__name__)


class PageFetcher:
    """Fetches HTML pages from the remote site.

    The ``httpx.AsyncClient`` is injected via the constructor for
    testability; it already carries the User-Agent header and timeout.
    """

    def __init__(self, http_client: httpx.AsyncClient, provider_name: str = "royalroad") -> None:
        self._http = http_client
        self._provider_name = provider_name

    async def fetch(self, url: str) -> str:
        """Return the body of *url* as text.

        Raises
        ------
        TransportError
            On network failure or a non-2xx response.
        """
        try:
            response = await self._http.get(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            logger.warning("page_fetch_failed", url=url, error=str(exc))
            raise TransportError(
                message=f"Request to {url} failed: {exc}",
                provider_name=self._provider_name,
                url=url,
            ) from exc

        if not response.is_success:
            logger.warning("page_fetch_http_error", url=url, status=response.status_code)
            raise TransportError(
                message=f"HTTP {response.status_code} for {url}",
                provider_name=self._provider_name,
                url=url,
                status_code=response.status_code,
            )
        return response.text
