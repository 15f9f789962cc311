"""Client for plain-text lists of repository URLs."""

import logging
from typing import Any

import httpx

from soundshelf.config import GitHubSettings
from soundshelf.domain.exceptions import ExternalServiceError
from soundshelf.domain.ports import ISourceListClient

logger = logging.getLogger(__name__)


class HttpSourceListClient(ISourceListClient):
    """Fetches a text resource (README, gist, raw file) over HTTP."""

    def __init__(
        self,
        settings: GitHubSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self.settings.user_agent},
                timeout=self.settings.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_text(self, url: str) -> str:
        """Fetch the resource and return its body as text.

        Raises:
            ExternalServiceError: On transport errors or non-2xx responses
        """
        client = await self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Source list fetch failed: HTTP {e.response.status_code} for {url}"
            )
            raise ExternalServiceError(
                f"Failed to fetch source list: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Source list fetch failed for {url}: {e}")
            raise ExternalServiceError(f"Failed to fetch source list: {e}") from e
        return response.text

    async def __aenter__(self) -> "HttpSourceListClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
