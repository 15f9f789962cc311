"""GitHub contents API client with rate limiting."""

import logging
import time
from typing import Any, cast
from urllib.parse import quote

import httpx

from soundshelf.config import GitHubSettings
from soundshelf.domain.exceptions import RateLimitExceededError, RemoteFetchFailedError
from soundshelf.domain.ports import IRepositoryContentClient
from soundshelf.infrastructure.rate_limiter import RateLimiter, get_github_limiter

logger = logging.getLogger(__name__)


class GitHubContentClient(IRepositoryContentClient):
    """HTTP client for the GitHub repository contents API."""

    # Hey future me, the contents API returns a JSON ARRAY for a folder and a
    # single OBJECT for a file. We only ever list folders, but if someone points
    # us at a file path we still hand back a list so callers have one shape.
    def __init__(
        self,
        settings: GitHubSettings,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize GitHub client.

        Args:
            settings: GitHub configuration settings
            rate_limiter: Limiter to use (defaults to the shared GitHub limiter)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.settings = settings
        self._rate_limiter = rate_limiter or get_github_limiter(settings)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # GitHub rejects requests without a User-Agent with 403. The token is
    # optional; anonymous clients work for public repos but hit 60 req/hour fast.
    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "User-Agent": self.settings.user_agent,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            if self.settings.token:
                headers["Authorization"] = f"Bearer {self.settings.token}"

            self._client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                headers=headers,
                timeout=self.settings.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        # Primary rate limit: 403 + X-RateLimit-Remaining: 0.
        # Secondary rate limit: 403 or 429, usually with Retry-After.
        if response.status_code == 429:
            return True
        if response.status_code == 403:
            return (
                response.headers.get("X-RateLimit-Remaining") == "0"
                or "Retry-After" in response.headers
            )
        return False

    @staticmethod
    def _int_header(response: httpx.Response, name: str) -> int | None:
        value = response.headers.get(name)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    # Secondary limits send Retry-After. An exhausted primary quota only says
    # when it resets (epoch seconds), so the wait is derived from that.
    def _retry_after(self, response: httpx.Response) -> int | None:
        retry_after = self._int_header(response, "Retry-After")
        if retry_after is not None:
            return retry_after
        reset_epoch = self._int_header(response, "X-RateLimit-Reset")
        if response.headers.get("X-RateLimit-Remaining") == "0" and reset_epoch is not None:
            return max(reset_epoch - int(time.time()), 1)
        return None

    async def _rate_limited_get(self, url: str, path: str) -> httpx.Response:
        """GET with the shared token bucket and retry on rate limiting.

        Raises:
            RateLimitExceededError: If still rate limited after max_retries
            RemoteFetchFailedError: On transport errors
        """
        client = await self._get_client()
        max_retries = self.settings.max_retries

        for attempt in range(max_retries + 1):
            try:
                async with self._rate_limiter:
                    response = await client.get(url)
            except httpx.HTTPError as e:
                raise RemoteFetchFailedError(path, f"{type(e).__name__}: {e}") from e

            self._rate_limiter.record_quota(
                self._int_header(response, "X-RateLimit-Remaining"),
                self._int_header(response, "X-RateLimit-Reset"),
            )
            if not self._is_rate_limited(response):
                return response

            retry_after = self._retry_after(response)
            if attempt >= max_retries:
                logger.error(
                    f"GitHub API rate limited ({response.status_code}) after "
                    f"{max_retries} retries. URL: {url}. "
                    f"Retry-After: {retry_after or 'not provided'} seconds."
                )
                raise RateLimitExceededError(
                    "GitHub API rate limit exceeded, try again later",
                    retry_after=retry_after,
                )

            wait_time = await self._rate_limiter.handle_rate_limit_response(retry_after)
            logger.warning(
                f"GitHub rate limit (attempt {attempt + 1}/{max_retries}): "
                f"Waited {wait_time:.1f}s, retrying {url}"
            )

        # Unreachable: the loop either returns or raises
        raise RateLimitExceededError("GitHub API rate limit exceeded")

    async def list_contents(
        self, owner: str, repo: str, path: str = ""
    ) -> list[dict[str, Any]]:
        """
        List one folder of a repository.

        Args:
            owner: Repository owner
            repo: Repository name
            path: Folder path relative to the repository root ("" for root)

        Returns:
            Raw entries as returned by GitHub (name, path, type, download_url, size, ...)

        Raises:
            RemoteFetchFailedError: On non-2xx responses or transport errors
            RateLimitExceededError: If rate limited after all retries
        """
        url = f"/repos/{quote(owner)}/{quote(repo)}/contents"
        if path:
            url = f"{url}/{quote(path.strip('/'), safe='/')}"

        response = await self._rate_limited_get(url, path)

        if not response.is_success:
            reason = f"HTTP {response.status_code}"
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("message") if isinstance(body, dict) else None
            if message:
                reason = f"{reason}: {message}"
            raise RemoteFetchFailedError(path, reason, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteFetchFailedError(path, "Response is not valid JSON") from e

        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise RemoteFetchFailedError(path, "Unexpected response shape")
        return cast(list[dict[str, Any]], data)

    async def __aenter__(self) -> "GitHubContentClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
