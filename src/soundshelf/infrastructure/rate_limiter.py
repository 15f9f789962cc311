"""
Rate limiting for outbound GitHub API calls.

Hey future me - a scan is a burst of folder listings (one per top-level
folder, all fired concurrently), and a bulk import is many scans in a row.
GitHub has two ways of saying "slow down":

- Every response carries X-RateLimit-Remaining / X-RateLimit-Reset. When
  remaining hits 0, each further call is a wasted 403 until the reset time.
  record_quota() turns that into a pause for EVERY caller sharing the limiter.
- The secondary limit answers 403/429 with Retry-After. The client calls
  handle_rate_limit_response(), which waits (Retry-After, or an exponential
  backoff when GitHub doesn't say) and drains the bucket so concurrent
  listings wait as well.

On top of that a token bucket (max_tokens, refilled at refill_rate per second)
smooths bursts. Leaving ``async with limiter`` cleanly resets the backoff.

    limiter = get_github_limiter(settings.github)
    async with limiter:
        response = await client.get(url)
    limiter.record_quota(remaining, reset_epoch)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from soundshelf.config import GitHubSettings

logger = logging.getLogger(__name__)


@dataclass
class RateLimiterConfig:
    """Bucket and backoff parameters.

    The defaults suit an authenticated token (5000 req/hour, about 1.4 req/sec
    sustained).
    """

    max_tokens: int = 10
    refill_rate: float = 2.0  # tokens per second
    # GitHub's secondary limit can ask for a minute or more. Capping lower than
    # that just earns another 403 right away.
    max_backoff_seconds: float = 300.0
    initial_backoff_seconds: float = 1.0
    backoff_multiplier: float = 2.0


@dataclass
class RateLimiter:
    """Token bucket with GitHub quota tracking and adaptive backoff."""

    config: RateLimiterConfig = field(default_factory=RateLimiterConfig)
    name: str = "default"

    _tokens: float = field(default=0.0, init=False)
    _last_refill: float = field(default_factory=time.monotonic, init=False)
    _current_backoff: float = field(default=0.0, init=False)
    _paused_until: float = field(default=0.0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self) -> None:
        self._tokens = float(self.config.max_tokens)
        self._current_backoff = self.config.initial_backoff_seconds

    @classmethod
    def for_github(cls, settings: "GitHubSettings | None" = None) -> "RateLimiter":
        """Limiter for the GitHub contents API.

        Anonymous clients only get 60 requests per HOUR; the bucket can't save
        you there, record_quota() at least stops the pointless retries.
        """
        config = RateLimiterConfig()
        if settings is not None:
            config = RateLimiterConfig(
                max_tokens=settings.rate_limit_burst,
                refill_rate=settings.rate_limit_per_second,
            )
        return cls(config=config, name="github")

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(
            float(self.config.max_tokens),
            self._tokens + (now - self._last_refill) * self.config.refill_rate,
        )
        self._last_refill = now

    def _next_wait(self) -> float:
        """Seconds until a request may go out (0 when one may go now)."""
        paused_for = self._paused_until - time.monotonic()
        if paused_for > 0:
            return paused_for
        self._refill()
        if self._tokens >= 1.0:
            return 0.0
        return (1.0 - self._tokens) / self.config.refill_rate

    async def acquire(self) -> None:
        """Take one token, sleeping while paused or while the bucket is empty."""
        async with self._lock:
            while (wait := self._next_wait()) > 0:
                logger.debug(f"RateLimiter[{self.name}]: waiting {wait:.2f}s for a token")
                # Other callers must be able to record quota/backoff meanwhile
                self._lock.release()
                try:
                    await asyncio.sleep(wait)
                finally:
                    await self._lock.acquire()
            self._tokens -= 1.0

    def record_quota(self, remaining: int | None, reset_epoch: int | None) -> None:
        """Feed the X-RateLimit-Remaining / X-RateLimit-Reset of a response.

        An exhausted quota pauses all callers until the reset time (capped at
        max_backoff_seconds); anything else is ignored.
        """
        if remaining != 0 or reset_epoch is None:
            return
        pause = min(max(reset_epoch - time.time(), 0.0), self.config.max_backoff_seconds)
        if pause <= 0:
            return
        self._paused_until = max(self._paused_until, time.monotonic() + pause)
        self._tokens = 0.0
        logger.warning(
            f"RateLimiter[{self.name}]: quota exhausted, pausing requests for {pause:.0f}s"
        )

    @property
    def paused_for(self) -> float:
        """Seconds left in a quota pause (0 when not paused)."""
        return max(self._paused_until - time.monotonic(), 0.0)

    async def handle_rate_limit_response(self, retry_after: int | None = None) -> float:
        """Wait after a 403/429 rate-limit answer.

        Args:
            retry_after: Seconds from the response (Retry-After or derived from
                X-RateLimit-Reset); None falls back to the current backoff

        Returns:
            The wait actually used
        """
        async with self._lock:
            wait = float(retry_after) if retry_after is not None else self._current_backoff
            wait = min(wait, self.config.max_backoff_seconds)
            logger.warning(
                f"RateLimiter[{self.name}]: rate limited, waiting {wait:.1f}s "
                f"(backoff level {self._current_backoff:.1f}s)"
            )
            self._current_backoff = min(
                self._current_backoff * self.config.backoff_multiplier,
                self.config.max_backoff_seconds,
            )
            self._tokens = 0.0

        await asyncio.sleep(wait)
        return wait

    def reset_backoff(self) -> None:
        self._current_backoff = self.config.initial_backoff_seconds

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        if exc_type is None:
            self.reset_backoff()

    @property
    def available_tokens(self) -> float:
        self._refill()
        return self._tokens


# One limiter per process: GitHub's quota is per token, not per client object.
_github_limiter: RateLimiter | None = None


def get_github_limiter(settings: "GitHubSettings | None" = None) -> RateLimiter:
    """Process-wide GitHub limiter. Settings only count on the first call."""
    global _github_limiter
    if _github_limiter is None:
        _github_limiter = RateLimiter.for_github(settings)
    return _github_limiter


__all__ = [
    "RateLimiter",
    "RateLimiterConfig",
    "get_github_limiter",
]
