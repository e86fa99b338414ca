"""
Login rate limiting.

The limiter is an explicit capability (``check(key) -> bool``) handed to
the login flow. RedisRateLimiter shares counters between instances;
InMemoryRateLimiter is local to one process and is only correct for
single-instance deployments and tests.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from redis.asyncio import Redis

from unibulletin.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

# INCR with expiry on first hit, atomically
INCR_WITH_TTL = """
local current = redis.call('INCR', KEYS[1])
if current == 1 then
  redis.call('EXPIRE', KEYS[1], tonumber(ARGV[1]))
end
return current
"""


class RateLimiter(Protocol):
    async def check(self, key: str) -> bool:
        """Record an attempt for key; return False once the limit is exceeded."""
        ...


class InMemoryRateLimiter:
    """Sliding-window limiter kept in a process-local dict."""

    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        cleanup_interval: int = 100,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._hits: Dict[str, List[float]] = {}
        self._calls = 0

    async def check(self, key: str) -> bool:
        # Expired keys are pruned every cleanup_interval calls
        self._calls += 1
        if self._calls % self.cleanup_interval == 0:
            self.cleanup()

        now = self._clock()
        recent = [t for t in self._hits.get(key, []) if now - t < self.window_seconds]

        if len(recent) >= self.max_attempts:
            self._hits[key] = recent
            return False

        recent.append(now)
        self._hits[key] = recent
        return True

    def cleanup(self) -> None:
        """Drop keys whose attempts have all left the window."""
        now = self._clock()
        for key in list(self._hits):
            recent = [t for t in self._hits[key] if now - t < self.window_seconds]
            if recent:
                self._hits[key] = recent
            else:
                del self._hits[key]


class RedisRateLimiter:
    """Fixed-window limiter on a shared Redis, degrading to a local fallback."""

    key_prefix = "rate_limit:"

    def __init__(
        self,
        client: Any,
        max_attempts: int,
        window_seconds: int,
        fallback: Optional[InMemoryRateLimiter] = None,
    ):
        self._client = client
        self.max_attempts = max_attempts
        self.window_seconds = int(window_seconds)
        self._fallback = fallback or InMemoryRateLimiter(max_attempts, window_seconds)

    async def check(self, key: str) -> bool:
        try:
            count = await self._client.eval(
                INCR_WITH_TTL, 1, f"{self.key_prefix}{key}", self.window_seconds
            )
            return int(count) <= self.max_attempts
        except Exception as e:
            logger.warning(f"Redis rate limiter error, using in-process fallback: {e}")
            return await self._fallback.check(key)

    def cleanup(self) -> None:
        self._fallback.cleanup()


async def connect_redis(url: str) -> Any:
    """Return a connected async Redis client, or None if disabled/unavailable."""
    url = (url or "").strip()
    if not url:
        return None
    try:
        client = Redis.from_url(url, decode_responses=True)
        await client.ping()
        logger.info(f"Redis rate limit store connected: {url.split('@')[-1]}")
        return client
    except Exception as e:
        logger.warning(f"Redis unavailable (rate limiting is process-local): {e}")
        return None


def build_login_limiter(redis_client: Any = None, settings: Optional[Settings] = None):
    """Build the login limiter from settings, shared if a Redis client is given."""
    settings = settings or default_settings
    local = InMemoryRateLimiter(
        settings.login_rate_limit_attempts,
        settings.login_rate_limit_window_seconds,
    )
    if redis_client is None:
        return local
    return RedisRateLimiter(
        redis_client,
        settings.login_rate_limit_attempts,
        settings.login_rate_limit_window_seconds,
        fallback=local,
    )
