"""Per-key sliding-window rate limiting on Redis sorted sets.

Each key owns a sorted set ``ratelimit:{key_id}`` whose members are request
timestamps. One MULTI/EXEC block records the request before counting the
window, so concurrent requests for the same key never share a count. A
request that lands over the limit removes its own entry again. When Redis is
unavailable the limiter lets the request through.
"""

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass

import redis

from vidgen_engine.config import settings
from vidgen_engine.domain.errors import RateLimitExceededError
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)

WINDOW_SECONDS = 60


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int


class RateLimiter:
    """Sliding-window limiter keyed by API key id."""

    def __init__(
        self,
        client: redis.Redis,
        window_seconds: int = WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.window_seconds = window_seconds
        self.clock = clock

    def check(self, key_id: str, limit: int) -> RateLimitDecision:
        """Record a request for ``key_id`` if it fits in the window."""
        now = self.clock()
        key = f"ratelimit:{key_id}"

        # Unique member so two requests in the same instant both count
        member = f"{now}:{uuid.uuid4().hex[:8]}"

        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.zremrangebyscore(key, 0, now - self.window_seconds)
            pipe.zadd(key, {member: now})
            pipe.zcard(key)
            pipe.zrange(key, 0, 0, withscores=True)
            pipe.expire(key, self.window_seconds + 60)
            _, _, count, oldest, _ = pipe.execute()

            if count > limit:
                self.client.zrem(key, member)
        except redis.RedisError as e:
            logger.warning("rate_limiter_unavailable", key_id=key_id, error=str(e))
            return RateLimitDecision(True, limit, 0)

        if count > limit:
            if oldest:
                retry_after = int(oldest[0][1] + self.window_seconds - now) + 1
            else:
                retry_after = self.window_seconds
            logger.warning("rate_limit_exceeded", key_id=key_id, count=count - 1, limit=limit)
            return RateLimitDecision(False, 0, max(retry_after, 1))

        return RateLimitDecision(True, limit - count, 0)

    def enforce(self, key_id: str, limit: int) -> RateLimitDecision:
        """Like ``check`` but raises when the request does not fit.

        Raises:
            RateLimitExceededError: The window is full.
        """
        decision = self.check(key_id, limit)
        if not decision.allowed:
            raise RateLimitExceededError(limit, decision.retry_after_seconds)
        return decision


def build_rate_limiter() -> RateLimiter:
    return RateLimiter(redis.Redis.from_url(settings.redis_url, socket_timeout=2.0))
