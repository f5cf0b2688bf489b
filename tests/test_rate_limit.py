"""Tests for the sliding-window rate limiter."""

from unittest.mock import MagicMock

import pytest
import redis

from vidgen_engine.domain.errors import RateLimitExceededError
from vidgen_engine.services.rate_limit import RateLimiter


def make_client(count: int, oldest_score: float | None = None) -> tuple[MagicMock, MagicMock]:
    """Redis client whose pipeline counts ``count`` entries, this request's included."""
    client = MagicMock(spec=redis.Redis)
    pipe = MagicMock()
    oldest = [("member", oldest_score)] if oldest_score is not None else []
    pipe.execute.return_value = [0, 1, count, oldest, True]
    client.pipeline.return_value = pipe
    return client, pipe


def test_request_under_limit_is_recorded() -> None:
    client, pipe = make_client(count=4)
    limiter = RateLimiter(client, clock=lambda: 1000.0)

    decision = limiter.check("key-1", limit=10)

    assert decision.allowed is True
    assert decision.remaining == 6
    client.pipeline.assert_called_once_with(transaction=True)
    pipe.zadd.assert_called_once()
    assert pipe.zadd.call_args.args[0] == "ratelimit:key-1"
    pipe.expire.assert_called_once_with("ratelimit:key-1", 120)
    client.zrem.assert_not_called()


def test_request_is_recorded_before_counting() -> None:
    client, pipe = make_client(count=1)
    limiter = RateLimiter(client, clock=lambda: 1000.0)

    limiter.check("key-1", limit=10)

    calls = [name for name, _, _ in pipe.method_calls if name != "execute"]
    assert calls.index("zadd") < calls.index("zcard")
    pipe.execute.assert_called_once()


def test_last_request_that_fits_is_allowed() -> None:
    client, _ = make_client(count=10)
    limiter = RateLimiter(client, clock=lambda: 1000.0)

    decision = limiter.check("key-1", limit=10)

    assert decision.allowed is True
    assert decision.remaining == 0
    client.zrem.assert_not_called()


def test_request_over_limit_reports_retry_after() -> None:
    client, pipe = make_client(count=11, oldest_score=990.0)
    limiter = RateLimiter(client, clock=lambda: 1000.0)

    decision = limiter.check("key-1", limit=10)

    assert decision.allowed is False
    assert decision.remaining == 0
    # Oldest entry leaves the 60s window at 1050
    assert decision.retry_after_seconds == 51
    # The rejected request takes its own entry back out
    member = next(iter(pipe.zadd.call_args.args[1]))
    client.zrem.assert_called_once_with("ratelimit:key-1", member)


def test_enforce_raises_when_full() -> None:
    client, _ = make_client(count=6, oldest_score=999.0)
    limiter = RateLimiter(client, clock=lambda: 1000.0)

    with pytest.raises(RateLimitExceededError) as exc_info:
        limiter.enforce("key-1", limit=5)

    assert exc_info.value.limit == 5
    assert exc_info.value.retry_after_seconds == 60


def test_redis_outage_fails_open() -> None:
    client = MagicMock(spec=redis.Redis)
    client.pipeline.side_effect = redis.ConnectionError("down")
    limiter = RateLimiter(client)

    decision = limiter.check("key-1", limit=10)

    assert decision.allowed is True
