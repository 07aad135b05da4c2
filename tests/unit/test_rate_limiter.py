"""Unit tests for the token-bucket rate limiter."""

from unittest.mock import patch

import pytest
from fastapi import HTTPException

from openhouse.api.middleware.rate_limiter import RateLimiter


@pytest.mark.unit
class TestRateLimiter:
    """Test token bucket behaviour."""

    def test_burst_then_limited(self) -> None:
        """Test that the burst is allowed and the next call is refused."""
        limiter = RateLimiter(requests_per_minute=6, burst_size=3)

        with patch("openhouse.api.middleware.rate_limiter.time.time", return_value=1000.0):
            limiter.last_cleanup = 1000.0
            for _ in range(3):
                limiter.check("user-1")

            with pytest.raises(HTTPException) as exc_info:
                limiter.check("user-1")

        assert exc_info.value.status_code == 429
        assert exc_info.value.headers["Retry-After"] == "10"

    def test_callers_are_independent(self) -> None:
        """Test that one caller's usage does not affect another."""
        limiter = RateLimiter(requests_per_minute=60, burst_size=1)

        with patch("openhouse.api.middleware.rate_limiter.time.time", return_value=50.0):
            limiter.last_cleanup = 50.0
            limiter.check("a")
            limiter.check("b")

    def test_tokens_refill(self) -> None:
        """Test that tokens come back over time."""
        limiter = RateLimiter(requests_per_minute=60, burst_size=1)

        with patch("openhouse.api.middleware.rate_limiter.time.time") as clock:
            clock.return_value = 100.0
            limiter.last_cleanup = 100.0
            limiter.check("a")
            clock.return_value = 101.5
            limiter.check("a")

    def test_stats(self) -> None:
        """Test usage stats for known and unknown callers."""
        limiter = RateLimiter(requests_per_minute=10, burst_size=5)

        assert limiter.get_stats("nobody") == {
            "tokens_available": 5,
            "total_requests": 0,
            "limit_per_minute": 10,
        }

        with patch("openhouse.api.middleware.rate_limiter.time.time", return_value=10.0):
            limiter.last_cleanup = 10.0
            limiter.check("a")
            limiter.check("a")
            stats = limiter.get_stats("a")

        assert stats["total_requests"] == 2
        assert stats["tokens_available"] == 3

    def test_stale_buckets_cleaned(self) -> None:
        """Test that idle callers are forgotten."""
        limiter = RateLimiter(requests_per_minute=10, burst_size=5, cleanup_interval=60)

        with patch("openhouse.api.middleware.rate_limiter.time.time") as clock:
            clock.return_value = 0.0
            limiter.last_cleanup = 0.0
            limiter.check("old")
            clock.return_value = 500.0
            limiter.check("new")

        assert "old" not in limiter.buckets
        assert "new" in limiter.buckets
