"""Token-bucket rate limiting for the AI and payment endpoints."""

import time
from collections import defaultdict

from fastapi import Depends, HTTPException, Request, status

from openhouse.api.middleware.auth import get_optional_user


class RateLimiter:
    """Simple in-memory rate limiter.

    Implements token bucket algorithm per caller. State is per process.
    """

    def __init__(
        self,
        requests_per_minute: int = 10,
        burst_size: int = 5,
        cleanup_interval: int = 60,
    ):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Sustained requests per minute per caller
            burst_size: Maximum burst requests allowed
            cleanup_interval: Interval (seconds) to cleanup old entries
        """
        self.requests_per_minute = requests_per_minute
        self.burst_size = burst_size
        self.cleanup_interval = cleanup_interval

        # Store: caller -> (tokens, last_update, request_count)
        self.buckets: dict[str, tuple[float, float, int]] = defaultdict(
            lambda: (float(burst_size), time.time(), 0)
        )
        self.last_cleanup = time.time()

    def _refill_tokens(self, key: str) -> float:
        """Refill tokens for a caller based on time elapsed."""
        tokens, last_update, count = self.buckets[key]
        current_time = time.time()

        tokens_to_add = (current_time - last_update) * (self.requests_per_minute / 60.0)
        new_tokens = min(tokens + tokens_to_add, float(self.burst_size))

        self.buckets[key] = (new_tokens, current_time, count)
        return new_tokens

    def check(self, key: str) -> None:
        """Consume one token for ``key``.

        Raises:
            HTTPException: 429 if the caller has no tokens left
        """
        current_time = time.time()
        if current_time - self.last_cleanup > self.cleanup_interval:
            self._cleanup_old_entries()
            self.last_cleanup = current_time

        tokens = self._refill_tokens(key)
        if tokens < 1.0:
            retry_after = max(int(60 / self.requests_per_minute), 1)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "error": "Rate limit exceeded",
                    "message": f"Maximum {self.requests_per_minute} requests per minute allowed",
                    "retry_after": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )

        tokens, last_update, count = self.buckets[key]
        self.buckets[key] = (tokens - 1.0, last_update, count + 1)

    def _cleanup_old_entries(self) -> None:
        """Drop buckets not touched recently."""
        cutoff_time = time.time() - (self.cleanup_interval * 2)
        stale = [key for key, (_, last, _) in self.buckets.items() if last < cutoff_time]
        for key in stale:
            del self.buckets[key]

    def get_stats(self, key: str) -> dict:
        """Tokens left and total requests for a caller."""
        if key not in self.buckets:
            return {
                "tokens_available": self.burst_size,
                "total_requests": 0,
                "limit_per_minute": self.requests_per_minute,
            }

        tokens = self._refill_tokens(key)
        _, _, count = self.buckets[key]
        return {
            "tokens_available": int(tokens),
            "total_requests": count,
            "limit_per_minute": self.requests_per_minute,
        }


validator_rate_limiter = RateLimiter(requests_per_minute=10, burst_size=5)
payment_rate_limiter = RateLimiter(requests_per_minute=20, burst_size=10)


def _caller_key(request: Request, user: dict | None) -> str:
    if user:
        return str(user["user_id"])
    return request.client.host if request.client else "unknown"


async def limit_validator_requests(
    request: Request, user: dict | None = Depends(get_optional_user)
) -> None:
    """FastAPI dependency rate limiting idea-validation calls."""
    validator_rate_limiter.check(_caller_key(request, user))


async def limit_payment_requests(
    request: Request, user: dict | None = Depends(get_optional_user)
) -> None:
    """FastAPI dependency rate limiting payment calls."""
    payment_rate_limiter.check(_caller_key(request, user))
