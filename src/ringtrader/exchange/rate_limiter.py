"""
Token bucket rate limiter for API requests.

Implements an async-compatible rate limiter to prevent exceeding
Binance API rate limits. Waiting for tokens uses asyncio.sleep, so a
cancelled caller stops waiting immediately.
"""

import asyncio
import math
from dataclasses import dataclass, field

from ringtrader.config.constants import (
    DEFAULT_RATE_LIMIT,
    DEFAULT_RATE_LIMIT_BURST,
    REQUEST_WEIGHT_PER_MINUTE,
)
from ringtrader.utils.time import get_timestamp_us


@dataclass
class TokenBucket:
    """
    Token bucket implementation for rate limiting.

    Tokens are added at a constant rate up to a maximum capacity.
    Each request consumes one or more tokens. Waiters are served in
    arrival order because the lock is held while sleeping.
    """

    capacity: int
    refill_rate: float  # tokens per second
    tokens: float = field(init=False)
    last_refill: int = field(init=False)  # microseconds
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize with full bucket."""
        if self.capacity < 1:
            raise ValueError("Bucket capacity must be at least 1")
        if self.refill_rate <= 0:
            raise ValueError("Refill rate must be positive")
        self.tokens = float(self.capacity)
        self.last_refill = get_timestamp_us()

    def _refill(self) -> None:
        """Add tokens based on elapsed time."""
        now = get_timestamp_us()
        elapsed_seconds = (now - self.last_refill) / 1_000_000.0
        self.last_refill = now

        if math.isinf(self.refill_rate):
            self.tokens = float(self.capacity)
            return

        self.tokens = min(
            float(self.capacity),
            self.tokens + (elapsed_seconds * self.refill_rate),
        )

    async def acquire(self, tokens: int = 1) -> None:
        """
        Acquire tokens, waiting if necessary.

        Requests larger than the capacity are clamped to the capacity
        so they can still be admitted.

        Args:
            tokens: Number of tokens to acquire.
        """
        tokens = min(tokens, self.capacity)

        async with self._lock:
            self._refill()

            while self.tokens < tokens:
                wait_seconds = (tokens - self.tokens) / self.refill_rate
                await asyncio.sleep(wait_seconds)
                self._refill()

            self.tokens -= tokens


class RateLimiter:
    """
    Global admission control for all outbound requests.

    Combines the configured sustained-rate bucket with Binance's
    per-minute request weight budget. Every attempt, retries included,
    must pass through acquire().
    """

    def __init__(
        self,
        rate: float = DEFAULT_RATE_LIMIT,
        burst: int = DEFAULT_RATE_LIMIT_BURST,
        request_weight_per_minute: int = REQUEST_WEIGHT_PER_MINUTE,
    ) -> None:
        """
        Initialize rate limiter with specified limits.

        Args:
            rate: Sustained requests per second.
            burst: Maximum requests admitted back to back.
            request_weight_per_minute: Maximum request weight per minute.
        """
        self._request_bucket = TokenBucket(capacity=burst, refill_rate=float(rate))
        self._weight_bucket = TokenBucket(
            capacity=request_weight_per_minute,
            refill_rate=request_weight_per_minute / 60.0,
        )

    @classmethod
    def unlimited(cls) -> "RateLimiter":
        """A limiter that never waits (tests and offline tooling)."""
        return cls(rate=math.inf, burst=1_000_000, request_weight_per_minute=1_000_000)

    async def acquire(self, weight: int = 1) -> None:
        """
        Acquire permission for one request.

        Args:
            weight: Request weight (varies by endpoint).
        """
        await self._request_bucket.acquire(1)
        await self._weight_bucket.acquire(weight)
