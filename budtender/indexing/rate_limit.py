"""
Token-bucket limiter for outbound provider calls.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable


class TokenBucketLimiter:
    """
    Async token bucket: ``rate_per_minute`` tokens refill continuously, at most
    ``burst`` accumulate. ``acquire`` waits until a token is available, so any
    number of workers can share one limiter.
    """

    def __init__(
        self,
        rate_per_minute: float,
        burst: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if rate_per_minute <= 0:
            raise ValueError("rate_per_minute must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate_per_second = rate_per_minute / 60.0
        self.capacity = float(burst)
        self._tokens = float(burst)
        self._clock = clock
        self._sleep = sleep
        self._updated = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate_per_second)
        self._updated = now

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens

    async def acquire(self) -> None:
        # The lock keeps waiters in FIFO order.
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                await self._sleep((1.0 - self._tokens) / self.rate_per_second)

    async def __aenter__(self) -> "TokenBucketLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None


__all__ = ["TokenBucketLimiter"]
