"""Async throttling primitives for destination calls."""

import asyncio
import math
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import Deque, Optional

from ..utils.logging import get_logger


class AsyncRateLimiter:
    """Sliding-window rate limiter for async operations."""

    def __init__(self, max_calls: int, time_window: float):
        """Initialize rate limiter.

        Args:
            max_calls: Maximum number of calls in the time window
            time_window: Time window in seconds
        """
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if time_window <= 0:
            raise ValueError("time_window must be positive")

        self.max_calls = max_calls
        self.time_window = time_window
        self.calls: Deque[float] = deque()
        self.lock = asyncio.Lock()

        self.logger = get_logger(self.__class__.__name__)

    @classmethod
    def per_second(cls, rate: float) -> "AsyncRateLimiter":
        """Build a limiter that admits ``rate`` calls per second on average.

        Fractional rates keep at least one call per window and stretch the
        window instead.
        """
        if rate <= 0:
            raise ValueError("rate must be positive")
        max_calls = max(1, math.floor(rate))
        return cls(max_calls=max_calls, time_window=max_calls / rate)

    async def acquire(self):
        """Acquire permission to make a call."""
        while True:
            async with self.lock:
                now = time.monotonic()

                # Drop calls outside the time window
                while self.calls and now - self.calls[0] >= self.time_window:
                    self.calls.popleft()

                if len(self.calls) < self.max_calls:
                    self.calls.append(now)
                    return

                wait_time = self.time_window - (now - self.calls[0])

            self.logger.debug(f"Rate limit reached, waiting {wait_time:.2f}s")
            await asyncio.sleep(wait_time)


class SyncThrottle:
    """Concurrency and throughput limits for the destination calls of one batch.

    A throttle lives only as long as the sync_batch call that created it.
    """

    def __init__(self, max_concurrent: int, records_per_second: Optional[float] = None):
        """Initialize throttle.

        Args:
            max_concurrent: Maximum in-flight destination calls
            records_per_second: Throughput ceiling, or None for no rate limit
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.max_concurrent = max_concurrent
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.rate_limiter = (
            AsyncRateLimiter.per_second(records_per_second)
            if records_per_second else None
        )

    @asynccontextmanager
    async def slot(self):
        """Hold one concurrency slot and one unit of throughput."""
        async with self.semaphore:
            if self.rate_limiter:
                await self.rate_limiter.acquire()
            yield
