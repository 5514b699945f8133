"""Throttling utilities for destination access."""

from .async_optimizer import (
    AsyncRateLimiter,
    SyncThrottle
)

__all__ = [
    "AsyncRateLimiter",
    "SyncThrottle",
]
