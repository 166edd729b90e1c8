"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Token-bucket rate limiter for outbound registry requests.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Optional


class RateLimitTimeout(TimeoutError):
    """Raised when a token does not become available within the timeout."""


class RateLimiter:
    """Allow at most ``max_calls`` operations per ``period_seconds``.

    Tokens refill continuously. :meth:`acquire` takes one token, sleeping
    outside the lock while the bucket is empty, and gives up with
    :class:`RateLimitTimeout` once ``timeout`` seconds have passed.
    """

    def __init__(
        self,
        max_calls: int,
        period_seconds: float,
        *,
        time_fn: Optional[Callable[[], float]] = None,
        sleep_fn: Optional[Callable[[float], None]] = None,
    ) -> None:
        if max_calls <= 0:
            raise ValueError("max_calls must be positive.")
        if period_seconds <= 0:
            raise ValueError("period_seconds must be positive.")

        self._capacity = float(max_calls)
        self._refill_per_second = self._capacity / float(period_seconds)
        self._time_fn = time_fn or time.monotonic
        self._sleep_fn = sleep_fn or time.sleep

        self._lock = threading.Lock()
        self._tokens = self._capacity
        self._last_refill = self._time_fn()

    def acquire(self, timeout: Optional[float] = None) -> None:
        """Block until a token is available or ``timeout`` elapses."""
        deadline = None if timeout is None else self._time_fn() + timeout
        while True:
            with self._lock:
                now = self._time_fn()
                self._refill(now)
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                wait_time = (1.0 - self._tokens) / self._refill_per_second

            if deadline is not None:
                remaining = deadline - self._time_fn()
                if remaining < wait_time:
                    raise RateLimitTimeout(
                        f"No request slot available within {timeout:.2f}s"
                    )
            self._sleep_fn(wait_time)

    def _refill(self, now: float) -> None:
        elapsed = now - self._last_refill
        if elapsed <= 0:
            return
        self._tokens = min(
            self._capacity, self._tokens + elapsed * self._refill_per_second
        )
        self._last_refill = now
