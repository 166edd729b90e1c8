"""Base class for rate-limited outbound clients."""

from __future__ import annotations

import logging
import time
from typing import Callable, Generic, Optional, TypeVar

from mcp_registry.net.rate_limiter import RateLimiter

T = TypeVar("T")

DEFAULT_ACQUIRE_TIMEOUT_SECONDS = 30.0


class BaseClient(Generic[T]):
    """Provide rate-limited, timed execution of outbound requests."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        *,
        logger: Optional[logging.Logger] = None,
        acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT_SECONDS,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._logger = logger or logging.getLogger(self.__class__.__name__)
        self._acquire_timeout = acquire_timeout

    def _execute_with_rate_limit(
        self,
        operation: Callable[[], T],
        *,
        name: Optional[str] = None,
    ) -> T:
        """Run ``operation`` once the rate limiter grants a slot."""
        label = name or getattr(operation, "__name__", "<anonymous>")
        self._rate_limiter.acquire(timeout=self._acquire_timeout)

        started_at = time.perf_counter()
        try:
            return operation()
        finally:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            if self._logger.isEnabledFor(logging.DEBUG):
                self._logger.debug(
                    "Operation %s completed in %.2f ms",
                    label,
                    elapsed_ms,
                )
