"""HTTP fetcher used to read remote registry listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Tuple

import requests

from mcp_registry.clients.base_client import BaseClient
from mcp_registry.config import (CONNECT_TIMEOUT_SECONDS,
                                 READ_TIMEOUT_SECONDS)
from mcp_registry.net.rate_limiter import RateLimiter, RateLimitTimeout

DEFAULT_MAX_CALLS = 10
DEFAULT_PERIOD_SECONDS = 1.0
DEFAULT_TIMEOUT: Tuple[float, float] = (
    CONNECT_TIMEOUT_SECONDS,
    READ_TIMEOUT_SECONDS,
)


class UpstreamFetchError(RuntimeError):
    """Raised when a remote registry cannot be read or understood."""


@dataclass(frozen=True)
class FetchResponse:
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code <= 299


class HttpFetcher(Protocol):
    def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[Tuple[float, float]] = None,
    ) -> FetchResponse:
        """Issue a GET and return status code and body text."""


class RequestsHttpFetcher(BaseClient[FetchResponse]):
    """``requests``-backed fetcher with bounded connect and read timeouts."""

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
        logger: Optional[logging.Logger] = None,
        timeout: Tuple[float, float] = DEFAULT_TIMEOUT,
    ) -> None:
        limiter = rate_limiter or RateLimiter(
            max_calls=DEFAULT_MAX_CALLS,
            period_seconds=DEFAULT_PERIOD_SECONDS,
        )
        super().__init__(limiter, logger=logger)
        self._session = session or requests.Session()
        self._timeout = timeout

    def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[Tuple[float, float]] = None,
    ) -> FetchResponse:
        effective_timeout = timeout or self._timeout

        def _operation() -> FetchResponse:
            self._logger.debug("GET %s", url)
            response = self._session.get(
                url,
                headers=headers,
                timeout=effective_timeout,
                allow_redirects=True,
            )
            response.encoding = response.encoding or "utf-8"
            return FetchResponse(
                status_code=response.status_code, body=response.text
            )

        try:
            return self._execute_with_rate_limit(_operation, name=f"GET {url}")
        except (requests.RequestException, RateLimitTimeout) as exc:
            raise UpstreamFetchError(
                f"Failed to fetch '{url}': {exc}"
            ) from exc
