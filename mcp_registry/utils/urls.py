"""URL helpers for remote registry listings.

Remote URLs published by third-party registries are not always well formed,
so :func:`parse_url_components` splits them by hand instead of relying on
``urllib.parse``:

* ``scheme`` is everything before the first ``://`` (when it is not at 0);
* the host segment runs up to the first ``/``; the rest is the path;
* the port follows the last ``:`` of the host segment. A non-numeric suffix
  is not an error: the whole segment is kept as the host and no port is set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus

CURSOR_PARAM = "cursor"
LIMIT_PARAM = "limit"
SEARCH_PARAM = "search"

NO_PORT = -1


@dataclass(frozen=True)
class UrlComponents:
    scheme: Optional[str]
    host: str
    port: int = NO_PORT
    path: Optional[str] = None

    @property
    def is_https(self) -> bool:
        return (self.scheme or "").lower() == "https"

    @property
    def has_port(self) -> bool:
        return self.port > 0


def parse_url_components(url: str) -> UrlComponents:
    """Split ``url`` into scheme, host, port and path without validation."""
    scheme: Optional[str] = None
    rest = url

    scheme_end = rest.find("://")
    if scheme_end > 0:
        scheme = rest[:scheme_end]
        rest = rest[scheme_end + 3:]

    path: Optional[str] = None
    path_start = rest.find("/")
    if path_start > 0:
        host_part = rest[:path_start]
        path = rest[path_start:]
    else:
        host_part = rest

    port = NO_PORT
    host = host_part
    port_start = host_part.rfind(":")
    if port_start > 0:
        suffix = host_part[port_start + 1:]
        try:
            parsed = int(suffix) if suffix.isdigit() else None
        except ValueError:
            # isdigit() also admits superscripts that int() rejects
            parsed = None
        if parsed is not None:
            host = host_part[:port_start]
            port = parsed

    return UrlComponents(scheme=scheme, host=host, port=port, path=path)


def build_page_url(
    base: str,
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> str:
    """
    Append listing query parameters to ``base``.
    :param base: listing endpoint, possibly with an existing query string
    :param cursor: opaque cursor; skipped when blank
    :param limit: page size; skipped unless positive
    :param search: name filter; skipped when blank
    :returns: the request URL
    """

    url = base
    has_query = "?" in base

    def _append(name: str, value: str) -> None:
        nonlocal url, has_query
        url += ("&" if has_query else "?") + f"{name}={value}"
        has_query = True

    if cursor and cursor.strip():
        _append(CURSOR_PARAM, quote_plus(cursor))
    if limit is not None and limit > 0:
        _append(LIMIT_PARAM, str(limit))
    if search and search.strip():
        _append(SEARCH_PARAM, quote_plus(search))
    return url
