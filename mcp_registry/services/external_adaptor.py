"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Normalize official-registry server descriptions into canonical records.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from mcp_registry.clients.registry_client import (HttpFetcher,
                                                  RequestsHttpFetcher,
                                                  UpstreamFetchError)
from mcp_registry.config import (DEFAULT_HTTP_PORT, DEFAULT_HTTPS_PORT,
                                 FETCH_ALL_LIMIT, FETCH_ALL_PAGE_SIZE,
                                 MAX_PAGES_GUARD)
from mcp_registry.models.records import (PROTOCOL_SSE, PROTOCOL_STDIO,
                                         PROTOCOL_STREAMABLE, TRANSPORT_SSE,
                                         TRANSPORT_STREAMABLE,
                                         CanonicalRecord, ImportType,
                                         RemoteConfig, RemoteEndpoint,
                                         VersionDetail)
from mcp_registry.models.registry import (RegistryRemote,
                                          RegistryServerDetail,
                                          RegistryServerList, ServerResponse)
from mcp_registry.storage.errors import ValidationError
from mcp_registry.utils.urls import build_page_url, parse_url_components

_LOGGER = logging.getLogger(__name__)

ACCEPT_HEADERS = {"Accept": "application/json"}


@dataclass
class UrlPageResult:
    """Records adapted from one listing page plus the cursor to the next."""

    servers: List[CanonicalRecord] = field(default_factory=list)
    next_cursor: Optional[str] = None


def generate_server_id(name: str) -> str:
    """Derive a stable name-based (MD5, version 3) UUID for ``name``."""
    digest = hashlib.md5(name.encode("utf-8")).digest()
    return str(uuid.UUID(bytes=digest, version=3))


class ExternalDataAdaptor:
    """Turn ``file``, ``json`` and ``url`` inputs into canonical records.

    ``file`` expects a JSON array of server details, ``json`` exactly one
    detail object, and ``url`` the base URL of a paginated listing API. A
    ``limit`` of ``-1`` reads every page of the listing, following
    ``nextCursor`` until it is absent or the page guard is reached.
    Any failure while fetching aborts the whole call; partially collected
    pages are never returned.
    """

    def __init__(
        self,
        fetcher: Optional[HttpFetcher] = None,
        *,
        max_pages: int = MAX_PAGES_GUARD,
        page_size: int = FETCH_ALL_PAGE_SIZE,
    ) -> None:
        self._fetcher = fetcher
        self._max_pages = max_pages
        self._page_size = page_size

    @property
    def fetcher(self) -> HttpFetcher:
        if self._fetcher is None:
            self._fetcher = RequestsHttpFetcher()
        return self._fetcher

    def adapt(
        self,
        import_type: ImportType | str,
        data: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[CanonicalRecord]:
        parsed = (
            import_type
            if isinstance(import_type, ImportType)
            else ImportType.parse(import_type)
        )
        if parsed is ImportType.FILE:
            return self.adapt_file(data)
        if parsed is ImportType.JSON:
            return self.adapt_json(data)
        if parsed is ImportType.URL:
            return self.adapt_url(data, cursor, limit, search)
        raise ValidationError(f"Unsupported import type: {import_type}")

    def adapt_file(self, data: str) -> List[CanonicalRecord]:
        payload = _parse_json(data)
        if not isinstance(payload, list):
            raise ValidationError("File import data must be a JSON array")
        details = _convert(payload, lambda items: [
            RegistryServerDetail.from_payload(item) for item in items
        ])
        return [self.adapt_detail(detail) for detail in details]

    def adapt_json(self, data: str) -> List[CanonicalRecord]:
        payload = _parse_json(data)
        detail = _convert(payload, RegistryServerDetail.from_payload)
        return [self.adapt_detail(detail)]

    def adapt_url(
        self,
        url: Optional[str],
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[CanonicalRecord]:
        if url is None or not url.strip():
            raise ValidationError("URL is blank")
        base = url.strip()
        if limit == FETCH_ALL_LIMIT:
            return self.fetch_all(base, search)
        return self.fetch_page(base, cursor, limit, search).servers

    def fetch_page(
        self,
        base: str,
        cursor: Optional[str],
        limit: Optional[int],
        search: Optional[str],
    ) -> UrlPageResult:
        page_url = build_page_url(base.strip(), cursor, limit, search)
        response = self.fetcher.get(page_url, dict(ACCEPT_HEADERS))
        if not 200 <= response.status_code <= 299:
            raise UpstreamFetchError(
                f"HTTP {response.status_code} when fetching {page_url}"
            )
        try:
            listing = RegistryServerList.from_payload(json.loads(response.body))
            servers = [self.adapt_response(item) for item in listing.servers]
        except (TypeError, ValueError, ValidationError) as exc:
            raise UpstreamFetchError(
                f"Failed to parse response body from {page_url}: {exc}"
            ) from exc
        return UrlPageResult(servers=servers, next_cursor=listing.next_cursor)

    def fetch_all(
        self, base: str, search: Optional[str] = None
    ) -> List[CanonicalRecord]:
        collected: List[CanonicalRecord] = []
        cursor: Optional[str] = None
        pages = 0
        while pages < self._max_pages:
            pages += 1
            page = self.fetch_page(base, cursor, self._page_size, search)
            collected.extend(page.servers)
            if page.next_cursor is None:
                break
            cursor = page.next_cursor
        else:
            _LOGGER.warning(
                "Stopped reading %s after %d pages; remote kept returning "
                "a cursor",
                base,
                self._max_pages,
            )
        _LOGGER.info(
            "Fetched %d servers from %s in %d pages", len(collected), base, pages
        )
        return collected

    def adapt_detail(self, detail: RegistryServerDetail) -> CanonicalRecord:
        protocol = resolve_protocol(detail)
        version_detail = (
            VersionDetail(version=detail.version)
            if detail.version and detail.version.strip()
            else None
        )
        has_packages = bool(detail.packages)
        return CanonicalRecord(
            id=generate_server_id(detail.name),
            name=detail.name,
            description=detail.description,
            protocol=protocol,
            front_protocol=protocol,
            version_detail=version_detail,
            repository=detail.repository,
            packages=list(detail.packages) if has_packages else None,
            remote_config=(
                None if has_packages else build_remote_config(detail.remotes)
            ),
        )

    def adapt_response(self, response: ServerResponse) -> CanonicalRecord:
        record = self.adapt_detail(response.server)
        official = response.official
        if record.version_detail is not None:
            record.version_detail.release_date = official.published_at
            record.version_detail.is_latest = True
        if official.status and official.status.strip():
            record.status = official.status
        return record


def resolve_protocol(detail: RegistryServerDetail) -> Optional[str]:
    if detail.packages:
        return PROTOCOL_STDIO
    if not detail.remotes:
        return None
    transport = detail.remotes[0].transport_type
    if transport is None:
        return None
    lowered = transport.strip().lower()
    if lowered == TRANSPORT_SSE:
        return PROTOCOL_SSE
    if lowered == TRANSPORT_STREAMABLE:
        return PROTOCOL_STREAMABLE
    return None


def build_remote_config(
    remotes: List[RegistryRemote],
) -> Optional[RemoteConfig]:
    """Build one endpoint per remote; the first remote sets the export path."""
    if not remotes:
        return None
    endpoints: List[RemoteEndpoint] = []
    export_path: Optional[str] = None
    for remote in remotes:
        url = remote.url.strip()
        components = parse_url_components(url)
        if not components.host:
            raise ValidationError(f"Invalid URL: {url}")
        if components.has_port:
            port = components.port
        else:
            port = (
                DEFAULT_HTTPS_PORT if components.is_https else DEFAULT_HTTP_PORT
            )
        endpoints.append(
            RemoteEndpoint(
                host_port=f"{components.host}:{port}",
                path=components.path or "/",
                transport_type=remote.transport_type,
                protocol=components.scheme,
                headers=dict(remote.headers),
            )
        )
        if export_path is None:
            export_path = components.path or "/"
    return RemoteConfig(export_path=export_path or "/", endpoints=endpoints)


def _parse_json(data: Optional[str]) -> Any:
    if data is None or not data.strip():
        raise ValidationError("Import data is blank")
    try:
        return json.loads(data)
    except ValueError as exc:
        raise ValidationError(f"Malformed JSON: {exc}") from exc


def _convert(payload: Any, converter: Callable[[Any], Any]) -> Any:
    try:
        return converter(payload)
    except ValueError as exc:
        raise ValidationError(f"Invalid server description: {exc}") from exc
