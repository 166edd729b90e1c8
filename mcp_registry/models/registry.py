"""Raw shapes published by the official MCP registry.

Three input shapes are modelled here: a bare server detail (``server.json``),
the listing wrapper that pairs a detail with publication metadata, and the
listing page itself. Parsing is lenient about unknown fields and strict about
the fields the adaptor depends on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

OFFICIAL_META_KEY = "io.modelcontextprotocol.registry/official"


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Field '{key}' must be a string")
    return value


def _normalize_headers(raw: Any) -> Dict[str, str]:
    """Accept either a mapping or the registry's list of key/value inputs."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return {str(key): "" if value is None else str(value)
                for key, value in raw.items()}
    if isinstance(raw, list):
        headers: Dict[str, str] = {}
        for item in raw:
            if not isinstance(item, dict) or not item.get("name"):
                raise ValueError("Remote headers must include a name")
            value = item.get("value")
            headers[str(item["name"])] = "" if value is None else str(value)
        return headers
    raise ValueError("Remote headers must be an object or an array")


@dataclass(frozen=True)
class RegistryRemote:
    """A remote transport entry of a server detail."""

    url: str
    transport_type: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "RegistryRemote":
        if not isinstance(payload, dict):
            raise ValueError("Each remote must be a JSON object")
        url = payload.get("url")
        if not isinstance(url, str) or not url.strip():
            raise ValueError("Each remote must include a url")
        return cls(
            url=url,
            transport_type=_optional_str(payload, "type"),
            headers=_normalize_headers(payload.get("headers")),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.transport_type, "url": self.url}
        if self.headers:
            payload["headers"] = [
                {"name": name, "value": value}
                for name, value in self.headers.items()
            ]
        return payload


@dataclass(frozen=True)
class RegistryServerDetail:
    """A single server description in the official ``server.json`` format."""

    name: str
    description: Optional[str] = None
    title: Optional[str] = None
    version: Optional[str] = None
    website_url: Optional[str] = None
    repository: Optional[Dict[str, Any]] = None
    packages: List[Dict[str, Any]] = field(default_factory=list)
    remotes: List[RegistryRemote] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "RegistryServerDetail":
        if not isinstance(payload, dict):
            raise ValueError("Server detail must be a JSON object")
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Server detail must include a non-empty name")

        repository = payload.get("repository")
        if repository is not None and not isinstance(repository, dict):
            raise ValueError("Field 'repository' must be an object")

        packages = payload.get("packages") or []
        if not isinstance(packages, list) or not all(
            isinstance(item, dict) for item in packages
        ):
            raise ValueError("Field 'packages' must be an array of objects")

        remotes_raw = payload.get("remotes") or []
        if not isinstance(remotes_raw, list):
            raise ValueError("Field 'remotes' must be an array")

        return cls(
            name=name,
            description=_optional_str(payload, "description"),
            title=_optional_str(payload, "title"),
            version=_optional_str(payload, "version"),
            website_url=_optional_str(payload, "websiteUrl"),
            repository=repository,
            packages=list(packages),
            remotes=[RegistryRemote.from_payload(item) for item in remotes_raw],
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name}
        if self.description is not None:
            payload["description"] = self.description
        if self.title is not None:
            payload["title"] = self.title
        if self.version is not None:
            payload["version"] = self.version
        if self.website_url is not None:
            payload["websiteUrl"] = self.website_url
        if self.repository is not None:
            payload["repository"] = self.repository
        if self.packages:
            payload["packages"] = self.packages
        if self.remotes:
            payload["remotes"] = [remote.to_payload() for remote in self.remotes]
        return payload


@dataclass(frozen=True)
class OfficialMeta:
    """Publication metadata attached by the official registry."""

    published_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_latest: Optional[bool] = None
    status: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "OfficialMeta":
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise ValueError("Official metadata must be a JSON object")
        is_latest = payload.get("isLatest")
        return cls(
            published_at=_optional_str(payload, "publishedAt"),
            updated_at=_optional_str(payload, "updatedAt"),
            is_latest=bool(is_latest) if is_latest is not None else None,
            status=_optional_str(payload, "status"),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.published_at is not None:
            payload["publishedAt"] = self.published_at
        if self.updated_at is not None:
            payload["updatedAt"] = self.updated_at
        if self.is_latest is not None:
            payload["isLatest"] = self.is_latest
        if self.status is not None:
            payload["status"] = self.status
        return payload


@dataclass(frozen=True)
class ServerResponse:
    """Listing item: a server detail plus its publication metadata."""

    server: RegistryServerDetail
    official: OfficialMeta = field(default_factory=OfficialMeta)

    @classmethod
    def from_payload(cls, payload: Any) -> "ServerResponse":
        if not isinstance(payload, dict):
            raise ValueError("Listing item must be a JSON object")
        meta = payload.get("_meta") or {}
        if not isinstance(meta, dict):
            raise ValueError("Field '_meta' must be an object")
        return cls(
            server=RegistryServerDetail.from_payload(payload.get("server")),
            official=OfficialMeta.from_payload(meta.get(OFFICIAL_META_KEY)),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "server": self.server.to_payload(),
            "_meta": {OFFICIAL_META_KEY: self.official.to_payload()},
        }


@dataclass(frozen=True)
class RegistryServerList:
    """One page of the remote listing API."""

    servers: List[ServerResponse] = field(default_factory=list)
    next_cursor: Optional[str] = None
    count: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "RegistryServerList":
        if not isinstance(payload, dict):
            raise ValueError("Listing page must be a JSON object")
        servers_raw = payload.get("servers") or []
        if not isinstance(servers_raw, list):
            raise ValueError("Field 'servers' must be an array")
        metadata = payload.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValueError("Field 'metadata' must be an object")
        next_cursor = metadata.get("nextCursor")
        if next_cursor is None:
            next_cursor = metadata.get("next_cursor")
        count = metadata.get("count")
        return cls(
            servers=[ServerResponse.from_payload(item) for item in servers_raw],
            next_cursor=str(next_cursor) if next_cursor is not None else None,
            count=int(count) if count is not None else None,
        )

    def to_payload(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {}
        if self.next_cursor is not None:
            metadata["nextCursor"] = self.next_cursor
        if self.count is not None:
            metadata["count"] = self.count
        return {
            "servers": [server.to_payload() for server in self.servers],
            "metadata": metadata,
        }
