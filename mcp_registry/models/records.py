"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Canonical server record and its endpoint helpers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

PROTOCOL_STDIO = "stdio"
PROTOCOL_SSE = "mcp-sse"
PROTOCOL_STREAMABLE = "mcp-streamable"

TRANSPORT_SSE = "sse"
TRANSPORT_STREAMABLE = "streamable-http"

FRONT_ENDPOINT_TYPE_TO_BACK = "BACKEND"
ENDPOINT_TYPE_DIRECT = "DIRECT"


class ServerStatus(str, Enum):
    """Lifecycle status published by the official registry."""

    ACTIVE = "active"
    DEPRECATED = "deprecated"
    DELETED = "deleted"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ServerStatus"]:
        if not value:
            return None
        for status in cls:
            if status.value == value:
                return status
        return None


class ImportType(str, Enum):
    """Shape of the external data handed to the adaptor."""

    JSON = "json"
    URL = "url"
    FILE = "file"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ImportType"]:
        if value is None or not value.strip():
            return None
        for import_type in cls:
            if import_type.value == value:
                return import_type
        return None


@dataclass
class VersionDetail:
    """Version sub-object; release metadata is filled from listing APIs."""

    version: str
    release_date: Optional[str] = None
    is_latest: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"version": self.version}
        if self.release_date is not None:
            payload["release_date"] = self.release_date
        if self.is_latest is not None:
            payload["is_latest"] = self.is_latest
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "VersionDetail":
        return cls(
            version=str(payload.get("version", "")),
            release_date=payload.get("release_date"),
            is_latest=payload.get("is_latest"),
        )


@dataclass
class RemoteEndpoint:
    """One front endpoint derived from a remote URL."""

    host_port: str
    path: str
    transport_type: Optional[str]
    protocol: Optional[str]
    headers: Dict[str, str] = field(default_factory=dict)
    endpoint_type: str = FRONT_ENDPOINT_TYPE_TO_BACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host_port": self.host_port,
            "path": self.path,
            "transport_type": self.transport_type,
            "protocol": self.protocol,
            "headers": dict(self.headers),
            "endpoint_type": self.endpoint_type,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RemoteEndpoint":
        return cls(
            host_port=str(payload.get("host_port", "")),
            path=str(payload.get("path") or "/"),
            transport_type=payload.get("transport_type"),
            protocol=payload.get("protocol"),
            headers=dict(payload.get("headers") or {}),
            endpoint_type=payload.get(
                "endpoint_type", FRONT_ENDPOINT_TYPE_TO_BACK
            ),
        )


@dataclass
class RemoteConfig:
    """Endpoint configuration for remotely hosted servers."""

    export_path: str
    endpoints: List[RemoteEndpoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "export_path": self.export_path,
            "endpoints": [endpoint.to_dict() for endpoint in self.endpoints],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RemoteConfig":
        return cls(
            export_path=str(payload.get("export_path") or "/"),
            endpoints=[
                RemoteEndpoint.from_dict(item)
                for item in payload.get("endpoints") or []
            ],
        )


@dataclass
class CanonicalRecord:
    """Normalized server record every external shape converges to."""

    id: str
    name: str
    description: Optional[str] = None
    protocol: Optional[str] = None
    front_protocol: Optional[str] = None
    status: str = ServerStatus.ACTIVE.value
    version_detail: Optional[VersionDetail] = None
    repository: Optional[Dict[str, Any]] = None
    remote_config: Optional[RemoteConfig] = None
    packages: Optional[List[Dict[str, Any]]] = None
    tool_spec: Optional[Dict[str, Any]] = None

    @property
    def version(self) -> Optional[str]:
        if self.version_detail is None:
            return None
        return self.version_detail.version

    @property
    def is_stdio(self) -> bool:
        return self.protocol == PROTOCOL_STDIO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "protocol": self.protocol,
            "front_protocol": self.front_protocol,
            "status": self.status,
            "version_detail": (
                self.version_detail.to_dict() if self.version_detail else None
            ),
            "repository": self.repository,
            "remote_config": (
                self.remote_config.to_dict() if self.remote_config else None
            ),
            "packages": self.packages,
            "tool_spec": self.tool_spec,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "CanonicalRecord":
        version_payload = payload.get("version_detail")
        remote_payload = payload.get("remote_config")
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            description=payload.get("description"),
            protocol=payload.get("protocol"),
            front_protocol=payload.get("front_protocol"),
            status=payload.get("status") or ServerStatus.ACTIVE.value,
            version_detail=(
                VersionDetail.from_dict(version_payload)
                if isinstance(version_payload, dict)
                else None
            ),
            repository=payload.get("repository"),
            remote_config=(
                RemoteConfig.from_dict(remote_payload)
                if isinstance(remote_payload, dict)
                else None
            ),
            packages=payload.get("packages"),
            tool_spec=payload.get("tool_spec"),
        )
