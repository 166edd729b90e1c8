"""Expose stored servers in the official registry listing format."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from mcp_registry.config import (DEFAULT_HTTP_PORT, DEFAULT_HTTPS_PORT,
                                 DEFAULT_LIST_LIMIT, SEARCH_BLUR,
                                 SERVER_VERSIONS_GROUP)
from mcp_registry.index.pagination import CrossPartitionPaginator
from mcp_registry.index.server_index import ServerIndex
from mcp_registry.models.index import IndexEntry, PageResult
from mcp_registry.models.records import (PROTOCOL_SSE, PROTOCOL_STREAMABLE,
                                         TRANSPORT_SSE, TRANSPORT_STREAMABLE,
                                         CanonicalRecord, RemoteEndpoint)
from mcp_registry.models.registry import (OfficialMeta, RegistryRemote,
                                          RegistryServerDetail,
                                          RegistryServerList, ServerResponse)
from mcp_registry.storage.base import (BackingStore, PartitionDirectory,
                                       version_data_id)

_LOGGER = logging.getLogger(__name__)

_TRANSPORT_BY_PROTOCOL = {
    PROTOCOL_SSE: TRANSPORT_SSE,
    PROTOCOL_STREAMABLE: TRANSPORT_STREAMABLE,
}


class RegistryListingService:
    """Read side of the registry: listing, detail and tool lookups."""

    def __init__(
        self,
        store: BackingStore,
        directory: PartitionDirectory,
        index: ServerIndex,
    ) -> None:
        self._store = store
        self._directory = directory
        self._index = index

    def list_servers(
        self,
        partition: Optional[str] = None,
        name: Optional[str] = None,
        offset: int = 0,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Dict[str, Any]:
        """
        Return one page of servers across partitions.
        :param partition: restrict to one partition; all partitions when empty
        :param name: fuzzy name filter
        :param offset: global offset across the ordered partitions
        :param limit: maximum number of servers
        :returns: listing payload with ``servers`` and ``metadata.count``
        """

        partitions = [partition] if partition else self._directory.list()

        def _fetch(
            part: str, page_no: int, page_size: int
        ) -> PageResult[IndexEntry]:
            return self._index.search(part, name, SEARCH_BLUR, page_no, page_size)

        entries = CrossPartitionPaginator(_fetch).paginate(
            partitions, offset, limit
        )
        servers: List[ServerResponse] = []
        for entry in entries:
            record = self._load(entry.partition, entry.id)
            if record is None:
                _LOGGER.debug(
                    "Listed server %s vanished from %s", entry.id, entry.partition
                )
                continue
            servers.append(build_server_response(record))
        listing = RegistryServerList(servers=servers, count=len(servers))
        return listing.to_payload()

    def get_server(
        self, name: str, partition: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        entry = self._index.get_by_name(partition, name)
        if entry is None:
            return None
        record = self._load(entry.partition, entry.id)
        if record is None:
            return None
        return build_server_response(record).to_payload()

    def get_tools(self, server_id: str) -> Optional[Dict[str, Any]]:
        entry = self._index.get_by_id(server_id)
        if entry is None:
            return None
        record = self._load(entry.partition, server_id)
        return record.tool_spec if record is not None else None

    def _load(self, partition: str, server_id: str) -> Optional[CanonicalRecord]:
        result = self._store.query_one(
            partition, version_data_id(server_id), SERVER_VERSIONS_GROUP
        )
        if not result.found or not result.content:
            return None
        return CanonicalRecord.from_dict(json.loads(result.content))


def build_server_response(record: CanonicalRecord) -> ServerResponse:
    version_detail = record.version_detail
    detail = RegistryServerDetail(
        name=record.name,
        description=record.description,
        version=version_detail.version if version_detail else None,
        repository=record.repository,
        packages=list(record.packages or []),
        remotes=build_remotes(record),
    )
    official = OfficialMeta(
        published_at=version_detail.release_date if version_detail else None,
        is_latest=version_detail.is_latest if version_detail else None,
        status=record.status,
    )
    return ServerResponse(server=detail, official=official)


def build_remotes(record: CanonicalRecord) -> List[RegistryRemote]:
    transport = _TRANSPORT_BY_PROTOCOL.get(record.front_protocol or "")
    if transport is None or record.remote_config is None:
        return []
    return [
        RegistryRemote(
            url=endpoint_url(endpoint),
            transport_type=transport,
            headers=dict(endpoint.headers),
        )
        for endpoint in record.remote_config.endpoints
    ]


def endpoint_url(endpoint: RemoteEndpoint) -> str:
    """Render an endpoint as a URL, omitting the scheme's default port."""
    scheme = (endpoint.protocol or "http").lower()
    address, _, port_text = endpoint.host_port.rpartition(":")
    if not address or not port_text.isdigit():
        address, port = endpoint.host_port, None
    else:
        port = int(port_text)
    path = endpoint.path or "/"
    default_port = (
        (scheme == "http" and port == DEFAULT_HTTP_PORT)
        or (scheme == "https" and port == DEFAULT_HTTPS_PORT)
    )
    if port is None or default_port:
        return f"{scheme}://{address}{path}"
    return f"{scheme}://{address}:{port}{path}"
