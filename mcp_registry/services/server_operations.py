"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Create, update and delete server records while keeping the index honest.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from mcp_registry.config import SERVER_CONFIG_MARK, SERVER_VERSIONS_GROUP
from mcp_registry.index.server_index import ServerIndex
from mcp_registry.models.records import CanonicalRecord
from mcp_registry.services.endpoint_spec import EndpointSpec
from mcp_registry.storage.base import (RawDocument, WritableBackingStore,
                                       name_tag, version_data_id)
from mcp_registry.storage.errors import (RecordAlreadyExists, RecordNotFound,
                                         ValidationError)

_LOGGER = logging.getLogger(__name__)


class ServerOperationService:
    """Persist one version document per server and invalidate the index.

    Every write removes the affected ``(partition, name)`` and id entries
    from the index so the next lookup reads through to the store.
    """

    def __init__(self, store: WritableBackingStore, index: ServerIndex) -> None:
        self._store = store
        self._index = index

    def create_server(
        self,
        partition: str,
        record: CanonicalRecord,
        endpoint_spec: Optional[EndpointSpec] = None,
    ) -> str:
        _require_identity(record)
        if self._exists(partition, record.id):
            raise RecordAlreadyExists(
                f"Server '{record.name}' already exists in {partition}"
            )
        self._write(partition, record, endpoint_spec)
        _LOGGER.info(
            "Created server %s (%s) in %s", record.name, record.id, partition
        )
        return record.id

    def update_server(
        self,
        partition: str,
        record: CanonicalRecord,
        endpoint_spec: Optional[EndpointSpec] = None,
    ) -> str:
        _require_identity(record)
        previous = self.load_server(partition, record.id)
        if previous is None:
            raise RecordNotFound(
                f"Server '{record.name}' does not exist in {partition}"
            )
        self._write(partition, record, endpoint_spec)
        if previous.name != record.name:
            self._index.remove_by_name(partition, previous.name)
        _LOGGER.info(
            "Updated server %s (%s) in %s", record.name, record.id, partition
        )
        return record.id

    def delete_server(self, partition: str, server_id: str) -> bool:
        previous = self.load_server(partition, server_id)
        removed = self._store.delete(
            partition, version_data_id(server_id), SERVER_VERSIONS_GROUP
        )
        if previous is not None:
            self._index.remove_by_name(partition, previous.name)
        self._index.remove_by_id(server_id)
        if removed:
            _LOGGER.info("Deleted server %s from %s", server_id, partition)
        return removed

    def load_server(
        self, partition: str, server_id: str
    ) -> Optional[CanonicalRecord]:
        result = self._store.query_one(
            partition, version_data_id(server_id), SERVER_VERSIONS_GROUP
        )
        if not result.found or not result.content:
            return None
        return CanonicalRecord.from_dict(json.loads(result.content))

    def load_endpoint_spec(
        self, partition: str, server_id: str
    ) -> Optional[Dict[str, Any]]:
        result = self._store.query_one(
            partition, version_data_id(server_id), SERVER_VERSIONS_GROUP
        )
        if not result.found or not result.content:
            return None
        return json.loads(result.content).get("endpoint_spec")

    def _exists(self, partition: str, server_id: str) -> bool:
        return self._store.query_one(
            partition, version_data_id(server_id), SERVER_VERSIONS_GROUP
        ).found

    def _write(
        self,
        partition: str,
        record: CanonicalRecord,
        endpoint_spec: Optional[EndpointSpec],
    ) -> None:
        content = record.to_dict()
        if endpoint_spec is not None:
            content["endpoint_spec"] = endpoint_spec.to_dict()
        document = RawDocument(
            partition=partition,
            group=SERVER_VERSIONS_GROUP,
            data_id=version_data_id(record.id),
            content=json.dumps(content, sort_keys=True),
            tags=(SERVER_CONFIG_MARK, name_tag(record.name)),
        )
        self._store.put(document)
        self._index.remove_by_name(partition, record.name)
        self._index.remove_by_id(record.id)


def _require_identity(record: CanonicalRecord) -> None:
    if not record.id:
        raise ValidationError("Server id must be provided")
    if not record.name or not record.name.strip():
        raise ValidationError("Server name must be provided")
