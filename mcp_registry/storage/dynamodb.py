"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

DynamoDB-backed partitioned document store.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from mcp_registry.config import (CONNECT_TIMEOUT_SECONDS,
                                 READ_TIMEOUT_SECONDS)
from mcp_registry.models.index import PageResult

from .base import (QueryResult, QueryStatus, RawDocument,
                   WritableBackingStore, document_matches, slice_page)
from .errors import StoreUnavailableError, ValidationError
from .memory import InMemoryBackingStore

_LOGGER = logging.getLogger(__name__)

ENV_TABLE_NAME = "MCP_REGISTRY_TABLE"
QUERY_BATCH_SIZE = 500


def _doc_key(group: str, data_id: str) -> str:
    return f"{group}#{data_id}"


class DynamoDBBackingStore(WritableBackingStore):
    """Documents keyed by ``partition`` (hash) and ``doc_key`` (range).

    DynamoDB has no offset paging, so ``find_page`` drains the partition with
    ``ExclusiveStartKey`` batches, filters locally and slices the result.
    """

    def __init__(
        self,
        table_name: str,
        *,
        resource: Any | None = None,
    ) -> None:
        if not table_name:
            raise ValueError("table_name must be provided")
        if resource is None:
            import boto3  # type: ignore[import-untyped]
            from botocore.config import Config  # type: ignore[import-untyped]

            region = os.environ.get("AWS_REGION") or os.environ.get(
                "AWS_DEFAULT_REGION"
            )
            client_kwargs: dict[str, Any] = {
                "config": Config(
                    connect_timeout=CONNECT_TIMEOUT_SECONDS,
                    read_timeout=READ_TIMEOUT_SECONDS,
                    retries={"max_attempts": 3},
                )
            }
            if region:
                client_kwargs["region_name"] = region
            resource = boto3.resource("dynamodb", **client_kwargs)
        self._table = resource.Table(table_name)

    def put(self, document: RawDocument) -> None:
        if not document.data_id:
            raise ValidationError("document data_id must be provided")
        item: Dict[str, Any] = {
            "partition": document.partition,
            "doc_key": _doc_key(document.group, document.data_id),
            "group": document.group,
            "data_id": document.data_id,
            "content": document.content,
            "tags": list(document.tags),
        }
        if document.attributes:
            item["attributes"] = dict(document.attributes)
        self._call("put_item", Item=item)

    def delete(self, partition: str, doc_id: str, group_id: str) -> bool:
        response = self._call(
            "delete_item",
            Key={"partition": partition, "doc_key": _doc_key(group_id, doc_id)},
            ReturnValues="ALL_OLD",
        )
        return bool((response or {}).get("Attributes"))

    def query_one(
        self,
        partition: str,
        doc_id: str,
        group_id: str,
    ) -> QueryResult:
        response = self._call(
            "get_item",
            Key={"partition": partition, "doc_key": _doc_key(group_id, doc_id)},
        )
        item = (response or {}).get("Item")
        if not item:
            return QueryResult(QueryStatus.NOT_FOUND)
        return QueryResult(QueryStatus.FOUND, item.get("content"))

    def find_page(
        self,
        filter_tags: Optional[str],
        page_no: int,
        page_size: int,
        data_id_pattern: Optional[str],
        group_id: Optional[str],
        partition: str,
        extra_filters: Optional[Mapping[str, str]] = None,
    ) -> PageResult[RawDocument]:
        matched = [
            document
            for document in self._scan_partition(partition)
            if document_matches(
                document,
                filter_tags=filter_tags,
                data_id_pattern=data_id_pattern,
                group_id=group_id,
                extra_filters=extra_filters,
            )
        ]
        return slice_page(matched, page_no, page_size)

    def _scan_partition(self, partition: str) -> List[RawDocument]:
        documents: List[RawDocument] = []
        params: Dict[str, Any] = {
            "KeyConditionExpression": "#p = :p",
            "ExpressionAttributeNames": {"#p": "partition"},
            "ExpressionAttributeValues": {":p": partition},
            "Limit": QUERY_BATCH_SIZE,
        }
        while True:
            response = self._call("query", **params) or {}
            for item in response.get("Items", []):
                documents.append(_item_to_document(item))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            params["ExclusiveStartKey"] = last_key
        return documents

    def _call(self, operation: str, **kwargs: Any) -> Any:
        try:
            return getattr(self._table, operation)(**kwargs)
        except Exception as exc:  # noqa: BLE001 - surface as store failure
            _LOGGER.warning("DynamoDB %s failed: %s", operation, exc)
            raise StoreUnavailableError(
                f"DynamoDB {operation} failed: {exc}"
            ) from exc


def _item_to_document(item: Dict[str, Any]) -> RawDocument:
    return RawDocument(
        partition=item["partition"],
        group=item.get("group", ""),
        data_id=item.get("data_id", ""),
        content=item.get("content", ""),
        tags=tuple(item.get("tags") or ()),
        attributes=dict(item.get("attributes") or {}),
    )


def build_backing_store_from_env() -> WritableBackingStore:
    table_name = os.getenv(ENV_TABLE_NAME)
    if table_name:
        return DynamoDBBackingStore(table_name)
    return InMemoryBackingStore()
