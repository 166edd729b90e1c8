"""In-memory store implementations for development and tests."""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from mcp_registry.models.index import PageResult

from .base import (BackingStore, PartitionDirectory, QueryResult, QueryStatus,
                   RawDocument, WritableBackingStore, document_matches,
                   slice_page)
from .errors import ValidationError

_Key = Tuple[str, str]


class InMemoryBackingStore(WritableBackingStore):
    """Dictionary-backed store; one insertion-ordered dict per partition."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._partitions: Dict[str, Dict[_Key, RawDocument]] = {}

    def put(self, document: RawDocument) -> None:
        if not document.data_id:
            raise ValidationError("document data_id must be provided")
        with self._lock:
            documents = self._partitions.setdefault(document.partition, {})
            documents[(document.group, document.data_id)] = document

    def delete(self, partition: str, doc_id: str, group_id: str) -> bool:
        with self._lock:
            documents = self._partitions.get(partition, {})
            return documents.pop((group_id, doc_id), None) is not None

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
        with self._lock:
            snapshot = list(self._partitions.get(partition, {}).values())
        matched = [
            document
            for document in snapshot
            if document_matches(
                document,
                filter_tags=filter_tags,
                data_id_pattern=data_id_pattern,
                group_id=group_id,
                extra_filters=extra_filters,
            )
        ]
        return slice_page(matched, page_no, page_size)

    def query_one(
        self,
        partition: str,
        doc_id: str,
        group_id: str,
    ) -> QueryResult:
        with self._lock:
            document = self._partitions.get(partition, {}).get(
                (group_id, doc_id)
            )
        if document is None:
            return QueryResult(QueryStatus.NOT_FOUND)
        return QueryResult(QueryStatus.FOUND, document.content)

    def partitions(self) -> List[str]:
        with self._lock:
            return list(self._partitions)


class InMemoryPartitionDirectory(PartitionDirectory):
    """Fixed or store-derived list of partitions."""

    def __init__(
        self,
        partitions: Optional[Iterable[str]] = None,
        *,
        store: Optional[BackingStore] = None,
    ) -> None:
        self._partitions: List[str] = list(partitions or [])
        self._store = store

    def add(self, partition: str) -> None:
        if partition not in self._partitions:
            self._partitions.append(partition)

    def list(self) -> List[str]:
        names = list(self._partitions)
        if isinstance(self._store, InMemoryBackingStore):
            for partition in self._store.partitions():
                if partition not in names:
                    names.append(partition)
        return names
