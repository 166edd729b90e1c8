"""Abstract interfaces for the partitioned backing store."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from mcp_registry.config import (ALL_PATTERN, SERVER_NAME_TAG_PREFIX,
                                 SERVER_VERSION_DATA_ID_SUFFIX)
from mcp_registry.models.index import PageResult


@dataclass(frozen=True)
class RawDocument:
    """A stored document as returned by the backing store."""

    partition: str
    group: str
    data_id: str
    content: str
    tags: Tuple[str, ...] = ()
    attributes: Dict[str, str] = field(default_factory=dict)


class QueryStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class QueryResult:
    status: QueryStatus
    content: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is QueryStatus.FOUND


class BackingStore(Protocol):
    """Read contract of the partitioned, paginated document store."""

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
        """Return one page of documents from ``partition`` (1-based pages)."""

    def query_one(
        self,
        partition: str,
        doc_id: str,
        group_id: str,
    ) -> QueryResult:
        """Fetch a single document by id."""


class WritableBackingStore(BackingStore, Protocol):
    """Backing store that also accepts writes."""

    def put(self, document: RawDocument) -> None:
        """Insert or replace a document."""

    def delete(self, partition: str, doc_id: str, group_id: str) -> bool:
        """Remove a document; return ``False`` when it did not exist."""


class PartitionDirectory(Protocol):
    """Enumerates partitions (namespaces); order is not guaranteed."""

    def list(self) -> List[str]:
        """Return every known partition name."""


def version_data_id(server_id: str) -> str:
    return f"{server_id}{SERVER_VERSION_DATA_ID_SUFFIX}"


def server_id_from_data_id(data_id: str) -> str:
    if data_id.endswith(SERVER_VERSION_DATA_ID_SUFFIX):
        return data_id[: -len(SERVER_VERSION_DATA_ID_SUFFIX)]
    return data_id


def name_tag(name: str) -> str:
    return f"{SERVER_NAME_TAG_PREFIX}{name}"


def blur_name_tag(name: str) -> str:
    return f"{SERVER_NAME_TAG_PREFIX}{ALL_PATTERN}{name}{ALL_PATTERN}"


def wildcard_match(pattern: Optional[str], value: str) -> bool:
    """Match ``value`` against a pattern where ``*`` is the only wildcard."""
    if pattern is None or pattern == ALL_PATTERN:
        return True
    if ALL_PATTERN not in pattern:
        return pattern == value
    regex = ".*".join(re.escape(part) for part in pattern.split(ALL_PATTERN))
    return re.fullmatch(regex, value, flags=re.DOTALL) is not None


def document_matches(
    document: RawDocument,
    *,
    filter_tags: Optional[str],
    data_id_pattern: Optional[str],
    group_id: Optional[str],
    extra_filters: Optional[Mapping[str, str]] = None,
) -> bool:
    """Shared filter used by every store adapter."""
    if group_id and document.group != group_id:
        return False
    if not wildcard_match(data_id_pattern, document.data_id):
        return False
    if filter_tags and not any(
        wildcard_match(filter_tags, tag) for tag in document.tags
    ):
        return False
    if extra_filters:
        for key, expected in extra_filters.items():
            if document.attributes.get(key) != expected:
                return False
    return True


def slice_page(
    documents: Iterable[RawDocument],
    page_no: int,
    page_size: int,
) -> PageResult[RawDocument]:
    """Cut ``page_no`` (1-based) of ``page_size`` out of a filtered sequence."""
    matched = list(documents)
    if page_no < 1:
        page_no = 1
    if page_size <= 0:
        return PageResult.build(
            [], total_count=len(matched), page_number=page_no, page_size=0
        )
    start = (page_no - 1) * page_size
    return PageResult.build(
        matched[start:start + page_size],
        total_count=len(matched),
        page_number=page_no,
        page_size=page_size,
    )
