"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Global offset/limit paging over independently paginated partitions.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, Iterable, List, TypeVar

from mcp_registry.models.index import PageResult
from mcp_registry.storage.errors import ValidationError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[str, int, int], PageResult[T]]
"""``(partition, page_no, page_size) -> PageResult``; pages are 1-based."""


class CrossPartitionPaginator(Generic[T]):
    """Stitch one contiguous page out of several partitions.

    Partitions are walked in ascending name order. Each one is first probed
    with a one-item page to learn its total, so partitions that lie entirely
    before ``offset`` are skipped without reading their records. The
    partition holding the start position is then read with ``limit``-sized
    pages; later partitions are read from their beginning.
    """

    def __init__(self, fetch_page: PageFetcher[T]) -> None:
        self._fetch_page = fetch_page

    def paginate(
        self,
        partitions: Iterable[str],
        offset: int,
        limit: int,
    ) -> List[T]:
        """
        Return up to ``limit`` items starting at global position ``offset``.
        :param partitions: partition names; order is normalized here
        :param offset: number of items to skip across all partitions
        :param limit: maximum number of items to return
        :returns: items in partition order, then store order
        """

        collected: List[T] = []
        if limit <= 0:
            return collected
        if offset < 0:
            raise ValidationError("offset must be non-negative")

        remaining_offset = offset
        for partition in sorted(set(partitions)):
            if len(collected) >= limit:
                break
            total = self._fetch_page(partition, 1, 1).total_count
            if total <= 0:
                continue
            if remaining_offset >= total:
                remaining_offset -= total
                continue
            self._collect_from_partition(
                partition, remaining_offset, limit, collected
            )
            remaining_offset = 0
        _LOGGER.debug(
            "Cross-partition page offset=%d limit=%d returned %d items",
            offset,
            limit,
            len(collected),
        )
        return collected

    def _collect_from_partition(
        self,
        partition: str,
        start: int,
        limit: int,
        collected: List[T],
    ) -> None:
        page_size = limit
        first_page = start // page_size + 1
        first_page_offset = start % page_size
        page_no = first_page
        remaining = limit - len(collected)
        while remaining > 0:
            items = self._fetch_page(partition, page_no, page_size).items
            if not items:
                break
            start_index = first_page_offset if page_no == first_page else 0
            end_index = min(start_index + remaining, len(items))
            if start_index < len(items):
                collected.extend(items[start_index:end_index])
                remaining -= end_index - start_index
            if end_index < len(items):
                break
            page_no += 1
