"""Index entries, cache statistics and page envelopes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class IndexEntry:
    """Where a server lives: its partition, name and globally unique id."""

    partition: str
    name: str
    id: str


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time snapshot of cache counters."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups


@dataclass(frozen=True)
class PageResult(Generic[T]):
    """A single page of results along with paging counters."""

    items: List[T] = field(default_factory=list)
    total_count: int = 0
    page_number: int = 1
    pages_available: int = 0

    @classmethod
    def build(
        cls,
        items: List[T],
        *,
        total_count: int,
        page_number: int,
        page_size: int,
    ) -> "PageResult[T]":
        return cls(
            items=list(items),
            total_count=total_count,
            page_number=page_number,
            pages_available=pages_for(total_count, page_size),
        )


def pages_for(total_count: int, page_size: int) -> int:
    """Return ``ceil(total_count / page_size)``; zero for empty or bad sizes."""
    if page_size <= 0 or total_count <= 0:
        return 0
    return math.ceil(total_count / page_size)
