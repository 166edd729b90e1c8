"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Thread-safe in-memory cache mapping server names and ids to index entries.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Dict, Optional, Tuple

from mcp_registry.models.index import CacheStats, IndexEntry

_NameKey = Tuple[str, str]


class ServerIndexCache:
    """Two-way cache: ``(partition, name) -> id`` and ``id -> IndexEntry``.

    Every mutation replaces whole entries under a single lock, so readers
    never observe a half-written pair. When ``max_entries`` is set the least
    recently used entry is evicted once the cache is full.
    """

    def __init__(self, *, max_entries: Optional[int] = None) -> None:
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive when provided")
        self._max_entries = max_entries
        self._lock = threading.RLock()
        self._by_id: "OrderedDict[str, IndexEntry]" = OrderedDict()
        self._by_name: Dict[_NameKey, str] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get_by_id(self, server_id: str) -> Optional[IndexEntry]:
        with self._lock:
            entry = self._by_id.get(server_id)
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            self._by_id.move_to_end(server_id)
            return entry

    def get_by_name(self, partition: str, name: str) -> Optional[IndexEntry]:
        with self._lock:
            server_id = self._by_name.get((partition, name))
            entry = self._by_id.get(server_id) if server_id else None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            self._by_id.move_to_end(entry.id)
            return entry

    def update(self, partition: str, name: str, server_id: str) -> None:
        """Insert or replace the entry for ``server_id``."""
        entry = IndexEntry(partition=partition, name=name, id=server_id)
        with self._lock:
            previous = self._by_id.pop(server_id, None)
            if previous is not None:
                self._drop_name(previous)
            stale_id = self._by_name.get((partition, name))
            if stale_id is not None and stale_id != server_id:
                self._by_id.pop(stale_id, None)
            self._by_id[server_id] = entry
            self._by_name[(partition, name)] = server_id
            self._evict_overflow()

    def remove_by_name(self, partition: str, name: str) -> None:
        with self._lock:
            server_id = self._by_name.pop((partition, name), None)
            if server_id is not None:
                self._by_id.pop(server_id, None)

    def remove_by_id(self, server_id: str) -> None:
        with self._lock:
            entry = self._by_id.pop(server_id, None)
            if entry is not None:
                self._drop_name(entry)

    def clear(self) -> None:
        with self._lock:
            self._by_id.clear()
            self._by_name.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                size=len(self._by_id),
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)

    def _drop_name(self, entry: IndexEntry) -> None:
        key = (entry.partition, entry.name)
        if self._by_name.get(key) == entry.id:
            del self._by_name[key]

    def _evict_overflow(self) -> None:
        if self._max_entries is None:
            return
        while len(self._by_id) > self._max_entries:
            _, oldest = self._by_id.popitem(last=False)
            self._drop_name(oldest)
            self._evictions += 1
