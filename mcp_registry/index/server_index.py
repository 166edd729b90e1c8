"""Server lookup index over the partitioned backing store.

Two implementations share the search and store-lookup plumbing in
:class:`AbstractServerIndex`:

* :class:`PlainServerIndex` always asks the backing store.
* :class:`CachedServerIndex` fronts the store with a :class:`ServerIndexCache`
  (cache-aside) and refreshes it from a periodic background resync.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional, Protocol

from mcp_registry.config import (ALL_PATTERN, DEFAULT_SYNC_INTERVAL_SECONDS,
                                 RESYNC_PAGE_SIZE, SEARCH_ACCURATE,
                                 SEARCH_BLUR, SERVER_NAME_TAG_PREFIX,
                                 SERVER_VERSIONS_GROUP)
from mcp_registry.models.index import CacheStats, IndexEntry, PageResult
from mcp_registry.storage.base import (BackingStore, PartitionDirectory,
                                       RawDocument, blur_name_tag, name_tag,
                                       server_id_from_data_id,
                                       version_data_id)
from mcp_registry.utils.env import load_index_settings

from .cache import ServerIndexCache
from .scheduler import ScheduledTask, Scheduler, ThreadScheduler

_LOGGER = logging.getLogger(__name__)

SHUTDOWN_JOIN_TIMEOUT_SECONDS = 5.0


class ServerIndex(Protocol):
    """Resolve servers by id or by ``(partition, name)``."""

    def search(
        self,
        partition: str,
        name: Optional[str],
        search_mode: str,
        page_no: int,
        page_size: int,
    ) -> PageResult[IndexEntry]:
        """Search one partition by name; blur mode matches substrings."""

    def get_by_id(self, server_id: str) -> Optional[IndexEntry]:
        """Return the entry for ``server_id`` or ``None``."""

    def get_by_name(
        self, partition: Optional[str], name: str
    ) -> Optional[IndexEntry]:
        """Return the entry for ``name``; a blank partition searches all."""

    def remove_by_name(self, partition: str, name: str) -> None:
        """Invalidate any cached entry for ``(partition, name)``."""

    def remove_by_id(self, server_id: str) -> None:
        """Invalidate any cached entry for ``server_id``."""


class AbstractServerIndex:
    """Store-backed lookups shared by the plain and cached indexes."""

    def __init__(
        self,
        store: BackingStore,
        directory: PartitionDirectory,
    ) -> None:
        self._store = store
        self._directory = directory

    def ordered_partitions(self) -> List[str]:
        """Partitions in ascending name order; the cross-partition tie-break."""
        return sorted(set(self._directory.list()))

    def search(
        self,
        partition: str,
        name: Optional[str],
        search_mode: str,
        page_no: int,
        page_size: int,
    ) -> PageResult[IndexEntry]:
        page = self._search_documents(
            partition, name, search_mode, page_no, page_size
        )
        entries = [
            entry
            for entry in (self._document_to_entry(doc) for doc in page.items)
            if entry is not None
        ]
        result = PageResult.build(
            entries,
            total_count=page.total_count,
            page_number=page_no,
            page_size=page_size,
        )
        self._after_search(entries)
        return result

    def _after_search(self, entries: List[IndexEntry]) -> None:
        """Hook run after every search page."""

    def _first_by_name(self, name: str) -> Optional[IndexEntry]:
        for partition in self.ordered_partitions():
            if not partition:
                continue
            entry = self.get_by_name(partition, name)
            if entry is not None:
                return entry
        return None

    def get_by_name(
        self, partition: Optional[str], name: str
    ) -> Optional[IndexEntry]:
        raise NotImplementedError

    def _search_documents(
        self,
        partition: str,
        name: Optional[str],
        search_mode: str,
        page_no: int,
        page_size: int,
    ) -> PageResult[RawDocument]:
        server_name = name or ""
        data_id_pattern: Optional[str] = ALL_PATTERN
        if search_mode == SEARCH_BLUR or not server_name:
            tags = blur_name_tag(server_name)
        else:
            tags = name_tag(server_name)
            data_id_pattern = None
        return self._store.find_page(
            tags,
            page_no,
            page_size,
            data_id_pattern,
            SERVER_VERSIONS_GROUP,
            partition,
        )

    def _get_by_id_from_store(self, server_id: str) -> Optional[IndexEntry]:
        data_id = version_data_id(server_id)
        for partition in self.ordered_partitions():
            result = self._store.query_one(
                partition, data_id, SERVER_VERSIONS_GROUP
            )
            if result.found:
                _LOGGER.debug(
                    "Found server in store: id=%s partition=%s",
                    server_id,
                    partition,
                )
                name = _name_from_content(result.content) or server_id
                return IndexEntry(partition=partition, name=name, id=server_id)
        _LOGGER.debug("Server not found in store: id=%s", server_id)
        return None

    def _get_by_name_from_store(
        self, partition: str, name: str
    ) -> Optional[IndexEntry]:
        page = self._search_documents(partition, name, SEARCH_ACCURATE, 1, 1)
        for document in page.items:
            entry = self._document_to_entry(document)
            if entry is not None:
                _LOGGER.debug(
                    "Found server in store: name=%s:%s id=%s",
                    partition,
                    name,
                    entry.id,
                )
                return entry
        _LOGGER.debug("Server not found in store: name=%s:%s", partition, name)
        return None

    @staticmethod
    def _document_to_entry(document: RawDocument) -> Optional[IndexEntry]:
        payload = _load_content(document.content)
        server_id = payload.get("id") or server_id_from_data_id(
            document.data_id
        )
        name = payload.get("name") or _name_from_tags(document.tags)
        if not server_id or not name:
            _LOGGER.warning(
                "Skipping unreadable document %s in partition %s",
                document.data_id,
                document.partition,
            )
            return None
        return IndexEntry(
            partition=document.partition, name=str(name), id=str(server_id)
        )


class PlainServerIndex(AbstractServerIndex):
    """Index without a cache; every lookup goes to the backing store."""

    def get_by_id(self, server_id: str) -> Optional[IndexEntry]:
        if not server_id:
            return None
        return self._get_by_id_from_store(server_id)

    def get_by_name(
        self, partition: Optional[str], name: str
    ) -> Optional[IndexEntry]:
        if not name:
            return None
        if not partition:
            return self._first_by_name(name)
        return self._get_by_name_from_store(partition, name)

    def remove_by_name(self, partition: str, name: str) -> None:
        return None

    def remove_by_id(self, server_id: str) -> None:
        return None


class CachedServerIndex(AbstractServerIndex):
    """Cache-aside index with a periodic full resync."""

    def __init__(
        self,
        store: BackingStore,
        directory: PartitionDirectory,
        *,
        cache: Optional[ServerIndexCache] = None,
        cache_enabled: bool = True,
        sync_interval_seconds: float = DEFAULT_SYNC_INTERVAL_SECONDS,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        super().__init__(store, directory)
        if sync_interval_seconds <= 0:
            raise ValueError("sync_interval_seconds must be positive")
        self._cache = cache if cache is not None else ServerIndexCache()
        self._cache_enabled = cache_enabled
        self._sync_interval = sync_interval_seconds
        self._owns_scheduler = scheduler is None
        self._scheduler: Scheduler = (
            scheduler if scheduler is not None else ThreadScheduler()
        )
        self._sync_task: Optional[ScheduledTask] = None
        if cache_enabled:
            self._start_sync_task()
        _LOGGER.info(
            "CachedServerIndex initialized with cache_enabled=%s, "
            "sync_interval=%ss",
            cache_enabled,
            sync_interval_seconds,
        )

    @property
    def cache_enabled(self) -> bool:
        return self._cache_enabled

    def get_by_id(self, server_id: str) -> Optional[IndexEntry]:
        if not server_id:
            return None
        if not self._cache_enabled:
            _LOGGER.debug("Cache disabled, querying store for id %s", server_id)
            return self._get_by_id_from_store(server_id)

        cached = self._cache.get_by_id(server_id)
        if cached is not None:
            _LOGGER.debug("Cache hit for id %s", server_id)
            return cached

        _LOGGER.debug("Cache miss for id %s, querying store", server_id)
        entry = self._get_by_id_from_store(server_id)
        if entry is not None:
            self._cache.update(entry.partition, entry.name, entry.id)
        return entry

    def get_by_name(
        self, partition: Optional[str], name: str
    ) -> Optional[IndexEntry]:
        if not partition and not name:
            _LOGGER.warning(
                "Invalid parameters for get_by_name: partition=%r, name=%r",
                partition,
                name,
            )
            return None
        if not name:
            return None
        if not partition:
            return self._first_by_name(name)

        if not self._cache_enabled:
            _LOGGER.debug(
                "Cache disabled, querying store for name %s:%s", partition, name
            )
            return self._get_by_name_from_store(partition, name)

        cached = self._cache.get_by_name(partition, name)
        if cached is not None:
            _LOGGER.debug("Cache hit for name %s:%s", partition, name)
            return cached

        _LOGGER.debug("Cache miss for name %s:%s, querying store", partition, name)
        entry = self._get_by_name_from_store(partition, name)
        if entry is not None:
            self._cache.update(partition, name, entry.id)
        return entry

    def update_index(self, partition: str, name: str, server_id: str) -> None:
        if self._cache_enabled:
            self._cache.update(partition, name, server_id)

    def remove_by_name(self, partition: str, name: str) -> None:
        if not self._cache_enabled:
            _LOGGER.debug(
                "Cache disabled, ignoring removal of %s:%s", partition, name
            )
            return
        _LOGGER.debug("Removing cache entry by name %s:%s", partition, name)
        self._cache.remove_by_name(partition, name)

    def remove_by_id(self, server_id: str) -> None:
        if not self._cache_enabled:
            _LOGGER.debug("Cache disabled, ignoring removal of id %s", server_id)
            return
        _LOGGER.debug("Removing cache entry by id %s", server_id)
        self._cache.remove_by_id(server_id)

    def _after_search(self, entries: List[IndexEntry]) -> None:
        if not self._cache_enabled:
            return
        for entry in entries:
            self._cache.update(entry.partition, entry.name, entry.id)
        _LOGGER.debug("Updated cache with %d search results", len(entries))

    def cache_stats(self) -> CacheStats:
        stats = self._cache.stats()
        _LOGGER.debug(
            "Cache stats: hits=%d misses=%d evictions=%d size=%d hit_rate=%.2f%%",
            stats.hits,
            stats.misses,
            stats.evictions,
            stats.size,
            stats.hit_rate * 100,
        )
        return stats

    def clear_cache(self) -> None:
        self._cache.clear()
        _LOGGER.info("Cache cleared")

    def trigger_cache_sync(self) -> None:
        if not self._cache_enabled:
            _LOGGER.warning("Cache is disabled, manual sync ignored")
            return
        _LOGGER.info("Manual cache sync triggered")
        self.sync_cache_from_store()

    def sync_cache_from_store(self) -> None:
        """Pull a bounded page of every partition into the cache."""
        _LOGGER.debug("Syncing cache from store")
        for partition in self.ordered_partitions():
            try:
                self.search(partition, None, SEARCH_BLUR, 1, RESYNC_PAGE_SIZE)
            except Exception:  # noqa: BLE001 - one partition must not stop the rest
                _LOGGER.error(
                    "Error syncing cache for partition %s",
                    partition,
                    exc_info=True,
                )

    def shutdown(self) -> None:
        """Cancel the resync task; never raises."""
        try:
            if self._sync_task is not None:
                self._sync_task.cancel()
                self._sync_task.join(SHUTDOWN_JOIN_TIMEOUT_SECONDS)
            if self._owns_scheduler:
                self._scheduler.shutdown()
        except Exception:  # noqa: BLE001 - shutdown is best effort
            _LOGGER.warning(
                "Shutting down cache sync task failed", exc_info=True
            )

    def _start_sync_task(self) -> None:
        self._sync_task = self._scheduler.schedule_with_fixed_delay(
            self._run_sync,
            self._sync_interval,
            self._sync_interval,
        )
        _LOGGER.info(
            "Cache sync task started with interval: %ss", self._sync_interval
        )

    def _run_sync(self) -> None:
        try:
            _LOGGER.debug("Starting cache sync task")
            self.sync_cache_from_store()
            _LOGGER.debug("Cache sync task completed")
        except Exception:  # noqa: BLE001 - background failures stay in logs
            _LOGGER.error("Error during cache sync task", exc_info=True)


def _load_content(content: Optional[str]) -> dict:
    if not content:
        return {}
    try:
        payload = json.loads(content)
    except (TypeError, ValueError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _name_from_content(content: Optional[str]) -> Optional[str]:
    name = _load_content(content).get("name")
    return str(name) if name else None


def _name_from_tags(tags: tuple) -> Optional[str]:
    for tag in tags:
        if tag.startswith(SERVER_NAME_TAG_PREFIX):
            return tag[len(SERVER_NAME_TAG_PREFIX):]
    return None


def build_server_index_from_env(
    store: BackingStore,
    directory: PartitionDirectory,
    *,
    scheduler: Optional[Scheduler] = None,
) -> CachedServerIndex:
    settings = load_index_settings()
    return CachedServerIndex(
        store,
        directory,
        cache=ServerIndexCache(max_entries=settings.max_entries),
        cache_enabled=settings.cache_enabled,
        sync_interval_seconds=settings.sync_interval_seconds,
        scheduler=scheduler,
    )
