"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Tests for the cache-aside server index.
"""

from __future__ import annotations

import logging

import pytest

from mcp_registry.config import SEARCH_ACCURATE, SEARCH_BLUR
from mcp_registry.index.cache import ServerIndexCache
from mcp_registry.index.server_index import (CachedServerIndex,
                                             PlainServerIndex,
                                             build_server_index_from_env)
from mcp_registry.models.index import IndexEntry
from mcp_registry.storage.errors import StoreUnavailableError
from mcp_registry.storage.memory import InMemoryPartitionDirectory


def _cached(store, partitions, scheduler, **kwargs) -> CachedServerIndex:
    return CachedServerIndex(
        store,
        InMemoryPartitionDirectory(partitions),
        scheduler=scheduler,
        **kwargs,
    )


def test_update_index_answers_lookups_without_store_calls(
    counting_store, manual_scheduler
) -> None:
    """
    An explicit upsert is served from memory until it is invalidated.
    :param counting_store:
    :param manual_scheduler:
    :returns:
    """

    index = _cached(counting_store, ["ns"], manual_scheduler)

    index.update_index("ns", "weather", "id-1")

    entry = index.get_by_name("ns", "weather")
    assert entry == IndexEntry(partition="ns", name="weather", id="id-1")
    assert index.get_by_id("id-1") == entry
    assert counting_store.calls == 0
    assert index.cache_stats().hits == 2

    index.remove_by_name("ns", "weather")
    assert index.get_by_name("ns", "weather") is None
    assert counting_store.calls == 1


def test_miss_reads_through_and_writes_cache(
    counting_store, manual_scheduler, seed
) -> None:
    seed(counting_store, "ns", "weather", "id-1")
    index = _cached(counting_store, ["ns"], manual_scheduler)

    first = index.get_by_name("ns", "weather")
    second = index.get_by_name("ns", "weather")

    assert first == second == IndexEntry("ns", "weather", "id-1")
    assert len(counting_store.find_calls) == 1
    stats = index.cache_stats()
    assert (stats.hits, stats.misses, stats.size) == (1, 1, 1)


def test_get_by_id_scans_partitions_in_sorted_order(
    counting_store, manual_scheduler, seed
) -> None:
    seed(counting_store, "b", "weather", "id-1")
    index = _cached(counting_store, ["c", "b", "a"], manual_scheduler)

    entry = index.get_by_id("id-1")

    assert entry == IndexEntry("b", "weather", "id-1")
    assert [call["partition"] for call in counting_store.query_calls] == [
        "a",
        "b",
    ]
    assert index.get_by_id("id-1") == entry
    assert len(counting_store.query_calls) == 2


def test_blank_partition_returns_first_sorted_match(
    counting_store, manual_scheduler, seed
) -> None:
    seed(counting_store, "zeta", "weather", "id-z")
    seed(counting_store, "alpha", "weather", "id-a")
    index = _cached(counting_store, ["zeta", "alpha"], manual_scheduler)

    entry = index.get_by_name("", "weather")

    assert entry is not None
    assert entry.partition == "alpha"
    assert entry.id == "id-a"


def test_get_by_name_rejects_blank_arguments(
    counting_store, manual_scheduler, caplog: pytest.LogCaptureFixture
) -> None:
    index = _cached(counting_store, ["ns"], manual_scheduler)

    with caplog.at_level(logging.WARNING):
        assert index.get_by_name("", "") is None
    assert index.get_by_name("ns", "") is None
    assert index.get_by_id("") is None
    assert counting_store.calls == 0
    assert any("Invalid parameters" in msg for msg in caplog.messages)


def test_cache_disabled_matches_store_and_leaves_stats_untouched(
    counting_store, manual_scheduler, seed
) -> None:
    seed(counting_store, "a", "weather", "id-1")
    seed(counting_store, "b", "maps", "id-2")
    cached = _cached(
        counting_store, ["a", "b"], manual_scheduler, cache_enabled=False
    )
    plain = PlainServerIndex(counting_store, InMemoryPartitionDirectory(["a", "b"]))

    for partition, name in [("a", "weather"), ("b", "maps"), ("a", "maps")]:
        assert cached.get_by_name(partition, name) == plain.get_by_name(
            partition, name
        )
    for server_id in ["id-1", "id-2", "missing"]:
        assert cached.get_by_id(server_id) == plain.get_by_id(server_id)

    cached.update_index("a", "weather", "other")
    assert cached.get_by_name("a", "weather").id == "id-1"
    stats = cached.cache_stats()
    assert (stats.hits, stats.misses, stats.size) == (0, 0, 0)
    assert manual_scheduler.tasks == []


def test_search_populates_cache_with_each_entry(
    counting_store, manual_scheduler, seed
) -> None:
    seed(counting_store, "ns", "weather-eu", "id-1")
    seed(counting_store, "ns", "weather-us", "id-2")
    seed(counting_store, "ns", "maps", "id-3")
    index = _cached(counting_store, ["ns"], manual_scheduler)

    page = index.search("ns", "weather", SEARCH_BLUR, 1, 10)

    assert [entry.name for entry in page.items] == ["weather-eu", "weather-us"]
    assert page.total_count == 2
    assert page.pages_available == 1
    reads = counting_store.calls
    assert index.get_by_name("ns", "weather-us").id == "id-2"
    assert counting_store.calls == reads


def test_accurate_search_matches_exact_name_only(
    counting_store, manual_scheduler, seed
) -> None:
    seed(counting_store, "ns", "weather", "id-1")
    seed(counting_store, "ns", "weather-us", "id-2")
    index = _cached(counting_store, ["ns"], manual_scheduler)

    page = index.search("ns", "weather", SEARCH_ACCURATE, 1, 10)

    assert [entry.id for entry in page.items] == ["id-1"]


def test_resync_task_starts_and_refreshes_every_partition(
    counting_store, manual_scheduler, seed
) -> None:
    index = _cached(
        counting_store, ["a", "b"], manual_scheduler, sync_interval_seconds=30
    )
    [task] = manual_scheduler.tasks
    assert task.initial_delay == 30
    assert task.delay == 30

    seed(counting_store, "a", "weather", "id-1")
    seed(counting_store, "b", "maps", "id-2")
    task.run()

    assert index.cache_stats().size == 2
    reads = counting_store.calls
    assert index.get_by_id("id-2") == IndexEntry("b", "maps", "id-2")
    assert counting_store.calls == reads


def test_resync_continues_after_partition_failure(
    counting_store, manual_scheduler, seed, monkeypatch: pytest.MonkeyPatch
) -> None:
    seed(counting_store, "good", "weather", "id-1")
    index = _cached(counting_store, ["bad", "good"], manual_scheduler)
    original = counting_store.find_page

    def flaky_find_page(filter_tags, page_no, page_size, data_id_pattern,
                        group_id, partition, extra_filters=None):
        if partition == "bad":
            raise StoreUnavailableError("partition offline")
        return original(filter_tags, page_no, page_size, data_id_pattern,
                        group_id, partition, extra_filters)

    monkeypatch.setattr(counting_store, "find_page", flaky_find_page)

    index.sync_cache_from_store()

    assert index.cache_stats().size == 1


def test_point_lookup_store_errors_propagate(
    counting_store, manual_scheduler, monkeypatch: pytest.MonkeyPatch
) -> None:
    index = _cached(counting_store, ["ns"], manual_scheduler)

    def broken(*args, **kwargs):
        raise StoreUnavailableError("down")

    monkeypatch.setattr(counting_store, "query_one", broken)

    with pytest.raises(StoreUnavailableError):
        index.get_by_id("id-1")


def test_manual_sync_ignored_when_cache_disabled(
    counting_store, manual_scheduler, seed
) -> None:
    seed(counting_store, "ns", "weather", "id-1")
    index = _cached(
        counting_store, ["ns"], manual_scheduler, cache_enabled=False
    )

    index.trigger_cache_sync()

    assert counting_store.calls == 0


def test_clear_cache_forces_store_reads(
    counting_store, manual_scheduler, seed
) -> None:
    seed(counting_store, "ns", "weather", "id-1")
    index = _cached(counting_store, ["ns"], manual_scheduler)
    index.trigger_cache_sync()
    reads = counting_store.calls

    index.clear_cache()
    index.get_by_id("id-1")

    assert counting_store.calls == reads + 1


def test_shutdown_cancels_task_and_tolerates_repeat(
    counting_store, manual_scheduler
) -> None:
    index = _cached(counting_store, ["ns"], manual_scheduler)

    index.shutdown()
    index.shutdown()

    [task] = manual_scheduler.tasks
    assert task.cancelled
    assert manual_scheduler.shutdown_calls == 0


def test_shutdown_swallows_scheduler_errors(counting_store) -> None:
    class BrokenTask:
        def cancel(self) -> None:
            raise RuntimeError("already stopped")

        def join(self, timeout=None) -> None:
            return None

    class BrokenScheduler:
        def schedule_with_fixed_delay(self, action, initial_delay, delay):
            return BrokenTask()

        def shutdown(self) -> None:
            raise RuntimeError("already stopped")

    index = CachedServerIndex(
        counting_store,
        InMemoryPartitionDirectory(["ns"]),
        scheduler=BrokenScheduler(),
    )

    index.shutdown()


def test_owned_scheduler_is_shut_down(counting_store) -> None:
    index = CachedServerIndex(
        counting_store,
        InMemoryPartitionDirectory(["ns"]),
        sync_interval_seconds=3600,
    )
    scheduler = index._scheduler

    index.shutdown()

    assert scheduler.is_shutdown


def test_bounded_cache_evicts_oldest_entry(
    counting_store, manual_scheduler
) -> None:
    index = _cached(
        counting_store,
        ["ns"],
        manual_scheduler,
        cache=ServerIndexCache(max_entries=2),
    )

    index.update_index("ns", "a", "id-a")
    index.update_index("ns", "b", "id-b")
    index.update_index("ns", "c", "id-c")

    stats = index.cache_stats()
    assert stats.size == 2
    assert stats.evictions == 1


def test_build_from_env_reads_settings(
    counting_store, manual_scheduler, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("MCP_CACHE_ENABLED", "false")
    monkeypatch.setenv("MCP_CACHE_SYNC_INTERVAL", "12")

    index = build_server_index_from_env(
        counting_store,
        InMemoryPartitionDirectory(["ns"]),
        scheduler=manual_scheduler,
    )

    assert index.cache_enabled is False
    assert manual_scheduler.tasks == []


def test_build_from_env_bounds_cache_size(
    counting_store, manual_scheduler, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("MCP_CACHE_MAX_ENTRIES", "2")

    index = build_server_index_from_env(
        counting_store,
        InMemoryPartitionDirectory(["ns"]),
        scheduler=manual_scheduler,
    )
    index.update_index("ns", "a", "id-a")
    index.update_index("ns", "b", "id-b")
    index.update_index("ns", "c", "id-c")

    stats = index.cache_stats()
    assert stats.size == 2
    assert stats.evictions == 1


def test_rejects_non_positive_interval(counting_store, manual_scheduler) -> None:
    with pytest.raises(ValueError):
        _cached(
            counting_store, ["ns"], manual_scheduler, sync_interval_seconds=0
        )
