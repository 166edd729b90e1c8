"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Shared fixtures: isolated environment, manual scheduler and seeded stores.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from mcp_registry.config import SERVER_CONFIG_MARK, SERVER_VERSIONS_GROUP
from mcp_registry.models.index import PageResult
from mcp_registry.storage.base import (QueryResult, RawDocument, name_tag,
                                       version_data_id)
from mcp_registry.storage.memory import (InMemoryBackingStore,
                                         InMemoryPartitionDirectory)


@pytest.fixture(autouse=True)
def _default_runtime_env(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path_factory: pytest.TempPathFactory,
) -> None:
    """
    Keep host settings out of the tests.
    :param monkeypatch:
    :param tmp_path_factory:
    :returns:
    """

    for name in (
        "MCP_CACHE_ENABLED",
        "MCP_CACHE_SYNC_INTERVAL",
        "MCP_CACHE_MAX_ENTRIES",
        "MCP_REGISTRY_TABLE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    log_dir = tmp_path_factory.mktemp("logs")
    monkeypatch.setenv("LOG_FILE", str(Path(log_dir) / "mcp-registry.log"))


class ManualTask:
    """Scheduled task that only runs when a test calls :meth:`run`."""

    def __init__(
        self, action: Callable[[], None], initial_delay: float, delay: float
    ) -> None:
        self.action = action
        self.initial_delay = initial_delay
        self.delay = delay
        self.cancelled = False
        self.join_timeouts: List[Optional[float]] = []

    def run(self) -> None:
        if not self.cancelled:
            self.action()

    def cancel(self) -> None:
        self.cancelled = True

    def join(self, timeout: Optional[float] = None) -> None:
        self.join_timeouts.append(timeout)


class ManualScheduler:
    def __init__(self) -> None:
        self.tasks: List[ManualTask] = []
        self.shutdown_calls = 0

    def schedule_with_fixed_delay(
        self, action: Callable[[], None], initial_delay: float, delay: float
    ) -> ManualTask:
        task = ManualTask(action, initial_delay, delay)
        self.tasks.append(task)
        return task

    def shutdown(self) -> None:
        self.shutdown_calls += 1


class CountingStore(InMemoryBackingStore):
    """In-memory store that records every read it serves."""

    def __init__(self) -> None:
        super().__init__()
        self.find_calls: List[Dict[str, Any]] = []
        self.query_calls: List[Dict[str, Any]] = []

    @property
    def calls(self) -> int:
        return len(self.find_calls) + len(self.query_calls)

    def find_page(self, filter_tags, page_no, page_size, data_id_pattern,
                  group_id, partition, extra_filters=None
                  ) -> PageResult[RawDocument]:
        self.find_calls.append(
            {
                "filter_tags": filter_tags,
                "page_no": page_no,
                "page_size": page_size,
                "partition": partition,
            }
        )
        return super().find_page(
            filter_tags,
            page_no,
            page_size,
            data_id_pattern,
            group_id,
            partition,
            extra_filters,
        )

    def query_one(self, partition, doc_id, group_id) -> QueryResult:
        self.query_calls.append(
            {"partition": partition, "doc_id": doc_id, "group_id": group_id}
        )
        return super().query_one(partition, doc_id, group_id)


def server_document(
    partition: str, name: str, server_id: Optional[str] = None
) -> RawDocument:
    """
    Build the version document the registry stores for ``name``.
    :param partition:
    :param name:
    :param server_id: defaults to ``id-<name>``
    :returns:
    """

    server_id = server_id or f"id-{name}"
    content = {"id": server_id, "name": name, "status": "active"}
    return RawDocument(
        partition=partition,
        group=SERVER_VERSIONS_GROUP,
        data_id=version_data_id(server_id),
        content=json.dumps(content),
        tags=(SERVER_CONFIG_MARK, name_tag(name)),
    )


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def counting_store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def seed() -> Callable[..., RawDocument]:
    """Return a helper that stores one server document and returns it."""

    def _seed(
        store: InMemoryBackingStore,
        partition: str,
        name: str,
        server_id: Optional[str] = None,
    ) -> RawDocument:
        document = server_document(partition, name, server_id)
        store.put(document)
        return document

    return _seed


@pytest.fixture
def directory_for() -> Callable[..., InMemoryPartitionDirectory]:
    def _directory(*partitions: str) -> InMemoryPartitionDirectory:
        return InMemoryPartitionDirectory(partitions)

    return _directory
