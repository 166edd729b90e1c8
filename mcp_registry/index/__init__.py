"""Server lookup index, cache and cross-partition paging."""

from __future__ import annotations

from mcp_registry.index.cache import ServerIndexCache
from mcp_registry.index.pagination import CrossPartitionPaginator
from mcp_registry.index.scheduler import RepeatingTask, ThreadScheduler
from mcp_registry.index.server_index import (AbstractServerIndex,
                                             CachedServerIndex,
                                             PlainServerIndex, ServerIndex,
                                             build_server_index_from_env)

__all__ = [
    "AbstractServerIndex",
    "CachedServerIndex",
    "CrossPartitionPaginator",
    "PlainServerIndex",
    "RepeatingTask",
    "ServerIndex",
    "ServerIndexCache",
    "ThreadScheduler",
    "build_server_index_from_env",
]
