"""Domain model package exports."""

from .imports import (CONFLICT_EXISTING, ImportRequest, ImportResponse,
                      ImportResult, ImportResultStatus, ValidationItem,
                      ValidationResult, ValidationStatus)
from .index import CacheStats, IndexEntry, PageResult, pages_for
from .records import (CanonicalRecord, ImportType, RemoteConfig,
                      RemoteEndpoint, ServerStatus, VersionDetail)
from .registry import (OfficialMeta, RegistryRemote, RegistryServerDetail,
                       RegistryServerList, ServerResponse)

__all__ = [
    "CONFLICT_EXISTING",
    "CacheStats",
    "CanonicalRecord",
    "ImportRequest",
    "ImportResponse",
    "ImportResult",
    "ImportResultStatus",
    "ImportType",
    "IndexEntry",
    "OfficialMeta",
    "PageResult",
    "RegistryRemote",
    "RegistryServerDetail",
    "RegistryServerList",
    "RemoteConfig",
    "RemoteEndpoint",
    "ServerResponse",
    "ServerStatus",
    "ValidationItem",
    "ValidationResult",
    "ValidationStatus",
    "VersionDetail",
    "pages_for",
]
