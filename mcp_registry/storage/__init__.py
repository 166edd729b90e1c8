"""Storage layer abstractions and adapters."""

from .base import (BackingStore, PartitionDirectory, QueryResult, QueryStatus,
                   RawDocument, WritableBackingStore)
from .dynamodb import DynamoDBBackingStore, build_backing_store_from_env
from .errors import (RecordAlreadyExists, RecordNotFound, RepositoryError,
                     StoreUnavailableError, ValidationError)
from .memory import InMemoryBackingStore, InMemoryPartitionDirectory

__all__ = [
    "BackingStore",
    "PartitionDirectory",
    "QueryResult",
    "QueryStatus",
    "RawDocument",
    "WritableBackingStore",
    "DynamoDBBackingStore",
    "build_backing_store_from_env",
    "RecordAlreadyExists",
    "RecordNotFound",
    "RepositoryError",
    "StoreUnavailableError",
    "ValidationError",
    "InMemoryBackingStore",
    "InMemoryPartitionDirectory",
]
