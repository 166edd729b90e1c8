"""Common repository errors used across storage adapters."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base class for storage layer failures."""


class ValidationError(RepositoryError):
    """Raised when caller input fails validation."""


class RecordNotFound(RepositoryError):
    """Raised when a write targets a server id that does not exist."""


class RecordAlreadyExists(RepositoryError):
    """Raised when a create targets a server id that is already stored."""


class StoreUnavailableError(RepositoryError):
    """Raised when the backing store cannot be reached."""
