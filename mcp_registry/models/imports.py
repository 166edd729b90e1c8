"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Request, validation and response envelopes for the import pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from mcp_registry.storage.errors import ValidationError

from .records import CanonicalRecord, ImportType


class ValidationStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"


class ImportResultStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


CONFLICT_EXISTING = "existing"


@dataclass(frozen=True)
class ImportRequest:
    """Everything a caller supplies for one import."""

    import_type: str
    data: str
    override_existing: bool = False
    validate_only: bool = False
    skip_invalid: bool = False
    selected_servers: Optional[List[str]] = None
    cursor: Optional[str] = None
    limit: Optional[int] = None
    search: Optional[str] = None

    def check(self) -> ImportType:
        """Validate required fields and return the parsed import type."""
        if not self.import_type:
            raise ValidationError(
                "Required parameter 'importType' is not present"
            )
        if not self.data:
            raise ValidationError("Required parameter 'data' is not present")
        parsed = ImportType.parse(self.import_type)
        if parsed is None:
            raise ValidationError(
                "importType must be one of: json, url, file"
            )
        return parsed


@dataclass
class ValidationItem:
    """Per-record verdict produced during validation; never persisted."""

    record: CanonicalRecord
    exists: bool = False
    status: ValidationStatus = ValidationStatus.VALID
    conflict_reason: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    @property
    def server_id(self) -> str:
        return self.record.id

    @property
    def server_name(self) -> str:
        return self.record.name

    @property
    def is_valid(self) -> bool:
        return self.status is ValidationStatus.VALID


@dataclass
class ValidationResult:
    """Aggregate verdict plus the itemized list."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    servers: List[ValidationItem] = field(default_factory=list)
    total_count: int = 0
    valid_count: int = 0
    invalid_count: int = 0
    duplicate_count: int = 0

    @classmethod
    def failure(cls, message: str) -> "ValidationResult":
        return cls(valid=False, errors=[message])


@dataclass
class ImportResult:
    """Outcome of importing one record."""

    server_name: str
    server_id: str
    status: ImportResultStatus
    conflict_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serverName": self.server_name,
            "serverId": self.server_id,
            "status": self.status.value,
            "conflictType": self.conflict_type,
            "errorMessage": self.error_message,
        }


@dataclass
class ImportResponse:
    """Aggregated outcome of an import run."""

    success: bool
    total_count: int = 0
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    results: List[ImportResult] = field(default_factory=list)
    error_message: Optional[str] = None

    @classmethod
    def error(cls, message: str) -> "ImportResponse":
        return cls(success=False, error_message=message)

    @classmethod
    def from_results(cls, results: List[ImportResult]) -> "ImportResponse":
        success_count = sum(
            1 for item in results if item.status is ImportResultStatus.SUCCESS
        )
        failed_count = sum(
            1 for item in results if item.status is ImportResultStatus.FAILED
        )
        skipped_count = sum(
            1 for item in results if item.status is ImportResultStatus.SKIPPED
        )
        return cls(
            success=failed_count == 0,
            total_count=len(results),
            success_count=success_count,
            failed_count=failed_count,
            skipped_count=skipped_count,
            results=list(results),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "totalCount": self.total_count,
            "successCount": self.success_count,
            "failedCount": self.failed_count,
            "skippedCount": self.skipped_count,
            "results": [result.to_dict() for result in self.results],
            "errorMessage": self.error_message,
        }
