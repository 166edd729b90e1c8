"""Check adapted records against the index before they are imported."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

from mcp_registry.index.server_index import ServerIndex
from mcp_registry.models.imports import (CONFLICT_EXISTING, ValidationItem,
                                         ValidationResult, ValidationStatus)
from mcp_registry.models.records import CanonicalRecord

_LOGGER = logging.getLogger(__name__)

CONFLICT_DUPLICATE = "duplicate"


class RecordValidationService:
    """Flag blank names, in-batch duplicates and records that already exist."""

    def __init__(self, index: ServerIndex) -> None:
        self._index = index

    def validate_servers(
        self,
        partition: str,
        records: Optional[Sequence[CanonicalRecord]],
    ) -> ValidationResult:
        items: List[ValidationItem] = []
        errors: List[str] = []
        seen_names: Set[str] = set()
        duplicate_count = 0

        for record in records or []:
            item = ValidationItem(record=record)
            name = (record.name or "").strip()
            if not name:
                item.status = ValidationStatus.INVALID
                item.errors.append("Server name is required")
            elif name in seen_names:
                item.status = ValidationStatus.INVALID
                item.conflict_reason = CONFLICT_DUPLICATE
                item.errors.append(f"Duplicate server name in batch: {name}")
                duplicate_count += 1
            else:
                seen_names.add(name)
                item.exists = self._exists(partition, record)
                if item.exists:
                    item.conflict_reason = CONFLICT_EXISTING
            errors.extend(item.errors)
            items.append(item)

        valid_count = sum(1 for item in items if item.is_valid)
        invalid_count = len(items) - valid_count
        _LOGGER.debug(
            "Validated %d records for %s: valid=%d invalid=%d duplicates=%d",
            len(items),
            partition,
            valid_count,
            invalid_count,
            duplicate_count,
        )
        return ValidationResult(
            valid=invalid_count == 0,
            errors=errors,
            servers=items,
            total_count=len(items),
            valid_count=valid_count,
            invalid_count=invalid_count,
            duplicate_count=duplicate_count,
        )

    def _exists(self, partition: str, record: CanonicalRecord) -> bool:
        if record.id:
            entry = self._index.get_by_id(record.id)
            if entry is not None and entry.partition == partition:
                return True
        return self._index.get_by_name(partition, record.name) is not None
