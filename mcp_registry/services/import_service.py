"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Two-phase (validate, then apply) import of external server descriptions.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from mcp_registry.models.imports import (CONFLICT_EXISTING, ImportRequest,
                                         ImportResponse, ImportResult,
                                         ImportResultStatus, ValidationItem,
                                         ValidationResult)
from mcp_registry.models.records import ImportType
from mcp_registry.services.endpoint_spec import endpoint_spec_for
from mcp_registry.services.external_adaptor import ExternalDataAdaptor
from mcp_registry.services.server_operations import ServerOperationService
from mcp_registry.services.validation import RecordValidationService
from mcp_registry.storage.errors import ValidationError

_LOGGER = logging.getLogger(__name__)


class ImportPipeline:
    """Adapt, validate and persist external server descriptions.

    :meth:`validate` never raises past a bad import type: adaptation and
    validation failures come back as an invalid :class:`ValidationResult`.
    :meth:`apply` commits each record on its own, so one failing record is
    reported as ``failed`` without stopping the rest of the batch.
    """

    def __init__(
        self,
        adaptor: ExternalDataAdaptor,
        validator: RecordValidationService,
        operations: ServerOperationService,
    ) -> None:
        self._adaptor = adaptor
        self._validator = validator
        self._operations = operations

    def validate(
        self, partition: str, request: ImportRequest
    ) -> ValidationResult:
        import_type = ImportType.parse(request.import_type)
        if import_type is None:
            raise ValidationError(
                f"Invalid import type: {request.import_type}"
            )
        try:
            records = self._adaptor.adapt(
                import_type,
                request.data,
                cursor=request.cursor,
                limit=request.limit,
                search=request.search,
            )
            return self._validator.validate_servers(partition, records)
        except Exception as exc:  # noqa: BLE001 - reported as a verdict
            _LOGGER.warning("Import validation failed: %s", exc)
            return ValidationResult.failure(
                f"Import validation failed: {exc}"
            )

    def apply(self, partition: str, request: ImportRequest) -> ImportResponse:
        try:
            request.check()
            validation = self.validate(partition, request)
            if request.validate_only:
                return _validation_only_response(validation)
            if not (validation.valid or request.skip_invalid):
                return ImportResponse.error(
                    "Import validation failed: " + ", ".join(validation.errors)
                )
            return self.apply_items(
                partition,
                validation.servers,
                override_existing=request.override_existing,
                selected_ids=request.selected_servers,
            )
        except Exception as exc:  # noqa: BLE001 - surfaced in the response
            _LOGGER.error("Import execution failed", exc_info=True)
            return ImportResponse.error(f"Import execution failed: {exc}")

    def apply_items(
        self,
        partition: str,
        items: Sequence[ValidationItem],
        *,
        override_existing: bool = False,
        selected_ids: Optional[Iterable[str]] = None,
    ) -> ImportResponse:
        selected = filter_valid_selected(items, selected_ids)
        results = [
            self._import_one(partition, item, override_existing)
            for item in selected
        ]
        response = ImportResponse.from_results(results)
        _LOGGER.info(
            "Imported into %s: total=%d success=%d failed=%d skipped=%d",
            partition,
            response.total_count,
            response.success_count,
            response.failed_count,
            response.skipped_count,
        )
        return response

    def _import_one(
        self,
        partition: str,
        item: ValidationItem,
        override_existing: bool,
    ) -> ImportResult:
        result = ImportResult(
            server_name=item.server_name,
            server_id=item.server_id,
            status=ImportResultStatus.SUCCESS,
        )
        if item.exists and not override_existing:
            result.status = ImportResultStatus.SKIPPED
            result.conflict_type = CONFLICT_EXISTING
            return result
        try:
            endpoint_spec = endpoint_spec_for(item.record)
            if item.exists:
                self._operations.update_server(
                    partition, item.record, endpoint_spec
                )
            else:
                self._operations.create_server(
                    partition, item.record, endpoint_spec
                )
        except Exception as exc:  # noqa: BLE001 - isolated to this record
            _LOGGER.warning(
                "Failed to import server %s: %s", item.server_name, exc
            )
            result.status = ImportResultStatus.FAILED
            result.error_message = f"Failed to import server: {exc}"
        return result


def filter_valid_selected(
    items: Sequence[ValidationItem],
    selected_ids: Optional[Iterable[str]] = None,
) -> List[ValidationItem]:
    """Keep valid items, narrowed to ``selected_ids`` when any are given."""
    selection = set(selected_ids or ())
    return [
        item
        for item in items
        if item.is_valid and (not selection or item.server_id in selection)
    ]


def _validation_only_response(validation: ValidationResult) -> ImportResponse:
    if validation.valid:
        return ImportResponse(success=True, total_count=validation.total_count)
    response = ImportResponse.error(
        "Import validation failed: " + ", ".join(validation.errors)
    )
    response.total_count = validation.total_count
    return response
