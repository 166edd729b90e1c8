"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Tests for the validate-then-apply import pipeline.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import pytest

from mcp_registry.index.server_index import CachedServerIndex
from mcp_registry.models.imports import (ImportRequest, ImportResultStatus,
                                         ValidationItem, ValidationResult,
                                         ValidationStatus)
from mcp_registry.models.records import (CanonicalRecord, RemoteConfig,
                                         RemoteEndpoint)
from mcp_registry.services.endpoint_spec import EndpointSpec
from mcp_registry.services.external_adaptor import (ExternalDataAdaptor,
                                                    generate_server_id)
from mcp_registry.services.import_service import (ImportPipeline,
                                                  filter_valid_selected)
from mcp_registry.services.server_operations import ServerOperationService
from mcp_registry.services.validation import RecordValidationService
from mcp_registry.storage.errors import ValidationError
from mcp_registry.storage.memory import (InMemoryBackingStore,
                                         InMemoryPartitionDirectory)


class RecordingOperations:
    """Stands in for the write service and records each call."""

    def __init__(self, fail_for: Tuple[str, ...] = ()) -> None:
        self.calls: List[Tuple[str, str, Optional[EndpointSpec]]] = []
        self._fail_for = fail_for

    def create_server(self, partition, record, endpoint_spec=None) -> str:
        self._record("create", record, endpoint_spec)
        return record.id

    def update_server(self, partition, record, endpoint_spec=None) -> str:
        self._record("update", record, endpoint_spec)
        return record.id

    def _record(self, kind, record, endpoint_spec) -> None:
        if record.name in self._fail_for:
            raise RuntimeError(f"store rejected {record.name}")
        self.calls.append((kind, record.name, endpoint_spec))


class FixedValidator:
    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        self.partitions: List[str] = []

    def validate_servers(self, partition, records) -> ValidationResult:
        self.partitions.append(partition)
        return self.result


def _record(name: str, **kwargs: Any) -> CanonicalRecord:
    return CanonicalRecord(id=generate_server_id(name), name=name, **kwargs)


def _item(name: str, *, exists: bool = False, valid: bool = True, **kwargs):
    return ValidationItem(
        record=_record(name, **kwargs),
        exists=exists,
        status=ValidationStatus.VALID if valid else ValidationStatus.INVALID,
    )


def _pipeline(operations, validator=None) -> ImportPipeline:
    return ImportPipeline(
        ExternalDataAdaptor(),
        validator or FixedValidator(ValidationResult(valid=True)),
        operations,
    )


def _json_request(**kwargs: Any) -> ImportRequest:
    data = json.dumps([{"name": "weather"}, {"name": "maps"}])
    return ImportRequest(import_type="file", data=data, **kwargs)


@pytest.mark.parametrize(
    "exists, override, expected_calls, expected_status",
    [
        (True, False, [], ImportResultStatus.SKIPPED),
        (True, True, ["update"], ImportResultStatus.SUCCESS),
        (False, False, ["create"], ImportResultStatus.SUCCESS),
        (False, True, ["create"], ImportResultStatus.SUCCESS),
    ],
)
def test_import_policy_matrix(
    exists: bool,
    override: bool,
    expected_calls: List[str],
    expected_status: ImportResultStatus,
) -> None:
    operations = RecordingOperations()

    response = _pipeline(operations).apply_items(
        "ns", [_item("weather", exists=exists)], override_existing=override
    )

    assert [call[0] for call in operations.calls] == expected_calls
    [result] = response.results
    assert result.status is expected_status
    if expected_status is ImportResultStatus.SKIPPED:
        assert result.conflict_type == "existing"
        assert response.skipped_count == 1
    assert response.success


def test_selected_servers_limit_what_is_applied() -> None:
    operations = RecordingOperations()
    items = [_item("a"), _item("b"), _item("c")]
    selected = [items[0].server_id, items[2].server_id]

    response = _pipeline(operations).apply_items(
        "ns", items, selected_ids=selected
    )

    assert response.total_count == 2
    assert [call[1] for call in operations.calls] == ["a", "c"]
    assert {r.server_name for r in response.results} == {"a", "c"}


def test_filter_keeps_only_valid_items() -> None:
    items = [_item("a"), _item("b", valid=False)]

    assert [i.server_name for i in filter_valid_selected(items)] == ["a"]
    assert filter_valid_selected(items, [items[1].server_id]) == []


def test_one_failing_record_does_not_abort_batch() -> None:
    operations = RecordingOperations(fail_for=("b",))

    response = _pipeline(operations).apply_items(
        "ns", [_item("a"), _item("b"), _item("c")]
    )

    assert response.success is False
    assert (response.success_count, response.failed_count) == (2, 1)
    failed = [r for r in response.results if r.status is ImportResultStatus.FAILED]
    assert failed[0].error_message == "Failed to import server: store rejected b"


def test_bad_endpoint_data_fails_only_that_record() -> None:
    operations = RecordingOperations()
    broken = _item(
        "broken",
        protocol="mcp-sse",
        remote_config=RemoteConfig(
            export_path="/",
            endpoints=[RemoteEndpoint("no-port", "/", "sse", "https")],
        ),
    )
    good = _item(
        "good",
        protocol="mcp-sse",
        remote_config=RemoteConfig(
            export_path="/sse",
            endpoints=[RemoteEndpoint("a.example:443", "/sse", "sse", "https")],
        ),
    )

    response = _pipeline(operations).apply_items("ns", [broken, good])

    assert response.failed_count == 1
    assert response.success_count == 1
    [(kind, name, spec)] = operations.calls
    assert (kind, name) == ("create", "good")
    assert spec == EndpointSpec(
        type="DIRECT",
        data={"address": "a.example", "port": "443", "protocol": "https"},
    )


def test_stdio_records_carry_no_endpoint_spec() -> None:
    operations = RecordingOperations()

    _pipeline(operations).apply_items(
        "ns", [_item("local", protocol="stdio", packages=[{"identifier": "x"}])]
    )

    assert operations.calls == [("create", "local", None)]


def test_validate_rejects_unknown_import_type() -> None:
    with pytest.raises(ValidationError):
        _pipeline(RecordingOperations()).validate(
            "ns", ImportRequest(import_type="yaml", data="{}")
        )


def test_validate_turns_adaptation_errors_into_a_verdict() -> None:
    result = _pipeline(RecordingOperations()).validate(
        "ns", ImportRequest(import_type="json", data="{broken")
    )

    assert result.valid is False
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Import validation failed: ")


def test_apply_aborts_when_invalid_and_not_skipping() -> None:
    validator = FixedValidator(
        ValidationResult(
            valid=False,
            errors=["Duplicate server name in batch: maps"],
            servers=[_item("weather"), _item("maps", valid=False)],
        )
    )
    operations = RecordingOperations()

    response = _pipeline(operations, validator).apply("ns", _json_request())

    assert response.success is False
    assert response.error_message == (
        "Import validation failed: Duplicate server name in batch: maps"
    )
    assert operations.calls == []


def test_apply_with_skip_invalid_imports_valid_records() -> None:
    validator = FixedValidator(
        ValidationResult(
            valid=False,
            servers=[_item("weather"), _item("maps", valid=False)],
        )
    )
    operations = RecordingOperations()

    response = _pipeline(operations, validator).apply(
        "ns", _json_request(skip_invalid=True)
    )

    assert response.success is True
    assert response.total_count == 1
    assert operations.calls[0][:2] == ("create", "weather")
    assert validator.partitions == ["ns"]


def test_validate_only_writes_nothing() -> None:
    validator = FixedValidator(
        ValidationResult(valid=True, servers=[_item("weather")], total_count=1)
    )
    operations = RecordingOperations()

    response = _pipeline(operations, validator).apply(
        "ns", _json_request(validate_only=True)
    )

    assert response.success is True
    assert response.total_count == 1
    assert operations.calls == []


def test_apply_reports_missing_fields_instead_of_raising() -> None:
    response = _pipeline(RecordingOperations()).apply(
        "ns", ImportRequest(import_type="json", data="")
    )

    assert response.success is False
    assert "data" in (response.error_message or "")


def test_end_to_end_import_is_idempotent(manual_scheduler) -> None:
    """
    Importing the same file twice creates once, then skips or updates.
    :param manual_scheduler:
    :returns:
    """

    store = InMemoryBackingStore()
    index = CachedServerIndex(
        store, InMemoryPartitionDirectory(["ns"]), scheduler=manual_scheduler
    )
    pipeline = ImportPipeline(
        ExternalDataAdaptor(),
        RecordValidationService(index),
        ServerOperationService(store, index),
    )
    data = json.dumps(
        [
            {
                "name": "weather",
                "version": "1.0.0",
                "remotes": [{"type": "sse", "url": "https://w.example/sse"}],
            },
            {"name": "maps", "packages": [{"identifier": "maps"}]},
        ]
    )

    first = pipeline.apply("ns", ImportRequest("file", data))
    second = pipeline.apply("ns", ImportRequest("file", data))
    third = pipeline.apply(
        "ns", ImportRequest("file", data, override_existing=True)
    )

    assert (first.success_count, first.skipped_count) == (2, 0)
    assert (second.success_count, second.skipped_count) == (0, 2)
    assert (third.success_count, third.skipped_count) == (2, 0)
    entry = index.get_by_name("ns", "weather")
    assert entry is not None
    assert entry.id == generate_server_id("weather")
    stored: Dict[str, Any] = json.loads(
        store.query_one(
            "ns", f"{entry.id}-mcp-versions.json", "mcp-server-versions"
        ).content
    )
    assert stored["endpoint_spec"]["data"] == {
        "address": "w.example",
        "port": "443",
        "protocol": "https",
    }
