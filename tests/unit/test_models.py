"""Unit tests for execution and workflow models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from models.execution import ExecutionOutcome, ExecutionRecord, ExecutionResult, parse_timestamp
from models.workflow import WorkflowRecord, writable_document


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_iso_with_z_suffix(self):
        assert parse_timestamp("2024-01-01T10:00:00.500Z") == datetime(
            2024, 1, 1, 10, 0, 0, 500000, tzinfo=timezone.utc
        )

    def test_epoch_milliseconds(self):
        assert parse_timestamp(1704103200000) == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-01-01T10:00:00").tzinfo == timezone.utc

    def test_empty_is_none(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    @pytest.mark.parametrize("value", ["yesterday", True, [1]])
    def test_invalid_values(self, value):
        with pytest.raises(ValueError, match="Invalid timestamp"):
            parse_timestamp(value)


class TestExecutionRecord:
    """Tests for ExecutionRecord."""

    def test_duration_from_mixed_timestamps(self):
        record = ExecutionRecord.model_validate({
            "id": 5,
            "finished": True,
            "startedAt": "2024-01-01T10:00:00Z",
            "stoppedAt": 1704103201250,
        })

        assert record.id == "5"
        assert record.duration_ms == 1250
        assert record.is_terminal

    def test_running_has_no_duration(self):
        record = ExecutionRecord.model_validate({"startedAt": "2024-01-01T10:00:00Z"})

        assert record.duration_ms is None
        assert not record.is_terminal

    def test_last_node_executed(self):
        record = ExecutionRecord.model_validate(
            {"data": {"resultData": {"lastNodeExecuted": "Fetch"}}}
        )
        assert record.last_node_executed == "Fetch"

    def test_extra_fields_kept_on_wire(self):
        record = ExecutionRecord.model_validate({"id": "1", "retryOf": "0"})

        wire = record.to_wire()

        assert wire["retryOf"] == "0"
        assert "startedAt" in wire

    def test_invalid_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            ExecutionRecord.model_validate({"startedAt": "soon"})


class TestExecutionResult:
    """Tests for ExecutionResult response shapes."""

    def test_failure_shape(self):
        result = ExecutionResult(
            outcome=ExecutionOutcome.FAILURE,
            execution_id="1",
            message="Workflow execution failed",
            duration_ms=10,
        )

        assert result.to_response() == {
            "success": False,
            "outcome": "failure",
            "message": "Workflow execution failed",
            "executionId": "1",
            "duration": 10,
            "data": None,
        }

    def test_timeout_shape(self):
        result = ExecutionResult(
            outcome=ExecutionOutcome.TIMEOUT,
            execution_id="1",
            message="Execution timed out",
            hint="check later",
        )

        assert result.to_response() == {
            "success": False,
            "outcome": "timeout",
            "message": "Execution timed out",
            "executionId": "1",
            "hint": "check later",
        }


class TestWorkflowRecord:
    """Tests for WorkflowRecord and writable_document."""

    def test_tag_names_from_objects_and_strings(self):
        record = WorkflowRecord.model_validate({"id": 3, "tags": [{"id": "a", "name": "ops"}, "sales"]})

        assert record.id == "3"
        assert record.tag_names == {"ops", "sales"}

    def test_null_collections(self):
        record = WorkflowRecord.model_validate({"nodes": None, "connections": None, "tags": None})

        assert record.node_count == 0
        assert record.connections == {}

    def test_writable_document(self):
        payload = writable_document({
            "id": "1",
            "name": "A",
            "active": True,
            "nodes": [{"name": "Start"}],
            "settings": None,
            "tags": [],
        })

        assert payload == {"name": "A", "nodes": [{"name": "Start"}], "connections": {}, "settings": {}}
