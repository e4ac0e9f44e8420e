"""Unit tests for the tool catalog."""

import pytest
from jsonschema import Draft7Validator
from pydantic import ValidationError

from models.tool import ToolDescriptor
from services.templates import TEMPLATE_CHOICES
from services.tool_registry import CAPABILITIES, TOOLS, VERSION, ToolRegistry

EXPECTED_TOOLS = [
    "get_n8n_health",
    "list_workflows",
    "create_workflow",
    "update_workflow",
    "delete_workflow",
    "duplicate_workflow",
    "execute_workflow",
    "get_executions",
    "stop_execution",
    "retry_execution",
    "import_workflow",
    "export_workflow",
    "analyze_workflow",
    "batch_operation",
    "list_credentials",
    "create_credential",
    "test_credential",
    "list_webhooks",
    "test_webhook",
    "suggest_workflow",
    "optimize_workflow",
    "get_system_info",
    "debug_workflow",
    "get_logs",
]


class TestCatalog:
    """Tests for the static tool catalog."""

    def test_tools_in_order(self):
        assert [t.name for t in TOOLS] == EXPECTED_TOOLS

    def test_version_and_capabilities(self):
        assert VERSION == "2.0.0"
        assert "real-time-websocket" in CAPABILITIES

    @pytest.mark.parametrize("tool", TOOLS, ids=lambda t: t.name)
    def test_schemas_are_valid_draft7(self, tool):
        Draft7Validator.check_schema(tool.input_schema)

    def test_create_workflow_template_enum(self):
        schema = ToolRegistry().get("create_workflow").input_schema
        assert schema["properties"]["template"]["enum"] == list(TEMPLATE_CHOICES)
        assert schema["required"] == ["name"]

    def test_wire_format_uses_camel_case(self):
        wire = ToolRegistry().to_wire()
        assert wire[0] == {
            "name": "get_n8n_health",
            "description": "Comprehensive health check with system stats",
            "inputSchema": {"type": "object", "properties": {}},
        }

    def test_descriptors_are_frozen(self):
        with pytest.raises(ValidationError):
            TOOLS[0].name = "renamed"


class TestToolRegistry:
    """Tests for ToolRegistry lookups."""

    def test_lookup(self):
        registry = ToolRegistry()
        assert len(registry) == 24
        assert "get_logs" in registry
        assert registry.get("get_logs").name == "get_logs"
        assert registry.get("missing") is None

    def test_duplicate_names_rejected(self):
        tool = ToolDescriptor(name="a", description="", inputSchema={"type": "object"})
        with pytest.raises(ValueError, match="Duplicate tool name: a"):
            ToolRegistry([tool, tool])

    def test_descriptor_requires_object_schema(self):
        with pytest.raises(ValidationError):
            ToolDescriptor(name="a", description="", inputSchema={"type": "string"})
