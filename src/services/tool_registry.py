"""Static catalog of the tools exposed over the MCP surface."""

from collections.abc import Iterable, Iterator

from models.tool import ToolDescriptor
from services.templates import TEMPLATE_CHOICES

VERSION = "2.0.0"

CAPABILITIES = (
    "workflow-management",
    "execution-monitoring",
    "credential-management",
    "analytics",
    "ai-suggestions",
    "batch-operations",
    "webhook-management",
    "real-time-websocket",
)

_EMPTY = {"type": "object", "properties": {}}
_STRING = {"type": "string"}
_STRING_LIST = {"type": "array", "items": {"type": "string"}}


def _schema(properties: dict, required: tuple[str, ...] = ()) -> dict:
    schema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = list(required)
    return schema


TOOLS: tuple[ToolDescriptor, ...] = tuple(
    ToolDescriptor(name=name, description=description, inputSchema=schema)
    for name, description, schema in [
        # Core workflow management
        (
            "get_n8n_health",
            "Comprehensive health check with system stats",
            _EMPTY,
        ),
        (
            "list_workflows",
            "List workflows with filtering, sorting, and statistics",
            _schema({
                "active": {"type": "boolean", "description": "Filter by active status"},
                "tags": _STRING_LIST,
                "search": {"type": "string", "description": "Search in workflow names"},
                "limit": {"type": "integer", "minimum": 1, "default": 50},
                "includeStats": {"type": "boolean", "default": True},
            }),
        ),
        (
            "create_workflow",
            "Create sophisticated workflows from templates or custom definitions",
            _schema({
                "name": {"type": "string", "minLength": 1},
                "description": _STRING,
                "template": {"type": "string", "enum": list(TEMPLATE_CHOICES)},
                "configuration": {"type": "object"},
                "tags": _STRING_LIST,
                "settings": {"type": "object"},
            }, required=("name",)),
        ),
        (
            "update_workflow",
            "Update existing workflow configuration",
            _schema({
                "workflowId": _STRING,
                "updates": {"type": "object"},
                "version": {"type": "boolean", "default": True},
            }, required=("workflowId", "updates")),
        ),
        (
            "delete_workflow",
            "Delete workflow with optional backup",
            _schema({
                "workflowId": _STRING,
                "createBackup": {"type": "boolean", "default": True},
            }, required=("workflowId",)),
        ),
        (
            "duplicate_workflow",
            "Clone a workflow with modifications",
            _schema({
                "workflowId": _STRING,
                "newName": {"type": "string", "minLength": 1},
                "modifications": {"type": "object"},
            }, required=("workflowId", "newName")),
        ),
        # Execution and monitoring
        (
            "execute_workflow",
            "Execute workflow with data and monitoring",
            _schema({
                "workflowId": _STRING,
                "data": {"type": "object"},
                "mode": {"type": "string", "enum": ["test", "production"], "default": "production"},
                "waitForCompletion": {"type": "boolean", "default": True},
            }, required=("workflowId",)),
        ),
        (
            "get_executions",
            "Get workflow execution history with detailed metrics",
            _schema({
                "workflowId": _STRING,
                "status": {"type": "string", "enum": ["success", "error", "running", "all"]},
                "limit": {"type": "integer", "minimum": 1, "default": 20},
                "includeData": {"type": "boolean", "default": False},
            }),
        ),
        (
            "stop_execution",
            "Stop a running workflow execution",
            _schema({"executionId": _STRING}, required=("executionId",)),
        ),
        (
            "retry_execution",
            "Retry a failed execution",
            _schema({
                "executionId": _STRING,
                "fromNode": {"type": "string", "description": "Retry from specific node"},
            }, required=("executionId",)),
        ),
        # Advanced features
        (
            "import_workflow",
            "Import workflow from JSON, URL, or template library",
            _schema({
                "source": {"type": "string", "enum": ["json", "url", "library"]},
                "data": _STRING,
                "name": _STRING,
                "activate": {"type": "boolean", "default": False},
            }, required=("source", "data")),
        ),
        (
            "export_workflow",
            "Export workflow in various formats",
            _schema({
                "workflowId": _STRING,
                "format": {"type": "string", "enum": ["json", "yaml", "markdown"], "default": "json"},
                "includeCredentials": {"type": "boolean", "default": False},
            }, required=("workflowId",)),
        ),
        (
            "analyze_workflow",
            "Get detailed analytics and optimization suggestions",
            _schema({
                "workflowId": _STRING,
                "period": {"type": "string", "pattern": "^[0-9]+[mhdw]$", "default": "7d"},
            }, required=("workflowId",)),
        ),
        (
            "batch_operation",
            "Perform operations on multiple workflows",
            _schema({
                "operation": {
                    "type": "string",
                    "enum": ["activate", "deactivate", "delete", "tag", "export"],
                },
                "workflowIds": {"type": "array", "items": {"type": "string"}, "minItems": 1},
                "parameters": {"type": "object"},
            }, required=("operation", "workflowIds")),
        ),
        # Credentials and connections
        (
            "list_credentials",
            "List all configured credentials",
            _schema({"type": _STRING}),
        ),
        (
            "create_credential",
            "Create new credential configuration",
            _schema({
                "name": _STRING,
                "type": _STRING,
                "data": {"type": "object"},
            }, required=("name", "type", "data")),
        ),
        (
            "test_credential",
            "Test credential connectivity",
            _schema({"credentialId": _STRING}, required=("credentialId",)),
        ),
        # Webhook management
        (
            "list_webhooks",
            "List all active webhooks",
            _schema({"workflowId": _STRING}),
        ),
        (
            "test_webhook",
            "Send test data to webhook",
            _schema({
                "webhookUrl": {"type": "string", "pattern": "^https?://"},
                "testData": {"type": "object"},
            }, required=("webhookUrl",)),
        ),
        # AI and automation helpers
        (
            "suggest_workflow",
            "AI-powered workflow suggestions based on use case",
            _schema({
                "useCase": _STRING,
                "currentTools": _STRING_LIST,
                "businessGoals": _STRING_LIST,
            }, required=("useCase",)),
        ),
        (
            "optimize_workflow",
            "Get optimization suggestions for existing workflow",
            _schema({"workflowId": _STRING}, required=("workflowId",)),
        ),
        # System and debug
        (
            "get_system_info",
            "Get detailed system information and limits",
            _EMPTY,
        ),
        (
            "debug_workflow",
            "Debug workflow with step-by-step execution",
            _schema({
                "workflowId": _STRING,
                "breakpoints": _STRING_LIST,
            }, required=("workflowId",)),
        ),
        (
            "get_logs",
            "Get system and workflow logs",
            _schema({
                "type": {"type": "string", "enum": ["system", "workflow", "execution"]},
                "id": _STRING,
                "lines": {"type": "integer", "minimum": 1, "default": 100},
            }),
        ),
    ]
)


class ToolRegistry:
    """Ordered, read-only lookup of tool descriptors by name."""

    def __init__(self, tools: Iterable[ToolDescriptor] = TOOLS):
        self._tools: dict[str, ToolDescriptor] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def get(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def to_wire(self) -> list[dict]:
        return [tool.to_wire() for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
