# Services package

from services.dispatcher import ToolDispatcher
from services.engine_client import EngineClient, UpstreamError
from services.errors import (
    GatewayError,
    InvalidArgumentsError,
    InvalidRequestError,
    UnknownToolError,
)
from services.execution_monitor import ExecutionMonitor
from services.graph_service import GraphService
from services.log_service import LogBuffer, SizeAndTimeRotatingHandler, configure_logging
from services.settings import GatewaySettings
from services.templates import TEMPLATE_CHOICES, build_template, materialize
from services.tool_handlers import ToolHandlers
from services.tool_registry import CAPABILITIES, TOOLS, VERSION, ToolRegistry
from services.workflow_cache import (
    CacheError,
    InMemoryWorkflowCache,
    RedisWorkflowCache,
    WorkflowCache,
)

__all__ = [
    "CAPABILITIES",
    "CacheError",
    "EngineClient",
    "ExecutionMonitor",
    "GatewayError",
    "GatewaySettings",
    "GraphService",
    "InMemoryWorkflowCache",
    "InvalidArgumentsError",
    "InvalidRequestError",
    "LogBuffer",
    "RedisWorkflowCache",
    "SizeAndTimeRotatingHandler",
    "TEMPLATE_CHOICES",
    "TOOLS",
    "ToolDispatcher",
    "ToolHandlers",
    "ToolRegistry",
    "UnknownToolError",
    "UpstreamError",
    "VERSION",
    "WorkflowCache",
    "build_template",
    "configure_logging",
    "materialize",
]
