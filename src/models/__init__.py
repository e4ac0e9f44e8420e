"""Models package."""

from models.execution import (
    ExecutionOutcome,
    ExecutionRecord,
    ExecutionResult,
    parse_timestamp,
)
from models.graph import DanglingConnection, GraphNode, WorkflowGraph
from models.tool import ToolDescriptor
from models.workflow import WRITABLE_FIELDS, WorkflowRecord, writable_document

__all__ = [
    "DanglingConnection",
    "ExecutionOutcome",
    "ExecutionRecord",
    "ExecutionResult",
    "GraphNode",
    "ToolDescriptor",
    "WRITABLE_FIELDS",
    "WorkflowGraph",
    "WorkflowRecord",
    "parse_timestamp",
    "writable_document",
]
