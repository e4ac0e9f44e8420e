"""Derived statistics over execution records and workflow documents.

All functions are pure: they take snapshots, perform no I/O and never
mutate their inputs. Execution inputs may be ExecutionRecord instances or
raw engine dicts.
"""

import math
import re
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta
from typing import Any

from models.execution import ExecutionRecord
from models.workflow import WorkflowRecord

HTTP_REQUEST_TYPE = "httpRequest"
SPLIT_IN_BATCHES_TYPE = "splitInBatches"

PERIOD_PATTERN = re.compile(r"^(\d+)([mhdw])$")
PERIOD_UNITS = {"m": "minutes", "h": "hours", "d": "days", "w": "weeks"}

ExecutionLike = ExecutionRecord | dict[str, Any]
WorkflowLike = WorkflowRecord | dict[str, Any]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def as_records(executions: Iterable[ExecutionLike] | None) -> list[ExecutionRecord]:
    if not executions:
        return []
    return [
        e if isinstance(e, ExecutionRecord) else ExecutionRecord.model_validate(e)
        for e in executions
    ]


def as_workflow(workflow: WorkflowLike | None) -> WorkflowRecord:
    if workflow is None:
        return WorkflowRecord()
    if isinstance(workflow, WorkflowRecord):
        return workflow
    return WorkflowRecord.model_validate(workflow)


def success_rate(executions: Sequence[ExecutionLike] | None) -> int:
    """Percentage of executions that finished; 0 for an empty list."""
    records = as_records(executions)
    if not records:
        return 0
    successful = sum(1 for e in records if e.finished)
    return _round_half_up(successful / len(records) * 100)


def average_duration(executions: Sequence[ExecutionLike] | None) -> str:
    """Mean run time of executions with both timestamps, e.g. ``"2000ms"``."""
    durations = [
        e.duration_ms for e in as_records(executions) if e.duration_ms is not None
    ]
    if not durations:
        return "0ms"
    return f"{_round_half_up(sum(durations) / len(durations))}ms"


def peak_hour(executions: Sequence[ExecutionLike] | None) -> str:
    """Busiest UTC start hour as ``"H:00 - H+1:00"``.

    Ties go to the earliest hour.
    """
    records = as_records(executions)
    if not records:
        return "No data"
    hours = Counter(
        e.started_at.hour for e in records if e.started_at is not None
    )
    if not hours:
        return "No pattern"
    peak = max(sorted(hours), key=lambda hour: hours[hour])
    return f"{peak}:00 - {peak + 1}:00"


def complexity(workflow: WorkflowLike | None) -> str:
    """Four-tier classification keyed on node count only."""
    node_count = as_workflow(workflow).node_count
    if node_count < 5:
        return "Simple"
    if node_count < 15:
        return "Moderate"
    if node_count < 30:
        return "Complex"
    return "Very Complex"


def failed_executions(executions: Sequence[ExecutionLike] | None) -> list[ExecutionRecord]:
    """Executions that stopped without finishing."""
    return [e for e in as_records(executions) if e.stopped_at is not None and not e.finished]


def error_patterns(executions: Sequence[ExecutionLike] | None, top: int = 5) -> list[dict[str, Any]]:
    """Most common last-executed nodes among failed executions."""
    errors = failed_executions(executions)
    if not errors:
        return []
    counts = Counter(e.last_node_executed or "Unknown" for e in errors)
    return [
        {
            "node": node,
            "count": count,
            "percentage": _round_half_up(count / len(errors) * 100),
        }
        for node, count in counts.most_common(top)
    ]


def sequential_nodes(workflow: WorkflowLike | None) -> list[dict[str, Any]]:
    """Nodes whose first main output feeds exactly one node."""
    record = as_workflow(workflow)
    result = []
    for node in record.nodes:
        outputs = record.connections.get(node.get("name"), {})
        main = outputs.get("main") if isinstance(outputs, dict) else None
        if main and len(main[0] or []) == 1:
            result.append(node)
    return result


def _nodes_of_type(record: WorkflowRecord, fragment: str) -> list[dict[str, Any]]:
    return [n for n in record.nodes if fragment in (n.get("type") or "")]


def optimization_suggestions(workflow: WorkflowLike | None) -> list[dict[str, str]]:
    record = as_workflow(workflow)
    suggestions = []

    if len(sequential_nodes(record)) > 3:
        suggestions.append({
            "type": "parallelization",
            "priority": "high",
            "description": "Consider parallelizing independent operations",
            "impact": "Could reduce execution time by up to 50%",
        })

    if not record.settings.get("errorWorkflow"):
        suggestions.append({
            "type": "error-handling",
            "priority": "high",
            "description": "Add error handling workflow",
            "impact": "Prevent workflow failures from going unnoticed",
        })

    if _nodes_of_type(record, SPLIT_IN_BATCHES_TYPE):
        suggestions.append({
            "type": "batch-processing",
            "priority": "medium",
            "description": "Optimize batch sizes for better performance",
            "impact": "Improve processing speed and reduce API calls",
        })

    return suggestions


def bottlenecks(workflow: WorkflowLike | None) -> list[dict[str, Any]]:
    record = as_workflow(workflow)
    http_nodes = _nodes_of_type(record, HTTP_REQUEST_TYPE)
    if not http_nodes:
        return []
    return [{
        "node": "HTTP Request nodes",
        "nodes": [n.get("name") for n in http_nodes],
        "issue": "External API calls may slow down execution",
        "suggestion": "Consider caching responses or batch processing",
    }]


def cost_estimate(
    workflow: WorkflowLike | None,
    executions: Sequence[ExecutionLike] | None,
    window_days: float = 7.0,
) -> dict[str, Any]:
    """Extrapolate monthly volume from the executions seen in ``window_days``."""
    if window_days <= 0:
        raise ValueError("window_days must be positive")
    record = as_workflow(workflow)
    monthly = len(as_records(executions)) / window_days * 30
    return {
        "estimatedMonthlyExecutions": _round_half_up(monthly),
        "computeComplexity": complexity(record),
        "externalAPICalls": len(_nodes_of_type(record, HTTP_REQUEST_TYPE)),
        "recommendation": (
            "Consider optimizing for high-volume usage"
            if monthly > 1000
            else "Current usage is within optimal range"
        ),
    }


def data_patterns(executions: Sequence[ExecutionLike] | None) -> dict[str, Any]:
    records = as_records(executions)
    modes = Counter(e.mode for e in records if e.mode)
    return {
        "timeOfDay": peak_hour(records),
        "successTrends": success_rate(records),
        "triggerModes": dict(modes),
    }


def recommendations(
    workflow: WorkflowLike | None,
    executions: Sequence[ExecutionLike] | None,
) -> list[str]:
    record = as_workflow(workflow)
    result = []
    if success_rate(executions) < 90:
        result.append("Improve error handling to increase success rate")
    if record.node_count > 20:
        result.append("Consider breaking down into smaller, modular workflows")
    if not record.description:
        result.append("Add detailed description for better documentation")
    return result


def extract_webhooks(
    workflow: WorkflowLike | None,
    url_for: Callable[[str | None], str],
) -> list[dict[str, Any]]:
    """Describe the webhook trigger nodes of a workflow."""
    record = as_workflow(workflow)
    webhooks = []
    for node in record.webhook_nodes():
        parameters = node.get("parameters") or {}
        path = parameters.get("path")
        webhooks.append({
            "id": node.get("id"),
            "name": node.get("name"),
            "path": path,
            "method": parameters.get("httpMethod") or "GET",
            "url": url_for(path),
        })
    return webhooks


def parse_period(period: str) -> timedelta:
    """Parse a look-back window such as ``"7d"`` or ``"12h"``."""
    match = PERIOD_PATTERN.match(period or "")
    if not match:
        raise ValueError(f"Invalid period: {period!r}")
    amount, unit = match.groups()
    if int(amount) <= 0:
        raise ValueError(f"Invalid period: {period!r}")
    return timedelta(**{PERIOD_UNITS[unit]: int(amount)})


def within_period(
    executions: Sequence[ExecutionLike] | None,
    window: timedelta,
    now: datetime,
) -> list[ExecutionRecord]:
    """Executions that started inside ``window`` before ``now``."""
    cutoff = now - window
    return [
        e for e in as_records(executions)
        if e.started_at is not None and e.started_at >= cutoff
    ]
