"""Tool implementations backed by the n8n public REST API."""

import asyncio
import copy
import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import yaml

from models.execution import ExecutionRecord
from models.workflow import WorkflowRecord, writable_document
from services import aggregation
from services.engine_client import EngineClient, UpstreamError
from services.errors import InvalidArgumentsError
from services.execution_monitor import ExecutionMonitor
from services.graph_service import GraphService
from services.log_service import LogBuffer
from services.templates import BUILDERS, build_template, materialize
from services.tool_registry import CAPABILITIES, VERSION, ToolRegistry
from services.workflow_cache import CacheError, WorkflowCache

logger = logging.getLogger(__name__)

# Upper bound on pages followed when listing a cursor-paginated collection.
MAX_PAGES = 100

SYSTEM_LIMITS = {
    "maxWorkflows": "unlimited",
    "maxExecutionsPerDay": "unlimited",
    "maxNodesPerWorkflow": 1000,
    "webhookTimeout": "300s",
}

CREATE_NEXT_STEPS = [
    "Test the workflow with sample data",
    "Configure credentials if needed",
    "Activate when ready",
    "Monitor execution logs",
]

EMPTY_LIST_NEXT_STEPS = [
    "Create your first workflow with create_workflow",
    "Import existing workflows with import_workflow",
    "Get workflow suggestions with suggest_workflow",
]

HEALTH_TROUBLESHOOTING = [
    "Check n8n container is running",
    "Verify API key is correct",
    "Ensure network connectivity",
]

WORKFLOW_SUGGESTIONS = [
    {
        "name": "Content Multiplication Engine",
        "description": "Transform single pieces of content into 5+ formats automatically",
        "match": 85,
        "template": "content-multiplication-engine",
        "benefits": [
            "10x content output with same effort",
            "Consistent messaging across platforms",
            "Automated scheduling and posting",
        ],
    },
    {
        "name": "Audience Intelligence System",
        "description": "Monitor and analyze audience behavior across platforms",
        "match": 78,
        "template": "audience-intelligence-system",
        "benefits": [
            "Real-time trend identification",
            "Automated insight generation",
            "Predictive content recommendations",
        ],
    },
    {
        "name": "Lead Nurturing Pipeline",
        "description": "Automatically qualify and nurture leads through your funnel",
        "match": 72,
        "template": "lead-qualification-pipeline",
        "benefits": [
            "Automated lead scoring",
            "Personalized follow-up sequences",
            "Integration with CRM systems",
        ],
    },
]

IMPLEMENTATION_PLAN = [
    "Start with the highest-match template",
    "Customize for your specific tools and workflows",
    "Test with small data sets first",
    "Scale up gradually while monitoring performance",
]

BATCH_OPERATIONS = ("activate", "deactivate", "delete", "tag", "export")


def _items(payload: Any) -> list[dict[str, Any]]:
    """Unwrap the engine's ``{"data": [...]}`` list envelope."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return payload.get("data") or []
    return []


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ToolHandlers:
    """One async handler per registered tool.

    Every handler takes the validated arguments dict and returns a
    JSON-serializable result. Upstream failures propagate as UpstreamError
    unless the handler documents a degraded result instead.
    """

    def __init__(
        self,
        client: EngineClient,
        monitor: ExecutionMonitor,
        cache: WorkflowCache,
        registry: ToolRegistry,
        log_buffer: LogBuffer | None = None,
        graph_service: GraphService | None = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        """Initialize handlers with the engine client and supporting services."""
        if client is None:
            raise ValueError("client is required")
        if monitor is None:
            raise ValueError("monitor is required")
        if cache is None:
            raise ValueError("cache is required")
        if registry is None:
            raise ValueError("registry is required")

        self._client = client
        self._monitor = monitor
        self._cache = cache
        self._registry = registry
        self._log_buffer = log_buffer
        self._graph_service = graph_service or GraphService()
        self._now = now

    def as_mapping(self) -> dict[str, Callable]:
        """Map every registered tool name to its bound handler."""
        handlers = {}
        for name in self._registry.names():
            handler = getattr(self, name, None)
            if handler is None:
                raise ValueError(f"No handler implemented for tool: {name}")
            handlers[name] = handler
        return handlers

    # Core workflow management

    async def get_n8n_health(self, arguments: dict[str, Any]) -> dict[str, Any]:
        workflows, executions = await asyncio.gather(
            self._best_effort("/workflows"),
            self._best_effort("/executions", params={"limit": 10}),
        )

        if workflows is None and executions is None:
            return {
                "status": "unhealthy",
                "message": "n8n health check failed",
                "baseUrl": self._client.base_url,
                "apiConnected": False,
                "error": "n8n API is unreachable",
                "troubleshooting": HEALTH_TROUBLESHOOTING,
            }

        workflows = workflows or []
        executions = executions or []
        return {
            "status": "healthy",
            "message": "n8n health check passed",
            "baseUrl": self._client.base_url,
            "apiConnected": True,
            "stats": {
                "totalWorkflows": len(workflows),
                "activeWorkflows": sum(1 for w in workflows if w.get("active")),
                "recentExecutions": len(executions),
                "successRate": f"{aggregation.success_rate(executions)}%",
            },
            "performance": {
                "avgExecutionTime": aggregation.average_duration(executions),
                "peakHours": aggregation.peak_hour(executions),
            },
        }

    async def list_workflows(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Filter the engine's workflows, then attach per-workflow stats."""
        results = await self._collect("/workflows")

        if "active" in arguments:
            results = [w for w in results if bool(w.get("active")) == arguments["active"]]

        tags = set(arguments.get("tags") or [])
        if tags:
            results = [
                w for w in results
                if WorkflowRecord.model_validate(w).tag_names & tags
            ]

        search = (arguments.get("search") or "").lower()
        if search:
            results = [
                w for w in results
                if search in (w.get("name") or "").lower()
                or search in (w.get("description") or "").lower()
            ]

        results = results[:int(arguments.get("limit", 50))]

        if arguments.get("includeStats", True):
            stats = await asyncio.gather(*(self._workflow_stats(w.get("id")) for w in results))
            results = [{**w, "stats": s} for w, s in zip(results, stats)]

        count = len(results)
        if count:
            message = f"Found {count} workflow{'s' if count > 1 else ''}"
        else:
            message = "No workflows found - Ready to create your first automation!"
        return {
            "workflows": results,
            "count": count,
            "message": message,
            "nextSteps": None if count else EMPTY_LIST_NEXT_STEPS,
        }

    async def create_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        name = arguments["name"]
        document = materialize(
            arguments.get("template"),
            name,
            description=arguments.get("description"),
            configuration=arguments.get("configuration"),
            settings=arguments.get("settings"),
        )

        created = await self._client.call("/workflows", "POST", writable_document(document))
        workflow_id = str(created.get("id"))
        if arguments.get("tags"):
            created["tags"] = await self._apply_tags(workflow_id, arguments["tags"])
        if document.get("description"):
            created.setdefault("description", document["description"])
        await self._remember(created)

        logger.info(f"Created workflow {workflow_id}: {name}")
        return {
            "success": True,
            "message": f"Created workflow: {name}",
            "workflowId": workflow_id,
            "workflow": created,
            "webhooks": aggregation.extract_webhooks(created, self._client.webhook_url),
            "nextSteps": CREATE_NEXT_STEPS,
        }

    async def update_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Merge ``updates`` into the current document and write it back."""
        workflow_id = arguments["workflowId"]
        updates = arguments["updates"]

        current = await self._client.call(f"/workflows/{workflow_id}")
        merged = {**current, **copy.deepcopy(updates)}
        updated = await self._client.call(
            f"/workflows/{workflow_id}", "PUT", writable_document(merged)
        )

        if "active" in updates and bool(updates["active"]) != bool(current.get("active")):
            updated = await self._set_active(workflow_id, bool(updates["active"]))
        await self._remember(updated)

        logger.info(f"Updated workflow {workflow_id}")
        response = {
            "success": True,
            "message": f"Updated workflow: {updated.get('name') or workflow_id}",
            "workflowId": workflow_id,
            "workflow": updated,
        }
        if arguments.get("version", True):
            response["previousVersion"] = current
        return response

    async def delete_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        workflow_id = arguments["workflowId"]

        backup = None
        if arguments.get("createBackup", True):
            backup = await self._client.call(f"/workflows/{workflow_id}")

        await self._client.call(f"/workflows/{workflow_id}", "DELETE")
        await self._forget(workflow_id)

        logger.info(f"Deleted workflow {workflow_id}")
        response = {
            "success": True,
            "message": f"Deleted workflow: {workflow_id}",
            "workflowId": workflow_id,
        }
        if backup is not None:
            response["backup"] = backup
        return response

    async def duplicate_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        workflow_id = arguments["workflowId"]
        new_name = arguments["newName"]

        source = await self._client.call(f"/workflows/{workflow_id}")
        document = copy.deepcopy(writable_document(source))
        document.update(copy.deepcopy(arguments.get("modifications") or {}))
        document["name"] = new_name

        created = await self._client.call("/workflows", "POST", writable_document(document))
        await self._remember(created)

        return {
            "success": True,
            "message": f"Duplicated workflow {source.get('name')} as {new_name}",
            "workflowId": str(created.get("id")),
            "sourceWorkflowId": workflow_id,
            "workflow": created,
        }

    # Execution and monitoring

    async def execute_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        workflow_id = arguments["workflowId"]
        mode = arguments.get("mode", "production")
        endpoint = f"/workflows/{workflow_id}/test" if mode == "test" else f"/workflows/{workflow_id}/execute"

        execution = await self._client.call(endpoint, "POST", {"data": arguments.get("data") or {}})
        if not isinstance(execution, dict) or execution.get("id") is None:
            raise UpstreamError("Execution id missing from engine response")
        execution_id = str(execution["id"])
        logger.info(f"Started execution {execution_id} of workflow {workflow_id} ({mode})")

        if arguments.get("waitForCompletion", True):
            result = await self._monitor.wait_for_completion(execution_id)
            return result.to_response()

        return {
            "success": True,
            "message": "Workflow execution started",
            "executionId": execution_id,
            "status": "running",
            "trackingUrl": self._client.execution_url(execution_id),
        }

    async def get_executions(self, arguments: dict[str, Any]) -> dict[str, Any]:
        status = arguments.get("status")
        payload = await self._client.call(
            "/executions",
            params={
                "workflowId": arguments.get("workflowId"),
                "status": None if status == "all" else status,
                "limit": int(arguments.get("limit", 20)),
                "includeData": arguments.get("includeData", False),
            },
        )
        executions = _items(payload)
        return {
            "executions": executions,
            "count": len(executions),
            "successRate": aggregation.success_rate(executions),
            "averageDuration": aggregation.average_duration(executions),
        }

    async def stop_execution(self, arguments: dict[str, Any]) -> dict[str, Any]:
        execution_id = arguments["executionId"]
        execution = await self._client.call(f"/executions/{execution_id}/stop", "POST")
        logger.info(f"Stopped execution {execution_id}")
        return {
            "success": True,
            "message": "Execution stopped",
            "executionId": execution_id,
            "execution": execution,
        }

    async def retry_execution(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Retry an execution; ``fromNode`` retries against the current workflow version."""
        execution_id = arguments["executionId"]
        from_node = arguments.get("fromNode")
        body = {"loadWorkflow": True} if from_node else None

        execution = await self._client.call(f"/executions/{execution_id}/retry", "POST", body)
        new_id = execution.get("id") if isinstance(execution, dict) else None

        response = {
            "success": True,
            "message": "Execution retried",
            "executionId": None if new_id is None else str(new_id),
            "retryOf": execution_id,
            "execution": execution,
        }
        if from_node:
            response["fromNode"] = from_node
        return response

    # Advanced features

    async def import_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        source = arguments["source"]
        data = arguments["data"]

        if source == "json":
            try:
                document = json.loads(data)
            except ValueError as e:
                raise InvalidArgumentsError("import_workflow", [f"data: invalid JSON: {e}"]) from e
        elif source == "url":
            document = await self._client.fetch_url(data)
        else:
            if data not in BUILDERS:
                raise InvalidArgumentsError(
                    "import_workflow", [f"data: unknown library template: {data}"]
                )
            document = build_template(data, {"name": arguments.get("name")})

        if not isinstance(document, dict):
            raise InvalidArgumentsError("import_workflow", ["data: workflow must be a JSON object"])

        document = dict(document)
        document["name"] = arguments.get("name") or document.get("name") or "Imported Workflow"

        created = await self._client.call("/workflows", "POST", writable_document(document))
        workflow_id = str(created.get("id"))
        if arguments.get("activate", False):
            created = await self._set_active(workflow_id, True)
        await self._remember(created)

        logger.info(f"Imported workflow {workflow_id} from {source}")
        return {
            "success": True,
            "message": f"Imported workflow: {document['name']}",
            "workflowId": workflow_id,
            "workflow": created,
            "active": bool(created.get("active")),
        }

    async def export_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        workflow_id = arguments["workflowId"]
        export_format = arguments.get("format", "json")

        workflow = await self._client.call(f"/workflows/{workflow_id}")
        if not arguments.get("includeCredentials", False):
            workflow = _strip_credentials(workflow)

        if export_format == "yaml":
            data = yaml.safe_dump(workflow, sort_keys=False, allow_unicode=True)
        elif export_format == "markdown":
            data = _workflow_markdown(workflow)
        else:
            data = workflow

        return {
            "success": True,
            "workflowId": workflow_id,
            "format": export_format,
            "data": data,
        }

    async def analyze_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Analytics over the executions that started within ``period``."""
        workflow_id = arguments["workflowId"]
        period = arguments.get("period", "7d")
        try:
            window = aggregation.parse_period(period)
        except ValueError as e:
            raise InvalidArgumentsError("analyze_workflow", [f"period: {e}"]) from e

        workflow = await self._client.call(f"/workflows/{workflow_id}")
        payload = await self._client.call(
            "/executions", params={"workflowId": workflow_id, "limit": 100}
        )
        executions = aggregation.within_period(_items(payload), window, self._now())

        return {
            "workflow": {
                "name": workflow.get("name"),
                "nodeCount": len(workflow.get("nodes") or []),
                "complexity": aggregation.complexity(workflow),
                "lastUpdated": workflow.get("updatedAt"),
            },
            "period": period,
            "performance": {
                "totalExecutions": len(executions),
                "successRate": aggregation.success_rate(executions),
                "avgExecutionTime": aggregation.average_duration(executions),
                "errorPatterns": aggregation.error_patterns(executions),
            },
            "optimization": {
                "suggestions": aggregation.optimization_suggestions(workflow),
                "bottlenecks": aggregation.bottlenecks(workflow),
                "costEstimate": aggregation.cost_estimate(
                    workflow, executions, window_days=window / timedelta(days=1)
                ),
            },
            "insights": {
                "peakUsageTimes": aggregation.peak_hour(executions),
                "dataPatterns": aggregation.data_patterns(executions),
                "recommendations": aggregation.recommendations(workflow, executions),
            },
        }

    async def batch_operation(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Apply one operation to each workflow; a failed item does not stop the rest."""
        operation = arguments["operation"]
        parameters = arguments.get("parameters") or {}
        if operation == "tag" and not parameters.get("tags"):
            raise InvalidArgumentsError("batch_operation", ["parameters.tags: required for tag"])

        results = []
        for workflow_id in arguments["workflowIds"]:
            try:
                outcome = await self._batch_item(operation, workflow_id, parameters)
            except UpstreamError as e:
                logger.warning(f"Batch {operation} failed for workflow {workflow_id}: {e}")
                results.append({"workflowId": workflow_id, "success": False, "error": str(e)})
                continue
            results.append({"workflowId": workflow_id, "success": True, **outcome})

        succeeded = sum(1 for r in results if r["success"])
        return {
            "success": succeeded == len(results),
            "operation": operation,
            "succeeded": succeeded,
            "failed": len(results) - succeeded,
            "results": results,
        }

    async def _batch_item(self, operation: str, workflow_id: str, parameters: dict) -> dict[str, Any]:
        if operation in ("activate", "deactivate"):
            workflow = await self._set_active(workflow_id, operation == "activate")
            return {"active": bool(workflow.get("active"))}
        if operation == "delete":
            await self._client.call(f"/workflows/{workflow_id}", "DELETE")
            await self._forget(workflow_id)
            return {}
        if operation == "tag":
            return {"tags": await self._apply_tags(workflow_id, parameters["tags"])}
        workflow = await self._client.call(f"/workflows/{workflow_id}")
        return {"workflow": _strip_credentials(workflow)}

    # Credentials and connections

    async def list_credentials(self, arguments: dict[str, Any]) -> dict[str, Any]:
        credentials = await self._collect("/credentials")
        credential_type = arguments.get("type")
        if credential_type:
            credentials = [c for c in credentials if c.get("type") == credential_type]
        return {"credentials": credentials, "count": len(credentials)}

    async def create_credential(self, arguments: dict[str, Any]) -> dict[str, Any]:
        created = await self._client.call(
            "/credentials",
            "POST",
            {"name": arguments["name"], "type": arguments["type"], "data": arguments["data"]},
        )
        logger.info(f"Created credential {created.get('id')} of type {arguments['type']}")
        return {
            "success": True,
            "message": f"Created credential: {arguments['name']}",
            "credentialId": str(created.get("id")),
            "credential": {
                "id": created.get("id"),
                "name": created.get("name", arguments["name"]),
                "type": created.get("type", arguments["type"]),
            },
        }

    async def test_credential(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Check that the credential exists and its type is known to the engine.

        The public API never returns secret values, so the check stops at the
        credential type's schema.
        """
        credential_id = str(arguments["credentialId"])
        credentials = await self._collect("/credentials")
        credential = next((c for c in credentials if str(c.get("id")) == credential_id), None)
        if credential is None:
            return {
                "success": False,
                "credentialId": credential_id,
                "message": "Credential not found",
            }

        credential_type = credential.get("type")
        try:
            schema = await self._client.call(f"/credentials/schema/{credential_type}")
        except UpstreamError as e:
            return {
                "success": False,
                "credentialId": credential_id,
                "type": credential_type,
                "message": f"Credential type could not be verified: {e}",
            }

        return {
            "success": True,
            "credentialId": credential_id,
            "type": credential_type,
            "message": "Credential test passed",
            "requiredFields": (schema or {}).get("required", []),
        }

    # Webhook management

    async def list_webhooks(self, arguments: dict[str, Any]) -> dict[str, Any]:
        workflow_id = arguments.get("workflowId")
        if workflow_id:
            workflows = [await self._client.call(f"/workflows/{workflow_id}")]
        else:
            workflows = await self._collect("/workflows")

        webhooks = []
        for workflow in workflows:
            for webhook in aggregation.extract_webhooks(workflow, self._client.webhook_url):
                webhooks.append({
                    **webhook,
                    "workflowId": workflow.get("id"),
                    "workflowName": workflow.get("name"),
                    "active": bool(workflow.get("active")),
                })
        return {"webhooks": webhooks, "count": len(webhooks)}

    async def test_webhook(self, arguments: dict[str, Any]) -> dict[str, Any]:
        webhook_url = arguments["webhookUrl"]
        response = await self._client.post_url(webhook_url, arguments.get("testData") or {})
        return {"success": True, "webhookUrl": webhook_url, "response": response}

    # AI and automation helpers

    async def suggest_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        suggestions = sorted(copy.deepcopy(WORKFLOW_SUGGESTIONS), key=lambda s: s["match"], reverse=True)
        return {
            "suggestions": suggestions,
            "customRecommendation": (
                f'Based on your use case "{arguments["useCase"]}", start with the '
                f"{suggestions[0]['name']} and customize it for your specific needs."
            ),
            "implementationPlan": IMPLEMENTATION_PLAN,
        }

    async def optimize_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        workflow_id = arguments["workflowId"]
        workflow = await self._client.call(f"/workflows/{workflow_id}")
        payload = await self._client.call(
            "/executions", params={"workflowId": workflow_id, "limit": 100}
        )
        executions = _items(payload)
        return {
            "workflowId": workflow_id,
            "name": workflow.get("name"),
            "optimizations": aggregation.optimization_suggestions(workflow),
            "bottlenecks": aggregation.bottlenecks(workflow),
            "errorPatterns": aggregation.error_patterns(executions),
            "costEstimate": aggregation.cost_estimate(workflow, executions),
        }

    # System and debug

    async def get_system_info(self, arguments: dict[str, Any]) -> dict[str, Any]:
        try:
            cache = {"backend": self._cache.backend, "entries": await self._cache.size()}
        except CacheError as e:
            cache = {"backend": self._cache.backend, "error": str(e)}

        return {
            "version": VERSION,
            "serverTime": self._now().isoformat(),
            "baseUrl": self._client.base_url,
            "apiKeyConfigured": self._client.has_api_key,
            "capabilities": list(CAPABILITIES),
            "limits": SYSTEM_LIMITS,
            "toolCount": len(self._registry),
            "cache": cache,
        }

    async def debug_workflow(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Static diagnostics of the workflow graph; nothing is executed."""
        workflow_id = arguments["workflowId"]
        breakpoints = arguments.get("breakpoints") or []

        workflow = await self._client.call(f"/workflows/{workflow_id}")
        graph = self._graph_service.build_graph(workflow)

        orphans = [node.name for node in graph.get_orphan_nodes()]
        dangling = [d.to_dict() for d in graph.dangling]
        cycle = self._graph_service.find_cycle(graph)
        unknown_breakpoints = [b for b in breakpoints if b not in graph.all_nodes]

        issues = []
        if not any(node.is_trigger for node in graph.all_nodes.values()):
            issues.append("Workflow has no trigger node")
        if orphans:
            issues.append(f"Unconnected nodes: {', '.join(orphans)}")
        if dangling:
            issues.append(f"{len(dangling)} connection(s) reference missing nodes")
        if cycle:
            issues.append(f"Cycle detected: {' -> '.join(cycle)}")
        if unknown_breakpoints:
            issues.append(f"Unknown breakpoints: {', '.join(unknown_breakpoints)}")

        return {
            "workflowId": workflow_id,
            "name": workflow.get("name"),
            "debugSession": {
                "nodeCount": len(graph.all_nodes),
                "triggerNodes": [n.name for n in graph.all_nodes.values() if n.is_trigger],
                "executionOrder": self._graph_service.get_execution_order(graph),
                "orphanNodes": orphans,
                "danglingConnections": dangling,
                "unreachableNodes": self._graph_service.get_unreachable(graph),
                "cycle": cycle,
                "breakpoints": {
                    "valid": [b for b in breakpoints if b in graph.all_nodes],
                    "unknown": unknown_breakpoints,
                },
                "issues": issues,
            },
        }

    async def get_logs(self, arguments: dict[str, Any]) -> dict[str, Any]:
        log_type = arguments.get("type", "system")
        lines = int(arguments.get("lines", 100))
        target_id = arguments.get("id")
        if log_type != "system" and not target_id:
            raise InvalidArgumentsError("get_logs", [f"id: required for {log_type} logs"])

        response: dict[str, Any] = {"type": log_type, "id": target_id}
        if log_type == "system":
            logs = self._log_buffer.tail(lines) if self._log_buffer is not None else []
        elif log_type == "workflow":
            payload = await self._client.call(
                "/executions", params={"workflowId": target_id, "limit": lines}
            )
            logs = [_execution_summary(e) for e in aggregation.as_records(_items(payload))]
            response["workflowName"] = await self._cached_name(target_id)
        else:
            record = await self._monitor.get_execution(target_id, include_data=True)
            logs = _node_runs(record)[-lines:]

        response["logs"] = logs
        response["count"] = len(logs)
        return response

    # Helpers

    async def _collect(self, endpoint: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Fetch every page of a cursor-paginated collection."""
        items: list[dict[str, Any]] = []
        query = dict(params or {})
        for _ in range(MAX_PAGES):
            payload = await self._client.call(endpoint, params=query)
            items.extend(_items(payload))
            cursor = payload.get("nextCursor") if isinstance(payload, dict) else None
            if not cursor:
                return items
            query["cursor"] = cursor
        logger.warning(f"Stopped paging {endpoint} after {MAX_PAGES} pages")
        return items

    async def _best_effort(self, endpoint: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]] | None:
        try:
            return _items(await self._client.call(endpoint, params=params))
        except UpstreamError as e:
            logger.warning(f"Best-effort fetch of {endpoint} failed: {e}")
            return None

    async def _workflow_stats(self, workflow_id: Any) -> dict[str, Any]:
        try:
            payload = await self._client.call(
                "/executions", params={"workflowId": workflow_id, "limit": 20}
            )
        except UpstreamError as e:
            logger.warning(f"Failed to fetch stats for workflow {workflow_id}: {e}")
            return {"error": "Failed to fetch stats"}

        executions = _items(payload)
        total = payload.get("count") if isinstance(payload, dict) else None
        return {
            "totalExecutions": total if total is not None else len(executions),
            "lastExecution": (executions[0].get("startedAt") if executions else None) or "Never",
            "successRate": aggregation.success_rate(executions),
        }

    async def _set_active(self, workflow_id: str, active: bool) -> dict[str, Any]:
        action = "activate" if active else "deactivate"
        return await self._client.call(f"/workflows/{workflow_id}/{action}", "POST")

    async def _apply_tags(self, workflow_id: str, names: list[str]) -> list[dict[str, Any]]:
        """Attach tags by name, creating the ones the engine does not know yet."""
        known = {t.get("name"): t for t in await self._collect("/tags")}
        tag_ids = []
        for name in dict.fromkeys(names):
            tag = known.get(name)
            if tag is None:
                tag = await self._client.call("/tags", "POST", {"name": name})
            tag_ids.append({"id": tag.get("id")})
        return await self._client.call(f"/workflows/{workflow_id}/tags", "PUT", tag_ids)

    async def _remember(self, workflow: dict[str, Any]) -> None:
        if not isinstance(workflow, dict) or workflow.get("id") is None:
            return
        try:
            await self._cache.set(str(workflow["id"]), workflow)
        except CacheError as e:
            logger.warning(f"Ignoring cache write failure: {e}")

    async def _forget(self, workflow_id: str) -> None:
        try:
            await self._cache.delete(workflow_id)
        except CacheError as e:
            logger.warning(f"Ignoring cache delete failure: {e}")

    async def _cached_name(self, workflow_id: str) -> str | None:
        try:
            workflow = await self._cache.get(workflow_id)
        except CacheError as e:
            logger.warning(f"Ignoring cache read failure: {e}")
            return None
        return workflow.get("name") if workflow else None


def _strip_credentials(workflow: dict[str, Any]) -> dict[str, Any]:
    exported = copy.deepcopy(workflow)
    for node in exported.get("nodes") or []:
        node.pop("credentials", None)
    return exported


def _workflow_markdown(workflow: dict[str, Any]) -> str:
    record = WorkflowRecord.model_validate(workflow)
    lines = [f"# {record.name or 'Untitled workflow'}", ""]
    if record.description:
        lines.extend([record.description, ""])
    lines.append(f"- **ID:** {record.id}")
    lines.append(f"- **Active:** {'yes' if record.active else 'no'}")
    lines.append(f"- **Complexity:** {aggregation.complexity(record)}")
    if record.tag_names:
        lines.append(f"- **Tags:** {', '.join(sorted(record.tag_names))}")
    lines.extend(["", "## Nodes", "", "| Name | Type |", "|---|---|"])
    for node in record.nodes:
        lines.append(f"| {node.get('name')} | {node.get('type')} |")
    lines.extend(["", "## Connections", ""])
    for source, outputs in record.connections.items():
        for branches in (outputs or {}).values():
            for branch in branches or []:
                for edge in branch or []:
                    lines.append(f"- {source} -> {edge.get('node')}")
    return "\n".join(lines) + "\n"


def _execution_summary(record: ExecutionRecord) -> dict[str, Any]:
    if record.finished:
        status = "success"
    elif record.stopped_at is not None:
        status = "error"
    else:
        status = "running"
    return {
        "executionId": record.id,
        "status": record.status or status,
        "mode": record.mode,
        "startedAt": record.started_at.isoformat() if record.started_at else None,
        "stoppedAt": record.stopped_at.isoformat() if record.stopped_at else None,
        "duration": record.duration_ms,
    }


def _node_runs(record: ExecutionRecord) -> list[dict[str, Any]]:
    """Flatten ``data.resultData.runData`` into per-node run entries."""
    data = record.data if isinstance(record.data, dict) else {}
    run_data = (data.get("resultData") or {}).get("runData") or {}
    entries = []
    for node, runs in run_data.items():
        for run in runs or []:
            error = run.get("error")
            entries.append({
                "node": node,
                "startTime": run.get("startTime"),
                "executionTime": run.get("executionTime"),
                "status": "error" if error else "success",
                "error": error.get("message") if isinstance(error, dict) else error,
            })
    entries.sort(key=lambda e: e["startTime"] or 0)
    return entries
