"""FastAPI front door for the n8n MCP gateway."""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.models import ErrorResponse, ToolCallRequest, ToolCallResponse, ToolListResponse
from api.streaming import ExecutionSubscriptions, InvalidMessageError, frame_text, parse_subscription
from services.dispatcher import ToolDispatcher
from services.engine_client import EngineClient, UpstreamError
from services.errors import InvalidArgumentsError, InvalidRequestError, UnknownToolError
from services.execution_monitor import ExecutionMonitor
from services.settings import GatewaySettings
from services.tool_registry import CAPABILITIES, VERSION, ToolRegistry

logger = logging.getLogger(__name__)


def status_for(error: Exception) -> int:
    """HTTP status code for an error raised by a tool call."""
    if isinstance(error, (UnknownToolError, InvalidArgumentsError, InvalidRequestError)):
        return 400
    if isinstance(error, UpstreamError):
        return 502
    return 500


class GatewayAPI:
    """HTTP and WebSocket surface over the tool dispatcher."""

    def __init__(
        self,
        dispatcher: ToolDispatcher,
        registry: ToolRegistry,
        monitor: ExecutionMonitor,
        client: EngineClient,
        settings: GatewaySettings,
    ):
        """Initialize API with dependencies."""
        if dispatcher is None:
            raise ValueError("dispatcher is required")
        if registry is None:
            raise ValueError("registry is required")
        if monitor is None:
            raise ValueError("monitor is required")
        if client is None:
            raise ValueError("client is required")
        if settings is None:
            raise ValueError("settings is required")

        self._dispatcher = dispatcher
        self._registry = registry
        self._monitor = monitor
        self._client = client
        self._settings = settings

    def _error_body(self, error: Exception, with_success: bool = True) -> dict[str, Any]:
        body = ErrorResponse(
            error=str(error),
            stack="".join(traceback.format_exception(error)) if self._settings.debug else None,
        ).model_dump(exclude_none=True)
        if not with_success:
            body.pop("success")
        return body

    async def _run_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Dispatch a tool call for the convenience endpoints."""
        try:
            return await self._dispatcher.dispatch(name, arguments)
        except Exception as e:
            return JSONResponse(status_code=status_for(e), content=self._error_body(e, with_success=False))

    def create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            yield
            await self._client.aclose()

        app = FastAPI(
            title="n8n MCP Gateway",
            description="MCP-style tool calls over the n8n REST API",
            version=VERSION,
            lifespan=lifespan,
        )

        @app.get("/health")
        async def health_check() -> Any:
            """Aggregate health snapshot of the engine."""
            return await self._run_tool("get_n8n_health", {})

        @app.post("/mcp/tools/list", response_model=ToolListResponse)
        async def list_tools() -> ToolListResponse:
            """List every tool with its input schema."""
            return ToolListResponse(
                tools=self._registry.to_wire(),
                version=VERSION,
                capabilities=list(CAPABILITIES),
            )

        @app.post(
            "/mcp/tools/call",
            response_model=ToolCallResponse,
            responses={
                400: {"model": ErrorResponse},
                500: {"model": ErrorResponse},
                502: {"model": ErrorResponse},
            },
        )
        async def call_tool(body: Any = Body(default=None)) -> Any:
            """Invoke one tool by name."""
            try:
                request = _parse_call(body)
                result = await self._dispatcher.dispatch(request.name, request.arguments)
            except Exception as e:
                return JSONResponse(status_code=status_for(e), content=self._error_body(e))
            return ToolCallResponse(result=result)

        @app.get("/workflows")
        async def list_workflows(
            active: bool | None = None,
            tags: list[str] | None = Query(default=None),
            search: str | None = None,
            limit: int | None = None,
            includeStats: bool | None = None,
        ) -> Any:
            """Query-string mirror of the list_workflows tool."""
            arguments = {
                "active": active,
                "tags": _split_tags(tags),
                "search": search,
                "limit": limit,
                "includeStats": includeStats,
            }
            return await self._run_tool(
                "list_workflows", {k: v for k, v in arguments.items() if v is not None}
            )

        @app.post("/workflows")
        async def create_workflow(body: dict[str, Any] = Body(...)) -> Any:
            """Mirror of the create_workflow tool."""
            return await self._run_tool("create_workflow", body)

        @app.post("/workflows/{workflow_id}/execute")
        async def execute_workflow(
            workflow_id: str,
            body: dict[str, Any] | None = Body(default=None),
        ) -> Any:
            """Run a workflow with the request body as its input data."""
            return await self._run_tool(
                "execute_workflow", {"workflowId": workflow_id, "data": body or {}}
            )

        @app.websocket("/ws")
        async def execution_updates(websocket: WebSocket):
            """Push execution status updates to subscribed clients."""
            await websocket.accept()
            subscriptions = ExecutionSubscriptions(self._monitor, websocket.send_json)
            logger.info("WebSocket client connected")
            try:
                while True:
                    message = await websocket.receive()
                    if message["type"] == "websocket.disconnect":
                        raise WebSocketDisconnect(message.get("code", 1000))
                    try:
                        execution_id = parse_subscription(frame_text(message))
                    except InvalidMessageError as e:
                        await websocket.send_json({"type": "error", "error": str(e)})
                        continue
                    if execution_id is not None:
                        subscriptions.subscribe(execution_id)
            except WebSocketDisconnect:
                logger.info("WebSocket client disconnected")
            finally:
                await subscriptions.close()

        return app


def _split_tags(tags: list[str] | None) -> list[str] | None:
    """Accept both repeated ``tags`` parameters and comma-separated values."""
    if not tags:
        return None
    names = [name.strip() for value in tags for name in value.split(",")]
    return [name for name in names if name] or None


def _parse_call(body: Any) -> ToolCallRequest:
    """Validate a tool-call body, reporting problems in the error envelope."""
    try:
        return ToolCallRequest.model_validate(body)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        ]
        raise InvalidRequestError(errors) from e
