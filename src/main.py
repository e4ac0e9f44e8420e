"""Main entry point for the n8n MCP gateway server."""

import argparse
import logging
import sys

import redis.asyncio as redis
import uvicorn

from api.app import GatewayAPI
from services.dispatcher import ToolDispatcher
from services.engine_client import EngineClient
from services.execution_monitor import ExecutionMonitor
from services.log_service import LogBuffer, configure_logging
from services.settings import LOG_LEVELS, GatewaySettings
from services.tool_handlers import ToolHandlers
from services.tool_registry import VERSION, ToolRegistry
from services.workflow_cache import InMemoryWorkflowCache, RedisWorkflowCache, WorkflowCache

logger = logging.getLogger(__name__)

# Shared with the get_logs tool.
log_buffer = LogBuffer(capacity=1000)


def create_cache(settings: GatewaySettings) -> WorkflowCache:
    """Create the workflow cache; Redis when REDIS_URL is set."""
    if settings.redis_url:
        client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        return RedisWorkflowCache(client, ttl=settings.cache_ttl)
    return InMemoryWorkflowCache(ttl=settings.cache_ttl)


def create_app(settings: GatewaySettings | None = None) -> "uvicorn.ASGIApplication":
    """Create FastAPI application with all dependencies."""
    settings = settings or GatewaySettings.from_env()

    client = EngineClient(
        settings.n8n_base_url,
        api_key=settings.n8n_api_key,
        timeout=settings.request_timeout,
    )
    monitor = ExecutionMonitor(
        client,
        poll_interval=settings.execution_poll_interval,
        max_wait=settings.execution_wait_timeout,
    )
    registry = ToolRegistry()
    handlers = ToolHandlers(
        client,
        monitor,
        create_cache(settings),
        registry,
        log_buffer=log_buffer,
    )
    dispatcher = ToolDispatcher(registry, handlers.as_mapping())

    api = GatewayAPI(dispatcher, registry, monitor, client, settings)
    return api.create_app()


def main(argv: list[str] | None = None) -> int:
    """Run the gateway API server."""
    settings = GatewaySettings.from_env()

    parser = argparse.ArgumentParser(description="n8n MCP Gateway")
    parser.add_argument(
        "--host",
        default=settings.host,
        help=f"Host to bind to (default: {settings.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port to bind to (default: {settings.port})",
    )
    parser.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level})",
    )
    args = parser.parse_args(argv)
    settings = settings.model_copy(
        update={"host": args.host, "port": args.port, "log_level": args.log_level}
    )

    # Configure logging with file rotation
    configure_logging(
        log_dir=settings.log_dir,
        log_file="gateway.log",
        level=getattr(logging, settings.log_level.upper()),
        buffer=log_buffer,
    )

    logger.info(f"Starting n8n MCP gateway {VERSION}")
    logger.info(f"n8n base URL: {settings.n8n_base_url}")
    if not settings.n8n_api_key:
        logger.warning("N8N_API_KEY is not set; the engine will reject API calls")
    logger.info(f"Workflow cache: {'redis' if settings.redis_url else 'memory'}")

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)
    return 0


def get_app() -> "uvicorn.ASGIApplication":
    """Get or create the FastAPI application (for uvicorn import)."""
    return create_app()


if __name__ == "__main__":
    sys.exit(main())
