"""WebSocket execution subscriptions."""

import asyncio
import json
import logging
from typing import Any

from pydantic import ValidationError

from api.models import SubscribeMessage
from services.errors import GatewayError
from services.execution_monitor import ExecutionMonitor, Publisher

logger = logging.getLogger(__name__)

SUBSCRIBE_TYPE = "subscribe-execution"


class InvalidMessageError(GatewayError):
    """Raised when a WebSocket message cannot be understood."""

    def __init__(self):
        super().__init__("Invalid message format")


def frame_text(message: dict[str, Any]) -> str:
    """Text payload of a received WebSocket frame; binary frames must be UTF-8."""
    if message.get("text") is not None:
        return message["text"]
    data = message.get("bytes")
    if data is None:
        raise InvalidMessageError()
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidMessageError() from e


def parse_subscription(raw: str) -> str | None:
    """Return the execution id of a subscribe message, None for other types."""
    try:
        message = json.loads(raw)
    except ValueError as e:
        raise InvalidMessageError() from e
    if not isinstance(message, dict):
        raise InvalidMessageError()
    if message.get("type") != SUBSCRIBE_TYPE:
        return None
    try:
        return SubscribeMessage.model_validate(message).execution_id
    except ValidationError as e:
        raise InvalidMessageError() from e


class ExecutionSubscriptions:
    """Streaming tasks owned by one WebSocket connection."""

    def __init__(self, monitor: ExecutionMonitor, publish: Publisher):
        if monitor is None:
            raise ValueError("monitor is required")
        if publish is None:
            raise ValueError("publish is required")

        self._monitor = monitor
        self._publish = publish
        self._send_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, execution_id: str) -> asyncio.Task:
        """Start streaming status updates for ``execution_id``."""
        task = asyncio.create_task(self._monitor.stream(execution_id, self._send))
        task.set_name(f"execution-stream-{execution_id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.info(f"Subscribed to execution {execution_id}")
        return task

    async def close(self) -> None:
        """Cancel every running subscription and wait for them to finish."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)

    async def _send(self, message: dict[str, Any]) -> None:
        async with self._send_lock:
            await self._publish(message)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Subscription {task.get_name()} failed: {error}")
