"""Execution status queries, bounded waits and live status streams."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from models.execution import ExecutionOutcome, ExecutionRecord, ExecutionResult
from services.engine_client import EngineClient, UpstreamError

logger = logging.getLogger(__name__)

TIMEOUT_HINT = "Check execution manually in n8n UI"

Publisher = Callable[[dict[str, Any]], Awaitable[None]]


class ExecutionMonitor:
    """Observes executions running in the engine by polling their status."""

    def __init__(
        self,
        client: EngineClient,
        poll_interval: float = 1.0,
        max_wait: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize monitor with engine client and polling defaults."""
        if client is None:
            raise ValueError("client is required")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if max_wait <= 0:
            raise ValueError("max_wait must be positive")

        self._client = client
        self._poll_interval = poll_interval
        self._max_wait = max_wait
        self._clock = clock
        self._sleep = sleep

    async def get_execution(self, execution_id: str, include_data: bool = False) -> ExecutionRecord:
        """Fetch the current snapshot of one execution."""
        if not execution_id:
            raise ValueError("execution_id is required")

        payload = await self._client.call(
            f"/executions/{execution_id}",
            params={"includeData": include_data},
        )
        try:
            return ExecutionRecord.model_validate(payload or {})
        except ValidationError as e:
            raise UpstreamError(f"Invalid execution payload: {e}") from e

    async def wait_for_completion(
        self,
        execution_id: str,
        max_wait: float | None = None,
        interval: float | None = None,
    ) -> ExecutionResult:
        """Poll until the execution is terminal or ``max_wait`` seconds pass.

        Upstream errors propagate; only an exhausted budget yields a timeout.
        """
        max_wait = self._max_wait if max_wait is None else max_wait
        interval = self._poll_interval if interval is None else interval
        if max_wait <= 0:
            raise ValueError("max_wait must be positive")
        if interval <= 0:
            raise ValueError("interval must be positive")

        deadline = self._clock() + max_wait
        while True:
            record = await self.get_execution(execution_id, include_data=True)

            if record.finished:
                logger.info(f"Execution {execution_id} finished")
                return ExecutionResult(
                    outcome=ExecutionOutcome.SUCCESS,
                    execution_id=execution_id,
                    message="Workflow executed successfully",
                    duration_ms=record.duration_ms,
                    data=record.data,
                )

            if record.stopped_at is not None:
                logger.warning(f"Execution {execution_id} stopped without finishing")
                return ExecutionResult(
                    outcome=ExecutionOutcome.FAILURE,
                    execution_id=execution_id,
                    message="Workflow execution failed",
                    duration_ms=record.duration_ms,
                    data=record.data,
                )

            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            await self._sleep(min(interval, remaining))

        logger.warning(f"Timed out waiting for execution {execution_id} after {max_wait}s")
        return ExecutionResult(
            outcome=ExecutionOutcome.TIMEOUT,
            execution_id=execution_id,
            message="Execution timed out",
            hint=TIMEOUT_HINT,
        )

    async def stream(
        self,
        execution_id: str,
        publish: Publisher,
        interval: float | None = None,
    ) -> None:
        """Publish a status snapshot every ``interval`` seconds until terminal."""
        if not execution_id:
            raise ValueError("execution_id is required")
        if publish is None:
            raise ValueError("publish is required")
        interval = self._poll_interval if interval is None else interval
        if interval <= 0:
            raise ValueError("interval must be positive")

        while True:
            await self._sleep(interval)
            try:
                record = await self.get_execution(execution_id)
            except UpstreamError as e:
                await publish({"type": "error", "error": str(e)})
                continue

            await publish({"type": "execution-update", "data": record.to_wire()})
            if record.is_terminal:
                logger.debug(f"Stream for execution {execution_id} reached a terminal state")
                return
