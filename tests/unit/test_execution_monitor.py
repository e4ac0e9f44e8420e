"""Unit tests for ExecutionMonitor."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from models.execution import ExecutionOutcome
from services.engine_client import UpstreamError
from services.execution_monitor import TIMEOUT_HINT, ExecutionMonitor


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def running():
    return {"id": "9", "finished": False, "startedAt": "2024-01-01T10:00:00.000Z"}


def finished(data=None):
    return {
        "id": "9",
        "finished": True,
        "startedAt": "2024-01-01T10:00:00.000Z",
        "stoppedAt": "2024-01-01T10:00:02.000Z",
        "data": data,
    }


def failed():
    return {
        "id": "9",
        "finished": False,
        "startedAt": "2024-01-01T10:00:00.000Z",
        "stoppedAt": "2024-01-01T10:00:00.500Z",
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client():
    mock = MagicMock()
    mock.call = AsyncMock()
    return mock


@pytest.fixture
def monitor(client, clock):
    return ExecutionMonitor(client, poll_interval=1.0, max_wait=30.0, clock=clock, sleep=clock.sleep)


class TestExecutionMonitorInit:
    """Tests for ExecutionMonitor initialization."""

    def test_none_client_raises(self):
        with pytest.raises(ValueError, match="client is required"):
            ExecutionMonitor(None)

    def test_zero_interval_raises(self, client):
        with pytest.raises(ValueError, match="poll_interval must be positive"):
            ExecutionMonitor(client, poll_interval=0)

    def test_zero_max_wait_raises(self, client):
        with pytest.raises(ValueError, match="max_wait must be positive"):
            ExecutionMonitor(client, max_wait=0)


class TestGetExecution:
    """Tests for get_execution."""

    @pytest.mark.asyncio
    async def test_returns_record(self, monitor, client):
        client.call.return_value = finished()

        record = await monitor.get_execution("9", include_data=True)

        assert record.finished
        assert record.duration_ms == 2000
        client.call.assert_awaited_once_with("/executions/9", params={"includeData": True})

    @pytest.mark.asyncio
    async def test_invalid_payload_raises_upstream_error(self, monitor, client):
        client.call.return_value = {"startedAt": "not a date"}

        with pytest.raises(UpstreamError, match="Invalid execution payload"):
            await monitor.get_execution("9")

    @pytest.mark.asyncio
    async def test_empty_id_raises(self, monitor):
        with pytest.raises(ValueError, match="execution_id is required"):
            await monitor.get_execution("")


class TestWaitForCompletion:
    """Tests for wait_for_completion."""

    @pytest.mark.asyncio
    async def test_success_after_polling(self, monitor, client, clock):
        """Finished execution yields success with exact duration."""
        client.call.side_effect = [running(), running(), finished({"out": 1})]

        result = await monitor.wait_for_completion("9")

        assert result.outcome == ExecutionOutcome.SUCCESS
        assert result.success
        assert result.duration_ms == 2000
        assert result.data == {"out": 1}
        assert clock.sleeps == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_stopped_without_finishing_is_failure(self, monitor, client):
        client.call.return_value = failed()

        result = await monitor.wait_for_completion("9")

        assert result.outcome == ExecutionOutcome.FAILURE
        assert not result.success
        assert result.duration_ms == 500

    @pytest.mark.asyncio
    async def test_timeout_has_distinct_shape(self, monitor, client, clock):
        """Exhausted budget yields a timeout with a hint and no duration."""
        client.call.return_value = running()

        result = await monitor.wait_for_completion("9", max_wait=3.0)

        assert result.outcome == ExecutionOutcome.TIMEOUT
        assert result.timed_out
        response = result.to_response()
        assert response["success"] is False
        assert response["hint"] == TIMEOUT_HINT
        assert "duration" not in response
        assert sum(clock.sleeps) == pytest.approx(3.0)

    @pytest.mark.asyncio
    async def test_never_sleeps_past_deadline(self, monitor, client, clock):
        client.call.return_value = running()

        await monitor.wait_for_completion("9", max_wait=2.5, interval=1.0)

        assert clock.sleeps == [1.0, 1.0, 0.5]

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self, monitor, client):
        """Polling errors are not turned into timeouts."""
        client.call.side_effect = [running(), UpstreamError("Bad Gateway", status=502)]

        with pytest.raises(UpstreamError, match="502"):
            await monitor.wait_for_completion("9")

    @pytest.mark.asyncio
    async def test_success_response_shape(self, monitor, client):
        client.call.return_value = finished({"out": 1})

        response = (await monitor.wait_for_completion("9")).to_response()

        assert response == {
            "success": True,
            "outcome": "success",
            "message": "Workflow executed successfully",
            "executionId": "9",
            "duration": 2000,
            "data": {"out": 1},
        }

    @pytest.mark.asyncio
    async def test_rejects_non_positive_interval(self, monitor):
        with pytest.raises(ValueError, match="interval must be positive"):
            await monitor.wait_for_completion("9", interval=0)


class TestStream:
    """Tests for stream."""

    @pytest.mark.asyncio
    async def test_publishes_until_terminal(self, monitor, client):
        client.call.side_effect = [running(), finished()]
        publish = AsyncMock()

        await monitor.stream("9", publish)

        messages = [c.args[0] for c in publish.await_args_list]
        assert [m["type"] for m in messages] == ["execution-update", "execution-update"]
        assert messages[-1]["data"]["finished"] is True
        assert messages[-1]["data"]["stoppedAt"] is not None

    @pytest.mark.asyncio
    async def test_publishes_errors_and_keeps_polling(self, monitor, client):
        client.call.side_effect = [UpstreamError("Service Unavailable", status=503), failed()]
        publish = AsyncMock()

        await monitor.stream("9", publish)

        messages = [c.args[0] for c in publish.await_args_list]
        assert messages[0] == {
            "type": "error",
            "error": "n8n API Error: 503 Service Unavailable",
        }
        assert messages[1]["type"] == "execution-update"

    @pytest.mark.asyncio
    async def test_sleeps_before_each_poll(self, monitor, client, clock):
        client.call.return_value = finished()

        await monitor.stream("9", AsyncMock(), interval=2.0)

        assert clock.sleeps == [2.0]
