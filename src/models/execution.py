"""Execution models observed from the n8n engine."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an engine timestamp into an aware datetime.

    Accepts ISO-8601 strings (``Z`` suffix included), epoch milliseconds and
    datetimes. Naive values are treated as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ExecutionRecord(BaseModel):
    """Snapshot of one engine execution. Fields the engine adds are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    finished: bool = False
    started_at: datetime | None = Field(default=None, alias="startedAt")
    stopped_at: datetime | None = Field(default=None, alias="stoppedAt")
    workflow_id: str | None = Field(default=None, alias="workflowId")
    mode: str | None = None
    status: str | None = None
    data: Any = None

    @field_validator("id", "workflow_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str | None:
        if v is None:
            return None
        return str(v)

    @field_validator("finished", mode="before")
    @classmethod
    def coerce_finished(cls, v: Any) -> bool:
        return bool(v)

    @field_validator("started_at", "stopped_at", mode="before")
    @classmethod
    def parse_times(cls, v: Any) -> datetime | None:
        return parse_timestamp(v)

    @property
    def is_terminal(self) -> bool:
        """Finished or stopped; no further progress will happen."""
        return self.finished or self.stopped_at is not None

    @property
    def duration_ms(self) -> int | None:
        if self.started_at is None or self.stopped_at is None:
            return None
        return (self.stopped_at - self.started_at) // timedelta(milliseconds=1)

    @property
    def last_node_executed(self) -> str | None:
        if not isinstance(self.data, dict):
            return None
        if self.data.get("lastNodeExecuted"):
            return self.data["lastNodeExecuted"]
        result_data = self.data.get("resultData")
        if isinstance(result_data, dict):
            return result_data.get("lastNodeExecuted")
        return None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the engine's camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ExecutionOutcome(str, Enum):
    """Result of waiting for an execution."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class ExecutionResult(BaseModel):
    """Outcome of a bounded wait on an execution.

    A timeout means the state is unknown, not that the execution failed.
    """

    model_config = ConfigDict(frozen=True)

    outcome: ExecutionOutcome
    execution_id: str
    message: str
    duration_ms: int | None = None
    data: Any = None
    hint: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome == ExecutionOutcome.SUCCESS

    @property
    def timed_out(self) -> bool:
        return self.outcome == ExecutionOutcome.TIMEOUT

    def to_response(self) -> dict[str, Any]:
        """Render the tool-call result shape."""
        response: dict[str, Any] = {
            "success": self.success,
            "outcome": self.outcome.value,
            "message": self.message,
            "executionId": self.execution_id,
        }
        if self.timed_out:
            response["hint"] = self.hint
            return response
        response["duration"] = self.duration_ms
        response["data"] = self.data
        return response
