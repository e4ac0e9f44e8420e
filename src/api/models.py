"""Request and response models for the HTTP API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolCallRequest(BaseModel):
    """Request to invoke one tool."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    arguments: dict[str, Any] | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name is required")
        return v


class ToolCallResponse(BaseModel):
    """Successful tool call."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    result: Any = None


class ToolListResponse(BaseModel):
    """Tool catalog with server version and capabilities."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tools: list[dict[str, Any]]
    version: str
    capabilities: list[str]


class ErrorResponse(BaseModel):
    """Failed tool call."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    error: str
    stack: str | None = Field(default=None)


class SubscribeMessage(BaseModel):
    """WebSocket request to stream one execution's status."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str
    execution_id: str = Field(alias="executionId")

    @field_validator("execution_id", mode="before")
    @classmethod
    def execution_id_not_empty(cls, v: Any) -> str:
        if v is None or not str(v).strip():
            raise ValueError("executionId is required")
        return str(v)
