"""Tool descriptor model for the MCP tool catalog."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolDescriptor(BaseModel):
    """Name, description and JSON input schema of one tool."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str
    input_schema: dict[str, Any] = Field(alias="inputSchema")

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name is required")
        return v

    @field_validator("input_schema")
    @classmethod
    def schema_is_object(cls, v: dict[str, Any]) -> dict[str, Any]:
        if v.get("type") != "object":
            raise ValueError("inputSchema must describe an object")
        return v

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
