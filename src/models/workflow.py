"""Workflow documents as returned by the n8n engine."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Fields the engine accepts on create/update.
WRITABLE_FIELDS = ("name", "nodes", "connections", "settings", "staticData")

WEBHOOK_NODE_TYPE = "n8n-nodes-base.webhook"


class WorkflowRecord(BaseModel):
    """Typed view over an engine workflow. Unknown fields are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    name: str = ""
    active: bool = False
    description: str | None = None
    tags: list[Any] = []
    nodes: list[dict[str, Any]] = []
    connections: dict[str, Any] = {}
    settings: dict[str, Any] = {}
    updated_at: str | None = Field(default=None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str | None:
        if v is None:
            return None
        return str(v)

    @field_validator("tags", "nodes", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> list:
        return [] if v is None else v

    @field_validator("connections", "settings", mode="before")
    @classmethod
    def none_to_dict(cls, v: Any) -> dict:
        return {} if v is None else v

    @property
    def tag_names(self) -> set[str]:
        names = set()
        for tag in self.tags:
            if isinstance(tag, dict):
                if tag.get("name"):
                    names.add(tag["name"])
            elif tag:
                names.add(str(tag))
        return names

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def webhook_nodes(self) -> list[dict[str, Any]]:
        return [n for n in self.nodes if n.get("type") == WEBHOOK_NODE_TYPE]


def writable_document(document: dict[str, Any]) -> dict[str, Any]:
    """Strip a workflow document down to the fields the engine accepts."""
    payload = {key: document[key] for key in WRITABLE_FIELDS if key in document}
    payload.setdefault("nodes", [])
    payload.setdefault("connections", {})
    payload.setdefault("settings", {})
    if payload["settings"] is None:
        payload["settings"] = {}
    return payload
