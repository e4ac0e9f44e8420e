"""Graph representation of an n8n workflow's nodes and connections."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class GraphNode:
    """A node in the workflow graph."""
    name: str
    node_type: str
    next_nodes: list['GraphNode'] = field(default_factory=list)
    dependencies: list['GraphNode'] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.name

    @property
    def is_trigger(self) -> bool:
        """Trigger nodes start executions and have no upstream input."""
        short_type = self.node_type.rsplit(".", 1)[-1]
        return short_type.endswith("Trigger") or short_type in TRIGGER_TYPES

    def __hash__(self):
        return hash(self.key)

    def __eq__(self, other):
        if not isinstance(other, GraphNode):
            return False
        return self.key == other.key


# Legacy trigger node types that do not carry the "Trigger" suffix.
TRIGGER_TYPES = {"webhook", "cron", "interval", "start"}


@dataclass(frozen=True)
class DanglingConnection:
    """A connection whose source or target is not a node of the workflow."""
    source: str
    target: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "target": self.target}


@dataclass
class WorkflowGraph:
    """Directed graph of a workflow."""
    start_nodes: list[GraphNode] = field(default_factory=list)
    all_nodes: dict[str, GraphNode] = field(default_factory=dict)
    dangling: list[DanglingConnection] = field(default_factory=list)

    def add_node(self, graph_node: GraphNode):
        self.all_nodes[graph_node.key] = graph_node

    def get_orphan_nodes(self) -> list[GraphNode]:
        """Non-trigger nodes with no edges in either direction."""
        return [
            node for node in self.all_nodes.values()
            if not node.is_trigger and not node.next_nodes and not node.dependencies
        ]
