"""Service for building and inspecting workflow graphs."""

import logging
from typing import Any

from models.graph import DanglingConnection, GraphNode, WorkflowGraph


class GraphService:
    """Builds graphs from workflow documents and reports structural issues."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def build_graph(self, workflow: dict[str, Any]) -> WorkflowGraph:
        """Build a graph from a workflow document's nodes and connections."""
        if workflow is None:
            raise ValueError("workflow is required")

        graph = WorkflowGraph()

        # First pass: Create all GraphNodes
        for node in workflow.get("nodes") or []:
            name = node.get("name")
            if not name:
                continue
            graph.add_node(GraphNode(name=name, node_type=node.get("type", "")))

        # Second pass: Build connections and dependencies
        for source_name, outputs in (workflow.get("connections") or {}).items():
            source_node = graph.all_nodes.get(source_name)
            targets = self._connection_targets(outputs)
            if source_node is None and not targets:
                graph.dangling.append(DanglingConnection(source_name, None))
            for target_name in targets:
                target_node = graph.all_nodes.get(target_name)
                if source_node is None or target_node is None:
                    graph.dangling.append(DanglingConnection(source_name, target_name))
                    continue
                if target_node not in source_node.next_nodes:
                    source_node.next_nodes.append(target_node)
                    target_node.dependencies.append(source_node)
                self.logger.debug(f"Connected: {source_name} -> {target_name}")

        # Third pass: Identify start nodes
        graph.start_nodes = [
            node for node in graph.all_nodes.values()
            if node.is_trigger or not node.dependencies
        ]

        self.logger.debug(
            f"Graph built with {len(graph.all_nodes)} nodes, "
            f"{len(graph.start_nodes)} start nodes, {len(graph.dangling)} dangling connections"
        )
        return graph

    def _connection_targets(self, outputs: Any) -> list[str]:
        """Flatten n8n's {type: [[{node, type, index}]]} connection lists."""
        targets: list[str] = []
        if not isinstance(outputs, dict):
            return targets
        for branches in outputs.values():
            for branch in branches or []:
                for edge in branch or []:
                    if isinstance(edge, dict) and edge.get("node"):
                        targets.append(edge["node"])
        return targets

    def find_cycle(self, graph: WorkflowGraph) -> list[str] | None:
        """Return the node names along one cycle, or None when acyclic."""
        visited: set[str] = set()
        rec_stack: list[str] = []

        def visit(node: GraphNode) -> list[str] | None:
            visited.add(node.key)
            rec_stack.append(node.key)
            for next_node in node.next_nodes:
                if next_node.key in rec_stack:
                    return rec_stack[rec_stack.index(next_node.key):] + [next_node.key]
                if next_node.key not in visited:
                    cycle = visit(next_node)
                    if cycle:
                        return cycle
            rec_stack.pop()
            return None

        for node in graph.all_nodes.values():
            if node.key not in visited:
                cycle = visit(node)
                if cycle:
                    return cycle
        return None

    def get_unreachable(self, graph: WorkflowGraph) -> list[str]:
        """Nodes not reachable from any start node."""
        reachable: set[str] = set()
        stack = list(graph.start_nodes)
        while stack:
            node = stack.pop()
            if node.key in reachable:
                continue
            reachable.add(node.key)
            stack.extend(node.next_nodes)
        return [key for key in graph.all_nodes if key not in reachable]

    def get_execution_order(self, graph: WorkflowGraph) -> list[list[str]]:
        """Get topological execution order as levels of node names.

        Nodes caught in a cycle are appended as a final level.
        """
        if graph is None:
            raise ValueError("graph is required")

        levels: list[list[str]] = []
        remaining = dict(graph.all_nodes)

        while remaining:
            ready = [
                node for node in remaining.values()
                if all(dep.key not in remaining for dep in node.dependencies)
            ]
            if not ready:
                self.logger.warning(f"Cycle prevents ordering of: {sorted(remaining)}")
                levels.append(sorted(remaining))
                break
            levels.append([node.key for node in ready])
            for node in ready:
                del remaining[node.key]

        return levels
