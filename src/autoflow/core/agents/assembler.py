from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from autoflow.core.registry.schemas import StepCategory

from .constants import NODE_ORIGIN_X, NODE_POSITION_Y, NODE_POSITION_Y_UNKNOWN, NODE_SPACING_X, NODE_TYPE
from .context import AgentContext
from .schemas import Graph, GraphEdge, GraphNode, GraphNodeData, PlannedStep, Position


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def edge_id(source: str, target: str) -> str:
    return f"e{source}-{target}"


def node_position(index: int, category: StepCategory | None) -> Position:
    y = NODE_POSITION_Y.get(category, NODE_POSITION_Y_UNKNOWN) if category is not None else NODE_POSITION_Y_UNKNOWN
    return Position(x=NODE_ORIGIN_X + index * NODE_SPACING_X, y=y)


def create_flow_node(step: PlannedStep, index: int) -> GraphNode:
    return GraphNode(
        id=str(index + 1),
        type=NODE_TYPE,
        position=node_position(index, step.category),
        data=GraphNodeData(
            node_id=step.node_id,
            label=step.label,
            category=step.category,
            handler=step.node_id,
            reason=step.reason,
        ),
    )


def create_sequential_edges(nodes: list[GraphNode]) -> list[GraphEdge]:
    return [
        GraphEdge(id=edge_id(current.id, following.id), source=current.id, target=following.id)
        for current, following in zip(nodes, nodes[1:])
    ]


def _renumber(nodes: list[GraphNode]) -> list[GraphNode]:
    # Every edit reassigns ids, positions and edges from scratch.
    return [
        node.model_copy(update={"id": str(index + 1), "position": node_position(index, node.data.category)}, deep=True)
        for index, node in enumerate(nodes)
    ]


def _rebuilt(graph: Graph, nodes: list[GraphNode]) -> Graph:
    nodes = _renumber(nodes)
    edges = create_sequential_edges(nodes)
    metadata = {
        **graph.metadata,
        "node_count": len(nodes),
        "edge_count": len(edges),
        "modified_at": _now_iso(),
    }
    return Graph(nodes=nodes, edges=edges, metadata=metadata)


def assemble_workflow(
    planned_steps: list[PlannedStep],
    context: AgentContext | None = None,
    metadata: dict[str, Any] | None = None,
) -> Graph:
    nodes = [create_flow_node(step, index) for index, step in enumerate(planned_steps or [])]
    edges = create_sequential_edges(nodes)

    if context is not None:
        if nodes:
            context.log_decision(
                "assembler", "assembly_complete", f"Assembled {len(nodes)} node(s) with {len(edges)} edge(s)"
            )
        else:
            context.log_decision("assembler", "empty_plan", "No nodes to assemble")

    return Graph(
        nodes=nodes,
        edges=edges,
        metadata={
            **(metadata or {}),
            "node_count": len(nodes),
            "edge_count": len(edges),
            "assembled_at": _now_iso(),
        },
    )


def add_node_to_workflow(graph: Graph, step: PlannedStep, index: int = -1) -> Graph:
    nodes = list(graph.nodes)
    insert_at = len(nodes) if index == -1 else index
    nodes.insert(insert_at, create_flow_node(step, insert_at))
    return _rebuilt(graph, nodes)


def remove_node_from_workflow(graph: Graph, node_id: str) -> Graph:
    return _rebuilt(graph, [node for node in graph.nodes if node.id != node_id])
