from __future__ import annotations

from autoflow.core.agents.assembler import (
    add_node_to_workflow,
    assemble_workflow,
    node_position,
    remove_node_from_workflow,
)
from autoflow.core.agents.context import create_agent_context
from autoflow.core.agents.planner import default_step
from autoflow.core.agents.schemas import PlannedStep
from autoflow.core.registry import StepCategory


def _plan() -> list[PlannedStep]:
    return [
        PlannedStep(node_id="dataFetcher", category=StepCategory.INPUT, label="Data Fetcher", reason="r", score=0.9),
        PlannedStep(node_id="aiSummarizer", category=StepCategory.PROCESS, label="AI Summarizer", reason="r", score=0.9),
        PlannedStep(node_id="emailGenerator", category=StepCategory.OUTPUT, label="Email Generator", reason="r", score=0.95),
    ]


def test_nodes_and_sequential_edges() -> None:
    graph = assemble_workflow(_plan(), metadata={"prompt": "p"})

    assert len(graph.nodes) == 3
    assert [node.id for node in graph.nodes] == ["1", "2", "3"]
    assert [(edge.source, edge.target) for edge in graph.edges] == [("1", "2"), ("2", "3")]
    assert graph.edges[0].id == "e1-2"
    assert all(edge.animated and edge.type == "smoothstep" for edge in graph.edges)
    assert graph.metadata["prompt"] == "p"
    assert graph.metadata["node_count"] == 3
    assert graph.metadata["edge_count"] == 2


def test_node_data_carries_step_identity() -> None:
    node = assemble_workflow(_plan()).nodes[1]

    assert node.type == "customNode"
    assert node.data.node_id == "aiSummarizer"
    assert node.data.handler == "aiSummarizer"
    assert node.data.category is StepCategory.PROCESS


def test_positions_follow_category_lanes() -> None:
    graph = assemble_workflow(_plan())

    assert [(node.position.x, node.position.y) for node in graph.nodes] == [(100, 100), (350, 200), (600, 100)]
    assert node_position(0, None).y == 150


def test_empty_plan_gives_empty_graph() -> None:
    context = create_agent_context("")
    graph = assemble_workflow([], context)

    assert graph.nodes == []
    assert graph.edges == []
    assert context.decisions[-1].action == "empty_plan"


def test_add_node_renumbers_and_rewires(registry) -> None:
    graph = assemble_workflow(_plan()[1:])
    step = default_step(registry, "dataFetcher", StepCategory.INPUT, "added")

    updated = add_node_to_workflow(graph, step, 0)

    assert [node.data.node_id for node in updated.nodes] == ["dataFetcher", "aiSummarizer", "emailGenerator"]
    assert [node.id for node in updated.nodes] == ["1", "2", "3"]
    assert [edge.id for edge in updated.edges] == ["e1-2", "e2-3"]
    assert updated.metadata["node_count"] == 3
    assert "modified_at" in updated.metadata
    assert len(graph.nodes) == 2


def test_remove_node_keeps_chain_connected() -> None:
    graph = assemble_workflow(_plan())

    updated = remove_node_from_workflow(graph, "2")

    assert [node.data.node_id for node in updated.nodes] == ["dataFetcher", "emailGenerator"]
    assert [(edge.source, edge.target) for edge in updated.edges] == [("1", "2")]
    assert updated.nodes[1].position.x == 350
