from __future__ import annotations

import asyncio

import pytest

from autoflow.core.agents.assembler import assemble_workflow
from autoflow.core.agents.generator import WorkflowGenerator
from autoflow.core.agents.schemas import Graph, GraphEdge, GraphNode, PlannedStep
from autoflow.core.errors import WorkflowStructureError
from autoflow.core.orchestration.builtin import build_default_handlers
from autoflow.core.orchestration.executor import (
    resolve_handler_key,
    run_workflow,
    topological_sort,
    validate_graph_structure,
)
from autoflow.core.orchestration.handlers import HandlerRegistry
from autoflow.core.orchestration.schemas import HandlerResult
from autoflow.core.registry import StepCategory


class StaticHandler:
    def __init__(self, name: str, success: bool = True) -> None:
        self.name = name
        self.success = success
        self.calls: list[dict] = []

    async def handle(self, node, outputs, context):
        self.calls.append(dict(outputs))
        return HandlerResult(success=self.success, output=f"{self.name}-out" if self.success else None)


class RaisingHandler:
    name = "boom"

    async def handle(self, node, outputs, context):
        raise RuntimeError("kaboom")


class SlowHandler:
    name = "slow"

    async def handle(self, node, outputs, context):
        await asyncio.sleep(1)
        return {"success": True, "output": "late"}


def _node(node_id: str, handler: str | None = None) -> dict:
    return {"id": node_id, "type": "customNode", "data": {"handler": handler or node_id}}


def _edge(source: str, target: str) -> dict:
    return {"source": source, "target": target}


def _registry(*handlers) -> HandlerRegistry:
    registry = HandlerRegistry()
    for handler in handlers:
        registry.register(handler)
    return registry


def test_topological_sort_linear_chain() -> None:
    graph = validate_graph_structure({"nodes": [_node("C"), _node("A"), _node("B")], "edges": [_edge("A", "B"), _edge("B", "C")]})

    ordering = topological_sort(graph.nodes, graph.edges)

    assert ordering.order == ["A", "B", "C"]
    assert ordering.has_cycle is False


def test_topological_sort_detects_two_node_cycle() -> None:
    graph = validate_graph_structure({"nodes": [_node("A"), _node("B")], "edges": [_edge("A", "B"), _edge("B", "A")]})

    assert topological_sort(graph.nodes, graph.edges).has_cycle is True


def test_topological_sort_rejects_unknown_endpoint() -> None:
    nodes = [GraphNode(id="A")]
    with pytest.raises(WorkflowStructureError, match="Invalid edge"):
        topological_sort(nodes, [GraphEdge(id="eA-Z", source="A", target="Z")])


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        (None, "must be an object"),
        ({"nodes": {}, "edges": []}, "nodes must be an array"),
        ({"nodes": [], "edges": []}, "at least one node"),
        ({"nodes": [{"type": "x"}], "edges": []}, "missing required field: id"),
        ({"nodes": [{"id": "1"}], "edges": []}, "missing required field: type"),
        ({"nodes": [_node("1")], "edges": [{"target": "1"}]}, "missing required field: source"),
        ({"nodes": [_node("1")], "edges": [_edge("1", "99")]}, "references an unknown node"),
        ({"nodes": [_node("1"), _node("1")], "edges": []}, "duplicate node id 1"),
    ],
)
def test_structural_errors(payload, message) -> None:
    with pytest.raises(WorkflowStructureError, match=message) as excinfo:
        validate_graph_structure(payload)
    assert excinfo.value.status_code == 400


def test_numeric_ids_and_missing_edge_ids_are_normalised() -> None:
    graph = validate_graph_structure(
        {"nodes": [{"id": 1, "type": "delay"}, {"id": 2, "type": "delay"}], "edges": [{"source": 1, "target": 2}]}
    )

    assert [node.id for node in graph.nodes] == ["1", "2"]
    assert graph.edges[0].id == "e1-2"


def test_handler_key_resolution_order() -> None:
    assert resolve_handler_key(GraphNode(id="1", type="customNode", data={"handler": "h", "node_id": "n"})) == "h"
    assert resolve_handler_key(GraphNode(id="1", type="customNode", data={"node_id": "n"})) == "n"
    assert resolve_handler_key(GraphNode(id="1", type="delay")) == "delay"


def test_fail_fast_stops_at_failed_node() -> None:
    handlers = _registry(StaticHandler("A"), StaticHandler("B", success=False), StaticHandler("C"))
    workflow = {"nodes": [_node("A"), _node("B"), _node("C")], "edges": [_edge("A", "B"), _edge("B", "C")]}

    result = asyncio.run(run_workflow(workflow, handlers))

    assert result.success is False
    assert result.status == "failed"
    assert result.failed_node == "B"
    assert result.outputs == {"A": "A-out", "B": None}
    assert [entry["node_id"] for entry in result.logs] == ["A", "B"]
    assert result.logs[1]["status"] == "failed"
    assert handlers.get("C").calls == []


def test_handlers_see_prior_outputs() -> None:
    downstream = StaticHandler("B")
    handlers = _registry(StaticHandler("A"), downstream)

    result = asyncio.run(run_workflow({"nodes": [_node("A"), _node("B")], "edges": [_edge("A", "B")]}, handlers))

    assert result.status == "success"
    assert result.execution_order == ["A", "B"]
    assert downstream.calls == [{"A": "A-out"}]


def test_handler_exception_becomes_error_log() -> None:
    handlers = _registry(StaticHandler("A"), RaisingHandler())
    workflow = {"nodes": [_node("A"), _node("X", "boom")], "edges": [_edge("A", "X")]}

    result = asyncio.run(run_workflow(workflow, handlers))

    assert result.status == "failed"
    assert result.failed_node == "X"
    assert result.logs[-1]["status"] == "error"
    assert result.error == "kaboom"


def test_node_timeout_fails_run() -> None:
    handlers = _registry(SlowHandler())

    result = asyncio.run(run_workflow({"nodes": [_node("S", "slow")], "edges": []}, handlers, node_timeout_s=0.05))

    assert result.status == "failed"
    assert result.logs[0]["status"] == "timeout"


def test_cycle_rejects_run_before_execution() -> None:
    a = StaticHandler("A")
    handlers = _registry(a, StaticHandler("B"))
    workflow = {"nodes": [_node("A"), _node("B")], "edges": [_edge("A", "B"), _edge("B", "A")]}

    result = asyncio.run(run_workflow(workflow, handlers))

    assert result.status == "error"
    assert "Cycle" in result.error
    assert a.calls == []


def test_unknown_handler_rejects_run_before_execution() -> None:
    a = StaticHandler("A")
    workflow = {"nodes": [_node("A"), _node("B", "missing")], "edges": [_edge("A", "B")]}

    result = asyncio.run(run_workflow(workflow, _registry(a)))

    assert result.status == "error"
    assert "missing" in result.error
    assert a.calls == []


def test_structural_error_reported_as_error_status() -> None:
    result = asyncio.run(run_workflow({"nodes": []}, _registry()))

    assert result.status == "error"
    assert result.success is False


def test_isolated_nodes_still_run() -> None:
    handlers = _registry(StaticHandler("A"), StaticHandler("B"))

    result = asyncio.run(run_workflow({"nodes": [_node("A"), _node("B")], "edges": []}, handlers))

    assert result.status == "success"
    assert result.execution_order == ["A", "B"]


def test_run_id_comes_from_context() -> None:
    result = asyncio.run(run_workflow({"nodes": [_node("A")], "edges": []}, _registry(StaticHandler("A")), {"run_id": "run_fixed"}))

    assert result.run_id == "run_fixed"


def test_assembled_graph_runs_with_builtin_handlers() -> None:
    plan = [
        PlannedStep(node_id="dataTransformer", category=StepCategory.PROCESS, label="Data Transformer", reason="r"),
        PlannedStep(node_id="delay", category=StepCategory.PROCESS, label="Delay", reason="r"),
        PlannedStep(node_id="outputLogger", category=StepCategory.OUTPUT, label="Output Logger", reason="r"),
    ]
    graph = assemble_workflow(plan)
    graph.nodes[1].data.config["delay_ms"] = 0

    result = asyncio.run(run_workflow(graph, build_default_handlers(), node_timeout_s=5))

    assert result.status == "success"
    assert result.outputs["1"]["transformed"] is True
    assert result.outputs["2"] == {"delayed": True, "delay_ms": 0}
    assert set(result.outputs["3"]["inputs"]) == {"1", "2"}


def test_default_handler_names() -> None:
    assert build_default_handlers().names() == ["dataFetcher", "dataTransformer", "delay", "outputLogger"]


def test_graph_model_with_duplicate_ids_is_rejected() -> None:
    graph = Graph(nodes=[GraphNode(id="A"), GraphNode(id="A")])

    with pytest.raises(WorkflowStructureError, match="duplicate node id A"):
        validate_graph_structure(graph)


def test_duplicate_ids_are_not_reported_as_a_cycle() -> None:
    handlers = _registry(StaticHandler("A"))
    workflow = {"nodes": [_node("A"), _node("A")], "edges": [_edge("A", "A")]}

    result = asyncio.run(run_workflow(workflow, handlers))

    assert result.status == "error"
    assert "duplicate node id" in result.error
    assert "Cycle" not in result.error


def test_data_fetcher_returns_sample_for_source() -> None:
    workflow = {
        "nodes": [
            {"id": "1", "type": "customNode", "data": {"handler": "dataFetcher", "config": {"source": "database"}}},
            {"id": "2", "type": "customNode", "data": {"handler": "outputLogger"}},
        ],
        "edges": [_edge("1", "2")],
    }

    result = asyncio.run(run_workflow(workflow, build_default_handlers()))

    assert result.status == "success"
    assert result.outputs["1"]["results"] == ["Item 1", "Item 2", "Item 3"]
    assert result.logs[0]["source"] == "database"
    assert result.outputs["2"]["inputs"]["1"] == result.outputs["1"]


def test_generated_fallback_workflow_runs_with_default_handlers(registry) -> None:
    generated = WorkflowGenerator(registry).generate("please do the thing now")

    result = asyncio.run(run_workflow(generated.workflow, build_default_handlers()))

    assert result.status == "success"
    assert result.execution_order == ["1", "2"]
