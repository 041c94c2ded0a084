from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from autoflow.core.agents.assembler import edge_id
from autoflow.core.agents.schemas import Graph, GraphEdge, GraphNode
from autoflow.core.errors import WorkflowStructureError
from autoflow.core.logging import log_event
from autoflow.core.logging.context import log_context

from .handlers import HandlerRegistry, StepHandler
from .schemas import ExecutionResult, HandlerResult, TopologicalOrder, utc_now_iso

logger = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _check_references(graph: Graph) -> Graph:
    seen: set[str] = set()
    for node in graph.nodes:
        if node.id in seen:
            raise WorkflowStructureError(f"Invalid workflow: duplicate node id {node.id}")
        seen.add(node.id)
    for edge in graph.edges:
        if edge.source not in seen or edge.target not in seen:
            raise WorkflowStructureError(f"Invalid edge: {edge.source} -> {edge.target} references an unknown node")
    return graph


def validate_graph_structure(graph: Graph | Mapping[str, Any] | None) -> Graph:
    """Check the raw shape of a workflow and return it as a ``Graph``.

    Raises ``WorkflowStructureError`` for anything the executor cannot order,
    including duplicate node ids and edges that name a missing node.
    """
    if isinstance(graph, Graph):
        if not graph.nodes:
            raise WorkflowStructureError("Invalid workflow: must have at least one node")
        return _check_references(graph)

    if not isinstance(graph, Mapping):
        raise WorkflowStructureError("Invalid workflow: must be an object")
    nodes = graph.get("nodes")
    edges = graph.get("edges")
    if not isinstance(nodes, list):
        raise WorkflowStructureError("Invalid workflow: nodes must be an array")
    if not isinstance(edges, list):
        raise WorkflowStructureError("Invalid workflow: edges must be an array")
    if not nodes:
        raise WorkflowStructureError("Invalid workflow: must have at least one node")

    for index, node in enumerate(nodes):
        if not isinstance(node, Mapping) or not node.get("id"):
            raise WorkflowStructureError(f"Node at index {index} missing required field: id")
        if not node.get("type"):
            raise WorkflowStructureError(f"Node {node['id']} missing required field: type")

    for index, edge in enumerate(edges):
        if not isinstance(edge, Mapping) or not edge.get("source"):
            raise WorkflowStructureError(f"Edge at index {index} missing required field: source")
        if not edge.get("target"):
            raise WorkflowStructureError(f"Edge at index {index} missing required field: target")

    # JSON clients send numeric ids; the graph model keys everything by string.
    normalized_nodes = [{**node, "id": str(node["id"])} for node in nodes]
    normalized_edges = [
        {
            **edge,
            "id": str(edge.get("id") or edge_id(str(edge["source"]), str(edge["target"]))),
            "source": str(edge["source"]),
            "target": str(edge["target"]),
        }
        for edge in edges
    ]
    try:
        validated = Graph.model_validate(
            {"nodes": normalized_nodes, "edges": normalized_edges, "metadata": graph.get("metadata") or {}}
        )
    except ValidationError as exc:
        raise WorkflowStructureError(f"Invalid workflow: {exc.error_count()} invalid field(s)") from exc
    return _check_references(validated)


def topological_sort(nodes: list[GraphNode], edges: list[GraphEdge]) -> TopologicalOrder:
    adjacency: dict[str, list[str]] = {node.id: [] for node in nodes}
    in_degree: dict[str, int] = {node.id: 0 for node in nodes}

    for edge in edges:
        if edge.source not in adjacency or edge.target not in adjacency:
            raise WorkflowStructureError(f"Invalid edge: {edge.source} -> {edge.target}")
        adjacency[edge.source].append(edge.target)
        in_degree[edge.target] += 1

    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    order: list[str] = []
    while queue:
        current = queue.popleft()
        order.append(current)
        for neighbour in adjacency[current]:
            in_degree[neighbour] -= 1
            if in_degree[neighbour] == 0:
                queue.append(neighbour)

    return TopologicalOrder(order=order, has_cycle=len(order) != len(nodes))


def resolve_handler_key(node: GraphNode) -> str:
    return node.data.handler or node.data.node_id or node.type


def _node_log(node: GraphNode, handler_key: str, status: str, **fields: Any) -> dict[str, Any]:
    return {"node_id": node.id, "type": handler_key, "status": status, "timestamp": utc_now_iso(), **fields}


async def _execute_node(
    node: GraphNode,
    handler: StepHandler,
    handler_key: str,
    outputs: dict[str, Any],
    context: dict[str, Any],
    timeout_s: float | None,
) -> HandlerResult:
    with log_context(node_id=node.id):
        logger.info("node started", extra={"extra_fields": {"handler": handler_key}})
        started = time.perf_counter()
        try:
            call = handler.handle(node, dict(outputs), context)
            raw = await asyncio.wait_for(call, timeout=timeout_s) if timeout_s else await call
            result = raw if isinstance(raw, HandlerResult) else HandlerResult.model_validate(raw)
        except asyncio.TimeoutError:
            logger.warning(
                "node timed out",
                extra={"extra_fields": {"handler": handler_key, "timeout_s": timeout_s}},
            )
            return HandlerResult(
                success=False,
                logs=_node_log(node, handler_key, "timeout", error=f"Node timed out after {timeout_s}s"),
            )
        except Exception as exc:
            logger.exception("node raised", extra={"extra_fields": {"handler": handler_key}})
            return HandlerResult(success=False, logs=_node_log(node, handler_key, "error", error=str(exc)))

        status = "completed" if result.success else "failed"
        logs = _node_log(node, handler_key, status, execution_time_ms=_elapsed_ms(started))
        logs.update(result.logs)
        level = logging.INFO if result.success else logging.WARNING
        logger.log(level, "node %s", status, extra={"extra_fields": {"handler": handler_key}})
        return result.model_copy(update={"logs": logs})


async def run_workflow(
    graph: Graph | Mapping[str, Any],
    handlers: HandlerRegistry,
    context: dict[str, Any] | None = None,
    *,
    node_timeout_s: float | None = None,
) -> ExecutionResult:
    """Execute every node in dependency order, stopping at the first failure.

    Structural problems, cycles and unknown handlers reject the run before any
    node executes and come back as ``status="error"``.
    """
    started = time.perf_counter()
    context = dict(context or {})
    run_id = str(context.get("run_id") or f"run_{uuid4().hex[:12]}")
    context["run_id"] = run_id

    with log_context(run_id=run_id):
        try:
            workflow = validate_graph_structure(graph)
            ordering = topological_sort(workflow.nodes, workflow.edges)
            if ordering.has_cycle:
                raise WorkflowStructureError("Cycle detected in workflow graph")
            nodes_by_id = {node.id: node for node in workflow.nodes}
            plan = [(nodes_by_id[node_id], resolve_handler_key(nodes_by_id[node_id])) for node_id in ordering.order]
            missing = sorted({key for _, key in plan if not handlers.has(key)})
            if missing:
                raise WorkflowStructureError(f"No handler found for step type(s): {', '.join(missing)}")
        except WorkflowStructureError as exc:
            log_event(logger, logging.WARNING, "run_rejected", "workflow rejected", error=str(exc))
            return ExecutionResult(
                success=False,
                run_id=run_id,
                status="error",
                error=str(exc),
                execution_time_ms=_elapsed_ms(started),
            )

        log_event(
            logger,
            logging.INFO,
            "run_started",
            "workflow execution started",
            execution_order=ordering.order,
        )
        outputs: dict[str, Any] = {}
        logs: list[dict[str, Any]] = []
        failed_node: str | None = None

        for node, handler_key in plan:
            result = await _execute_node(node, handlers.get(handler_key), handler_key, outputs, context, node_timeout_s)
            outputs[node.id] = result.output
            logs.append(result.logs)
            if not result.success:
                failed_node = node.id
                break

        status = "failed" if failed_node else "success"
        elapsed = _elapsed_ms(started)
        log_event(
            logger,
            logging.INFO if status == "success" else logging.ERROR,
            "run_finished",
            f"workflow {status}",
            failed_node=failed_node,
            execution_time_ms=elapsed,
        )
        return ExecutionResult(
            success=status == "success",
            run_id=run_id,
            status=status,
            execution_order=ordering.order,
            outputs=outputs,
            logs=logs,
            execution_time_ms=elapsed,
            failed_node=failed_node,
            error=logs[-1].get("error") if failed_node else None,
        )
