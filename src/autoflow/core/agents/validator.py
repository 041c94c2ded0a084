from __future__ import annotations

from autoflow.core.registry.registry import CapabilityRegistry
from autoflow.core.registry.schemas import StepCategory

from .assembler import add_node_to_workflow, remove_node_from_workflow
from .constants import DEFAULT_INPUT_NODE, DEFAULT_OUTPUT_NODE
from .context import AgentContext
from .planner import default_step
from .schemas import (
    DuplicateGroup,
    Graph,
    RepairResult,
    ValidateAndRepairResult,
    ValidationIssue,
    ValidationResult,
)


def has_category(graph: Graph, category: StepCategory) -> bool:
    return any(node.data.category is category for node in graph.nodes)


def find_orphan_nodes(graph: Graph) -> list[str]:
    if len(graph.nodes) <= 1:
        return []
    connected: set[str] = set()
    for edge in graph.edges:
        connected.add(edge.source)
        connected.add(edge.target)
    return [node.id for node in graph.nodes if node.id not in connected]


def has_cycles(graph: Graph) -> bool:
    adjacency: dict[str, list[str]] = {node.id: [] for node in graph.nodes}
    for edge in graph.edges:
        adjacency.setdefault(edge.source, []).append(edge.target)

    visited: set[str] = set()
    on_stack: set[str] = set()

    def visit(node_id: str) -> bool:
        visited.add(node_id)
        on_stack.add(node_id)
        for neighbour in adjacency.get(node_id, []):
            if neighbour not in visited:
                if visit(neighbour):
                    return True
            elif neighbour in on_stack:
                return True
        on_stack.discard(node_id)
        return False

    return any(node.id not in visited and visit(node.id) for node in graph.nodes)


def find_duplicate_process_nodes(graph: Graph) -> list[DuplicateGroup]:
    ids_by_step: dict[str | None, list[str]] = {}
    for node in graph.nodes:
        if node.data.category is StepCategory.PROCESS:
            ids_by_step.setdefault(node.data.node_id, []).append(node.id)
    return [
        DuplicateGroup(node_id=step_id, duplicate_ids=ids[1:])
        for step_id, ids in ids_by_step.items()
        if len(ids) > 1
    ]


def validate_workflow(graph: Graph | None) -> ValidationResult:
    if graph is None or not graph.nodes:
        return ValidationResult(valid=False, issues=[ValidationIssue(type="no_nodes", message="Workflow has no nodes")])

    issues: list[ValidationIssue] = []
    if not has_category(graph, StepCategory.INPUT):
        issues.append(ValidationIssue(type="no_input", message="Workflow has no input node"))
    if not has_category(graph, StepCategory.OUTPUT):
        issues.append(ValidationIssue(type="no_output", message="Workflow has no output node"))

    orphans = find_orphan_nodes(graph)
    if orphans:
        issues.append(
            ValidationIssue(type="orphan_nodes", message=f"Found {len(orphans)} orphan node(s)", node_ids=orphans)
        )

    if has_cycles(graph):
        issues.append(ValidationIssue(type="cycle_detected", message="Workflow contains cycles"))

    duplicates = find_duplicate_process_nodes(graph)
    if duplicates:
        issues.append(
            ValidationIssue(type="duplicate_nodes", message="Found duplicate process nodes", duplicates=duplicates)
        )

    return ValidationResult(valid=not issues, issues=issues)


def auto_repair_workflow(
    graph: Graph,
    registry: CapabilityRegistry,
    context: AgentContext | None = None,
    *,
    default_input_id: str = DEFAULT_INPUT_NODE,
    default_output_id: str = DEFAULT_OUTPUT_NODE,
) -> RepairResult:
    """Apply one corrective action per detected issue, then re-validate once.

    Orphans and cycles are reported but left alone. Compound failures can
    survive the single pass; they come back in ``remaining_issues``.
    """
    validation = validate_workflow(graph)
    if validation.valid:
        return RepairResult(workflow=graph)

    repaired_graph = graph
    repairs: list[str] = []

    def record(message: str) -> None:
        repairs.append(message)
        if context is not None:
            context.log_repair(message)
            context.log_decision("validator", "auto_repair", message)

    for issue in validation.issues:
        if issue.type == "no_nodes":
            step = default_step(registry, default_output_id, StepCategory.OUTPUT, "Auto-added for empty workflow")
            if step is not None:
                repaired_graph = add_node_to_workflow(repaired_graph, step, 0)
                record(f"Added {default_output_id} for empty workflow")

        elif issue.type == "no_input":
            step = default_step(registry, default_input_id, StepCategory.INPUT, "Auto-added missing input node")
            if step is not None:
                repaired_graph = add_node_to_workflow(repaired_graph, step, 0)
                record(f"Inserted {default_input_id} as default input")

        elif issue.type == "no_output":
            step = default_step(registry, default_output_id, StepCategory.OUTPUT, "Auto-added missing output node")
            if step is not None:
                repaired_graph = add_node_to_workflow(repaired_graph, step, -1)
                record(f"Added {default_output_id} as default output")

        elif issue.type == "orphan_nodes":
            if context is not None:
                context.log_decision(
                    "validator", "orphan_warning", "Orphan nodes detected but edges are sequential - no action needed"
                )

        elif issue.type == "cycle_detected":
            if context is not None:
                context.log_decision("validator", "cycle_warning", "Cycle detected - manual review recommended")

        elif issue.type == "duplicate_nodes":
            # Earlier repairs may have renumbered nodes, so duplicates are located again
            # and removed from the last position backwards; earlier positions stay put.
            positions = {node.id: index for index, node in enumerate(repaired_graph.nodes)}
            doomed = sorted(
                (
                    (positions[node_id], group.node_id)
                    for group in find_duplicate_process_nodes(repaired_graph)
                    for node_id in group.duplicate_ids
                ),
                reverse=True,
            )
            for position, step_id in doomed:
                repaired_graph = remove_node_from_workflow(repaired_graph, repaired_graph.nodes[position].id)
                record(f"Removed duplicate {step_id} node")

    final = validate_workflow(repaired_graph)
    if context is not None and not final.valid:
        context.log_decision(
            "validator", "repair_incomplete", f"{len(final.issues)} issue(s) remaining after auto-repair"
        )

    return RepairResult(
        workflow=repaired_graph,
        repairs=repairs,
        repaired=bool(repairs),
        remaining_issues=final.issues,
    )


def validate_and_repair(
    graph: Graph,
    registry: CapabilityRegistry,
    context: AgentContext | None = None,
    *,
    default_input_id: str = DEFAULT_INPUT_NODE,
    default_output_id: str = DEFAULT_OUTPUT_NODE,
) -> ValidateAndRepairResult:
    initial = validate_workflow(graph)
    if initial.valid:
        if context is not None:
            context.log_decision("validator", "validation_passed", "Workflow passed validation with no issues")
        return ValidateAndRepairResult(workflow=graph, valid=True)

    if context is not None:
        context.log_decision(
            "validator",
            "issues_found",
            f"Found {len(initial.issues)} issue(s): {', '.join(issue.type for issue in initial.issues)}",
        )

    result = auto_repair_workflow(
        graph,
        registry,
        context,
        default_input_id=default_input_id,
        default_output_id=default_output_id,
    )
    return ValidateAndRepairResult(
        workflow=result.workflow,
        valid=not result.remaining_issues,
        repairs=result.repairs,
        repaired=result.repaired,
        remaining_issues=result.remaining_issues,
    )
