from .assembler import add_node_to_workflow, assemble_workflow, remove_node_from_workflow
from .context import AgentContext, create_agent_context
from .external import normalize_external_graph, resolve_step_label, validate_external_labels
from .generator import GenerationResult, WorkflowGenerator
from .intent import is_actionable_intent, parse_intent
from .planner import plan_workflow
from .validator import auto_repair_workflow, validate_and_repair, validate_workflow

__all__ = [
    "AgentContext",
    "GenerationResult",
    "WorkflowGenerator",
    "add_node_to_workflow",
    "assemble_workflow",
    "auto_repair_workflow",
    "create_agent_context",
    "is_actionable_intent",
    "normalize_external_graph",
    "parse_intent",
    "plan_workflow",
    "remove_node_from_workflow",
    "resolve_step_label",
    "validate_and_repair",
    "validate_external_labels",
    "validate_workflow",
]
