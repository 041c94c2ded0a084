from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from autoflow.core.config import AutoflowSettings
from autoflow.core.logging.context import log_context
from autoflow.core.registry.registry import CapabilityRegistry
from autoflow.core.registry.schemas import StepCategory

from .assembler import assemble_workflow, create_flow_node
from .context import AgentContext, create_agent_context
from .intent import is_actionable_intent, parse_intent
from .planner import default_step, plan_workflow
from .schemas import Graph, ValidationIssue
from .validator import validate_and_repair, validate_workflow

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    workflow: Graph
    valid: bool
    context: AgentContext
    repairs: list[str] = field(default_factory=list)
    remaining_issues: list[ValidationIssue] = field(default_factory=list)
    warning: str | None = None
    execution_time_ms: float = 0.0


class WorkflowGenerator:
    """Runs intent -> plan -> assemble -> validate/repair for a single prompt."""

    def __init__(self, registry: CapabilityRegistry, settings: AutoflowSettings | None = None) -> None:
        self.registry = registry
        self.settings = settings or AutoflowSettings()

    def generate(self, prompt: str) -> GenerationResult:
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValueError("Prompt is required and must be a non-empty string")

        started = time.perf_counter()
        context = create_agent_context(prompt)
        with log_context(request_id=context.id):
            logger.info("agentic pipeline started", extra={"extra_fields": {"prompt_preview": prompt[:50]}})
            result = self._run(prompt, context)
            result.execution_time_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.info(
                "agentic pipeline finished",
                extra={
                    "extra_fields": {
                        "node_count": len(result.workflow.nodes),
                        "valid": result.valid,
                        "repair_count": len(result.repairs),
                    }
                },
            )
        return result

    def _run(self, prompt: str, context: AgentContext) -> GenerationResult:
        intent = parse_intent(prompt, context)
        context.intent = intent

        if not is_actionable_intent(intent):
            context.log_decision(
                "planner", "no_op_workflow", "No actionable intent found, creating minimal output workflow"
            )
            workflow = self._minimal_workflow(prompt)
            context.log_repair(f"No actionable intent found, added {self.settings.default_output_node}")
            context.workflow = workflow
            # Not run through repair: a lone output step is the intended no-op shape.
            validation = validate_workflow(workflow)
            return GenerationResult(
                workflow=workflow,
                valid=validation.valid,
                context=context,
                remaining_issues=validation.issues,
            )

        planned = plan_workflow(
            intent,
            self.registry,
            context,
            default_input_id=self.settings.default_input_node,
            default_output_id=self.settings.default_output_node,
        )
        context.selected_nodes = [step.node_id for step in planned]

        assembled = assemble_workflow(planned, context, {"prompt": prompt, "generated_from": "agentic"})
        checked = validate_and_repair(
            assembled,
            self.registry,
            context,
            default_input_id=self.settings.default_input_node,
            default_output_id=self.settings.default_output_node,
        )
        context.workflow = checked.workflow

        warning = f"Auto-repaired {len(checked.repairs)} issue(s)" if checked.repairs else None
        return GenerationResult(
            workflow=checked.workflow,
            valid=checked.valid,
            context=context,
            repairs=checked.repairs,
            remaining_issues=checked.remaining_issues,
            warning=warning,
        )

    def _minimal_workflow(self, prompt: str) -> Graph:
        step = default_step(
            self.registry, self.settings.default_output_node, StepCategory.OUTPUT, "No actionable intent found"
        )
        nodes = [create_flow_node(step, 0)] if step is not None else []
        return Graph(
            nodes=nodes,
            edges=[],
            metadata={"prompt": prompt, "generated_at": datetime.now(timezone.utc).isoformat()},
        )
