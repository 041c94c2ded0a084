from __future__ import annotations

from autoflow.core.registry.registry import CapabilityRegistry
from autoflow.core.registry.schemas import StepCategory

from .constants import (
    DEFAULT_INPUT_NODE,
    DEFAULT_OUTPUT_NODE,
    DEFAULT_STEP_SCORE,
    EXPLICIT_OUTPUT_SCORE,
    FALLBACK_PENALTY,
    OUTPUT_STEP_MAP,
)
from .context import AgentContext
from .intent import round_half_up
from .schemas import Intent, PlannedStep


def find_best_step_for_action(
    registry: CapabilityRegistry, action_type: str, intent_confidence: float = 1.0
) -> PlannedStep | None:
    best: PlannedStep | None = None
    best_score = 0.0
    for step in registry.list_all():
        for capability in step.capabilities:
            if capability.action != action_type:
                continue
            penalty = FALLBACK_PENALTY if step.is_fallback else 0.0
            score = capability.strength * intent_confidence * (1 / step.priority) - penalty
            if score > best_score:
                best_score = score
                best = PlannedStep(
                    node_id=step.id,
                    category=step.category,
                    label=step.label,
                    reason=f"Matched '{action_type}' with capability score {capability.strength}",
                    score=round_half_up(score),
                    is_fallback=step.is_fallback,
                )
    return best


def map_outputs_to_steps(registry: CapabilityRegistry, outputs: list[str]) -> list[PlannedStep]:
    planned: list[PlannedStep] = []
    for output in outputs:
        step_id = OUTPUT_STEP_MAP.get(output)
        step = registry.by_id(step_id) if step_id else None
        if step is None:
            continue
        planned.append(
            PlannedStep(
                node_id=step.id,
                category=StepCategory.OUTPUT,
                label=step.label,
                reason=f"Explicit output target: {output}",
                score=EXPLICIT_OUTPUT_SCORE,
            )
        )
    return planned


def deduplicate_steps(steps: list[PlannedStep]) -> list[PlannedStep]:
    seen: dict[str, PlannedStep] = {}
    for step in steps:
        existing = seen.get(step.node_id)
        if existing is None or step.score > existing.score:
            seen[step.node_id] = step
    return list(seen.values())


def sort_by_category(steps: list[PlannedStep]) -> list[PlannedStep]:
    return sorted(steps, key=lambda step: (step.category.order, -step.score))


def default_step(
    registry: CapabilityRegistry, step_id: str, category: StepCategory, reason: str
) -> PlannedStep | None:
    definition = registry.by_id(step_id)
    if definition is None:
        return None
    return PlannedStep(
        node_id=definition.id,
        category=category,
        label=definition.label,
        reason=reason,
        score=DEFAULT_STEP_SCORE,
        is_fallback=True,
    )


def plan_workflow(
    intent: Intent | None,
    registry: CapabilityRegistry,
    context: AgentContext | None = None,
    *,
    default_input_id: str = DEFAULT_INPUT_NODE,
    default_output_id: str = DEFAULT_OUTPUT_NODE,
) -> list[PlannedStep]:
    if intent is None or not intent.actions:
        if context is not None:
            context.log_decision("planner", "no_actions", "No actionable intents found")
        return []

    selected: list[PlannedStep] = []
    for action in intent.actions:
        match = find_best_step_for_action(registry, action.type, action.confidence)
        if match is None:
            if context is not None:
                context.log_decision("planner", "action_unmatched", f"No node found for action: {action.type}")
            continue
        selected.append(match)
        if context is not None:
            context.log_decision("planner", "action_matched", f"{action.type} → {match.node_id} (score: {match.score})")

    explicit = map_outputs_to_steps(registry, intent.outputs)
    selected.extend(explicit)
    if context is not None and explicit:
        context.log_decision(
            "planner",
            "outputs_added",
            f"Added {len(explicit)} explicit output node(s): {', '.join(step.node_id for step in explicit)}",
        )

    plan = sort_by_category(deduplicate_steps(selected))

    if plan and not any(step.category is StepCategory.INPUT for step in plan):
        default_input = default_step(
            registry, default_input_id, StepCategory.INPUT, "Added default input node (no input detected)"
        )
        if default_input is not None:
            plan.insert(0, default_input)
            if context is not None:
                context.log_decision("planner", "default_input_added", f"Added {default_input_id} as default input")

    if plan and not any(step.category is StepCategory.OUTPUT for step in plan):
        default_output = default_step(
            registry, default_output_id, StepCategory.OUTPUT, "Added default output node (no output detected)"
        )
        if default_output is not None:
            plan.append(default_output)
            if context is not None:
                context.log_decision("planner", "default_output_added", f"Added {default_output_id} as default output")

    if context is not None:
        context.log_decision(
            "planner",
            "plan_complete",
            f"Final plan: {len(plan)} node(s) - {' → '.join(step.node_id for step in plan)}",
        )
    return plan
