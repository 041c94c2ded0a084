from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from .schemas import Decision, Graph, Intent

logger = logging.getLogger(__name__)


@dataclass
class AgentContext:
    """Per-request scratchpad shared by the pipeline stages.

    Stages only ever append to ``decisions`` and ``repairs``; ``finalize`` is the
    projection handed back to callers for explainability.
    """

    prompt: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: float = field(default_factory=time.time)
    intent: Intent | None = None
    selected_nodes: list[str] = field(default_factory=list)
    workflow: Graph = field(default_factory=Graph)
    decisions: list[Decision] = field(default_factory=list)
    repairs: list[str] = field(default_factory=list)

    def log_decision(self, stage: str, action: str, reason: str) -> None:
        self.decisions.append(Decision(stage=stage, action=action, reason=reason, timestamp=time.time()))
        logger.debug(
            reason,
            extra={"extra_fields": {"request_id": self.id, "stage": stage, "action": action}},
        )

    def log_repair(self, repair: str) -> None:
        self.repairs.append(repair)

    def finalize(self) -> dict[str, Any]:
        return {
            "decisions": [decision.model_dump() for decision in self.decisions],
            "repairs": list(self.repairs),
            "intent": self.intent.model_dump() if self.intent is not None else None,
            "processing_time_ms": round((time.time() - self.timestamp) * 1000, 2),
        }


def create_agent_context(prompt: str | None) -> AgentContext:
    return AgentContext(prompt=prompt or "")
