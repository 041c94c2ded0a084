from __future__ import annotations

from typing import Any

from autoflow.core.agents.schemas import GraphNode
from autoflow.core.orchestration.schemas import HandlerResult


class DataTransformerHandler:
    """Passes upstream outputs through, marked as transformed."""

    name = "dataTransformer"

    async def handle(self, node: GraphNode, outputs: dict[str, Any], context: dict[str, Any]) -> HandlerResult:
        return HandlerResult(
            success=True,
            output={"transformed": True, "source_nodes": list(outputs.keys())},
            logs={"status": "completed"},
        )
