from __future__ import annotations

import logging
from typing import Any

from autoflow.core.agents.schemas import GraphNode
from autoflow.core.orchestration.schemas import HandlerResult

logger = logging.getLogger(__name__)


class OutputLoggerHandler:
    name = "outputLogger"

    async def handle(self, node: GraphNode, outputs: dict[str, Any], context: dict[str, Any]) -> HandlerResult:
        logger.info(
            "workflow output collected",
            extra={"extra_fields": {"upstream_nodes": sorted(outputs.keys())}},
        )
        return HandlerResult(
            success=True,
            output={"logged": True, "inputs": dict(outputs)},
            logs={"status": "completed", "collected": len(outputs)},
        )
