from __future__ import annotations

import asyncio
from typing import Any

from pydantic import BaseModel, Field

from autoflow.core.agents.schemas import GraphNode
from autoflow.core.orchestration.schemas import HandlerResult

DEFAULT_DELAY_MS = 500


class DelayConfig(BaseModel):
    delay_ms: int = Field(default=DEFAULT_DELAY_MS, ge=0)


class DelayHandler:
    name = "delay"

    async def handle(self, node: GraphNode, outputs: dict[str, Any], context: dict[str, Any]) -> HandlerResult:
        config = DelayConfig.model_validate(node.data.config)
        await asyncio.sleep(config.delay_ms / 1000)
        return HandlerResult(
            success=True,
            output={"delayed": True, "delay_ms": config.delay_ms},
            logs={"status": "completed", "delay_ms": config.delay_ms},
        )
