from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

RunStatus = Literal["success", "failed", "error"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class HandlerResult(BaseModel):
    success: bool
    output: Any = None
    logs: dict[str, Any] = Field(default_factory=dict)


class TopologicalOrder(BaseModel):
    order: list[str] = Field(default_factory=list)
    has_cycle: bool = False


class ExecutionResult(BaseModel):
    success: bool
    run_id: str
    status: RunStatus
    execution_order: list[str] = Field(default_factory=list)
    outputs: dict[str, Any] = Field(default_factory=dict)
    logs: list[dict[str, Any]] = Field(default_factory=list)
    execution_time_ms: float = 0.0
    failed_node: str | None = None
    error: str | None = None
    completed_at: str = Field(default_factory=utc_now_iso)
