from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from autoflow.core.agents.external import normalize_external_graph
from autoflow.core.config import AutoflowSettings
from autoflow.core.orchestration.executor import run_workflow, validate_graph_structure
from autoflow.core.orchestration.handlers import HandlerRegistry
from autoflow.core.registry import CapabilityRegistry

from .deps import get_handler_registry, get_registry, get_settings

router = APIRouter()


@router.post("/run")
async def execute_workflow(
    workflow: Any = Body(...),
    handlers: HandlerRegistry = Depends(get_handler_registry),
    registry: CapabilityRegistry = Depends(get_registry),
    settings: AutoflowSettings = Depends(get_settings),
) -> JSONResponse:
    # Structural errors propagate to the app-level handler as 400s.
    graph = normalize_external_graph(validate_graph_structure(workflow), registry)
    result = await run_workflow(graph, handlers, node_timeout_s=settings.node_timeout_s)
    status_code = 200 if result.success else 500
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


@router.get("/node-types")
def node_types(handlers: HandlerRegistry = Depends(get_handler_registry)) -> dict[str, Any]:
    names = handlers.names()
    return {"node_types": names, "count": len(names)}


@router.get("/health")
def orchestrator_health() -> dict[str, Any]:
    return {
        "status": "healthy",
        "service": "orchestrator",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
