from __future__ import annotations

from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from autoflow.core.errors import RegistryLoadError, WorkflowStructureError
from autoflow.core.logging import configure_logging
from autoflow.core.logging.context import log_context

from .deps import get_registry, get_settings
from .routes_agent import router as agent_router
from .routes_orchestrator import router as orchestrator_router

app = FastAPI(title="Autoflow API")
configure_logging(get_settings().state_dir, settings=get_settings())

app.include_router(agent_router, prefix="/agent", tags=["agent"])
app.include_router(orchestrator_router, prefix="/orchestrator", tags=["orchestrator"])


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
    with log_context(correlation_id=correlation_id):
        response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


@app.exception_handler(WorkflowStructureError)
async def workflow_structure_error_handler(request: Request, exc: WorkflowStructureError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": str(exc)})


@app.exception_handler(RegistryLoadError)
async def registry_load_error_handler(request: Request, exc: RegistryLoadError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"success": False, "error": str(exc)})


@app.on_event("startup")
def startup() -> None:
    app.state.registry = get_registry()


@app.get("/healthz")
def healthz() -> dict[str, bool]:
    return {"ok": True}


def run() -> None:
    uvicorn.run("autoflow.apps.api.main:app", reload=True, host="127.0.0.1", port=8000)
