from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from autoflow.core.agents.constants import API_VERSION
from autoflow.core.agents.generator import WorkflowGenerator
from autoflow.core.registry import CapabilityRegistry

from .deps import get_generator, get_registry

router = APIRouter()

EXAMPLE_PROMPTS: list[dict[str, str]] = [
    {"prompt": "Fetch blog posts and email me a summary", "description": "Input → Process → Output pipeline"},
    {"prompt": "Scrape news articles, analyze sentiment, send to Slack", "description": "Web scraping with analysis"},
    {"prompt": "Get RSS feed, summarize content, post to Twitter", "description": "Social media automation"},
    {"prompt": "Collect data from API, transform it, upload to S3", "description": "Data pipeline"},
    {"prompt": "Monitor website changes and notify me via SMS", "description": "Monitoring workflow"},
]


class GenerateWorkflowRequest(BaseModel):
    prompt: str = ""
    mode: Literal["agentic", "ai"] = "agentic"


@router.post("/generate-workflow")
def generate_workflow(
    request: GenerateWorkflowRequest,
    generator: WorkflowGenerator = Depends(get_generator),
) -> dict[str, Any]:
    if not request.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required and must be a non-empty string")
    if request.mode == "ai":
        raise HTTPException(
            status_code=400,
            detail="AI mode is not available on this endpoint; set mode to 'agentic'",
        )

    result = generator.generate(request.prompt)
    payload: dict[str, Any] = {
        "success": True,
        "version": API_VERSION,
        "source": "agentic",
        "mode": "agentic",
        "valid": result.valid,
        "workflow": result.workflow.model_dump(mode="json"),
        "context": result.context.finalize(),
        "execution_time_ms": result.execution_time_ms,
    }
    if result.remaining_issues:
        payload["remaining_issues"] = [issue.model_dump(mode="json", exclude_none=True) for issue in result.remaining_issues]
    if result.warning:
        payload["warning"] = result.warning
    return payload


@router.get("/nodes")
def list_nodes(registry: CapabilityRegistry = Depends(get_registry)) -> dict[str, Any]:
    nodes = [
        {
            "id": step.id,
            "label": step.label,
            "category": step.category.value,
            "capabilities": [capability.action for capability in step.capabilities],
        }
        for step in registry.list_all()
    ]
    return {"success": True, "count": len(nodes), "nodes": nodes}


@router.get("/examples")
def list_examples() -> dict[str, Any]:
    return {"success": True, "examples": EXAMPLE_PROMPTS}


@router.get("/health")
def agent_health() -> dict[str, Any]:
    return {
        "success": True,
        "version": API_VERSION,
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
