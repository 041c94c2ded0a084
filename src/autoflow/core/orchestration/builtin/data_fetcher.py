from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from autoflow.core.agents.schemas import GraphNode
from autoflow.core.orchestration.schemas import HandlerResult, utc_now_iso

SAMPLE_DATA: dict[str, dict[str, Any]] = {
    "default": {
        "text": "Sample data from the data fetcher. It could come from an API, a database or a file.",
        "records": 100,
    },
    "api": {
        "users": [
            {"id": 1, "name": "John Doe", "email": "john@example.com"},
            {"id": 2, "name": "Jane Smith", "email": "jane@example.com"},
        ]
    },
    "database": {"results": ["Item 1", "Item 2", "Item 3"]},
}


class DataFetcherConfig(BaseModel):
    source: str = "default"


class DataFetcherHandler:
    """Returns canned records for ``config.source``; no network or disk access."""

    name = "dataFetcher"

    async def handle(self, node: GraphNode, outputs: dict[str, Any], context: dict[str, Any]) -> HandlerResult:
        config = DataFetcherConfig.model_validate(node.data.config)
        payload = SAMPLE_DATA.get(config.source, SAMPLE_DATA["default"])
        return HandlerResult(
            success=True,
            output={**payload, "fetched_at": utc_now_iso()},
            logs={"status": "completed", "source": config.source},
        )
