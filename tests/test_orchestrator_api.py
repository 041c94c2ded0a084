from __future__ import annotations

from fastapi.testclient import TestClient

from autoflow.apps.api import deps
from autoflow.apps.api.main import app


def _client() -> TestClient:
    deps.get_settings.cache_clear()
    deps.get_handler_registry.cache_clear()
    return TestClient(app)


def _node(node_id: str, handler: str, **config) -> dict:
    return {"id": node_id, "type": "customNode", "data": {"handler": handler, "config": config}}


def test_run_succeeds_with_builtin_handlers() -> None:
    workflow = {
        "nodes": [_node("1", "dataTransformer"), _node("2", "delay", delay_ms=0), _node("3", "outputLogger")],
        "edges": [{"source": "1", "target": "2"}, {"source": "2", "target": "3"}],
    }
    with _client() as client:
        response = client.post("/orchestrator/run", json=workflow)

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["status"] == "success"
    assert payload["execution_order"] == ["1", "2", "3"]
    assert payload["run_id"].startswith("run_")


def test_run_structural_error_is_400() -> None:
    with _client() as client:
        response = client.post("/orchestrator/run", json={"nodes": [], "edges": []})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "at least one node" in response.json()["error"]


def test_run_with_dangling_edge_is_400() -> None:
    workflow = {"nodes": [_node("1", "delay", delay_ms=0)], "edges": [{"source": "1", "target": "99"}]}
    with _client() as client:
        response = client.post("/orchestrator/run", json=workflow)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "1 -> 99" in response.json()["error"]


def test_run_with_duplicate_node_ids_is_400() -> None:
    workflow = {"nodes": [_node("1", "delay", delay_ms=0), _node("1", "outputLogger")], "edges": []}
    with _client() as client:
        response = client.post("/orchestrator/run", json=workflow)

    assert response.status_code == 400
    assert "duplicate node id" in response.json()["error"]


def test_run_resolves_handlers_from_step_labels() -> None:
    workflow = {
        "nodes": [
            {"id": "1", "type": "customNode", "data": {"label": "Data Fetcher"}},
            {"id": "2", "type": "customNode", "data": {"label": "Output Logger"}},
        ],
        "edges": [{"source": "1", "target": "2"}],
    }
    with _client() as client:
        response = client.post("/orchestrator/run", json=workflow)

    assert response.status_code == 200
    assert [entry["type"] for entry in response.json()["logs"]] == ["dataFetcher", "outputLogger"]


def test_run_with_unknown_handler_is_500_with_result() -> None:
    workflow = {"nodes": [_node("1", "aiSummarizer")], "edges": []}
    with _client() as client:
        response = client.post("/orchestrator/run", json=workflow)

    assert response.status_code == 500
    payload = response.json()
    assert payload["status"] == "error"
    assert "aiSummarizer" in payload["error"]


def test_run_with_cycle_is_500_with_result() -> None:
    workflow = {
        "nodes": [_node("1", "delay", delay_ms=0), _node("2", "delay", delay_ms=0)],
        "edges": [{"source": "1", "target": "2"}, {"source": "2", "target": "1"}],
    }
    with _client() as client:
        response = client.post("/orchestrator/run", json=workflow)

    assert response.status_code == 500
    assert response.json()["status"] == "error"


def test_node_types_and_health() -> None:
    with _client() as client:
        node_types = client.get("/orchestrator/node-types").json()
        health = client.get("/orchestrator/health").json()
        healthz = client.get("/healthz").json()

    assert node_types == {"node_types": ["dataFetcher", "dataTransformer", "delay", "outputLogger"], "count": 4}
    assert health["status"] == "healthy"
    assert healthz == {"ok": True}
