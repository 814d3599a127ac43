"""Tests for the FastAPI service mode."""

from __future__ import annotations

from typing import Any

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from repograph.errors import CloneError, UpstreamError
from repograph.graph.builder import build_graph
from repograph.models import AnalysisSummary, RepositoryAnalysis
from repograph.service import create_app
from tests._fixtures.analysis import sample_results


class _Summaries:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def summarize(self, code: str, summary_type: str = "file", **kwargs: Any) -> str:
        self.calls.append({"code": code, "type": summary_type, **kwargs})
        if summary_type not in ("file", "entity"):
            raise ValueError("Unknown summary type")
        if code == "fail":
            raise UpstreamError("Extraction service failed: overloaded")
        return f"{summary_type} summary"


class _StubPipeline:
    def __init__(self) -> None:
        self.analysis_calls: list[dict[str, Any]] = []
        self.summaries = _Summaries()
        self.clone_error: str | None = None

    def run_analysis(self, repository_url, branch=None, repository_id=None, **kwargs):
        self.analysis_calls.append(
            {"url": repository_url, "branch": branch, "repository_id": repository_id, **kwargs}
        )
        if self.clone_error:
            raise CloneError(self.clone_error)
        return RepositoryAnalysis(
            repository_url=repository_url,
            branch=branch,
            analysed_at="2024-01-01T00:00:00+00:00",
            summary=AnalysisSummary(total_files=5, successful_analyses=4, failed_analyses=1),
            files=sample_results(),
        )

    def build_graph(self, results):
        return build_graph(results)


@pytest.fixture
def pipeline() -> _StubPipeline:
    return _StubPipeline()


@pytest.fixture
def client(pipeline: _StubPipeline) -> TestClient:
    return TestClient(create_app(lambda: pipeline))  # type: ignore[arg-type,return-value]


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_analyze_endpoint(client: TestClient, pipeline: _StubPipeline) -> None:
    response = client.post(
        "/analyze",
        json={
            "repository_url": "https://github.com/acme/web.git",
            "branch": "main",
            "max_files": 10,
            "skip_files": 0,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["repositoryUrl"] == "https://github.com/acme/web.git"
    assert body["summary"]["totalFiles"] == 5
    assert len(body["files"]) == 5
    assert pipeline.analysis_calls == [
        {
            "url": "https://github.com/acme/web.git",
            "branch": "main",
            "repository_id": None,
            "max_files": 10,
            "skip_files": 0,
        }
    ]


def test_analyze_rejects_invalid_slice(client: TestClient) -> None:
    response = client.post(
        "/analyze", json={"repository_url": "https://github.com/acme/web.git", "max_files": 0}
    )

    assert response.status_code == 422


def test_clone_errors_map_to_bad_gateway(client: TestClient, pipeline: _StubPipeline) -> None:
    pipeline.clone_error = "Failed to clone https://github.com/acme/private.git: not found"

    response = client.post("/analyze", json={"repository_url": "https://github.com/acme/private.git"})

    assert response.status_code == 502
    assert "not found" in response.json()["detail"]


def test_graph_endpoint(client: TestClient) -> None:
    files = [result.to_dict() for result in sample_results()]

    response = client.post("/graph", json={"files": files})

    assert response.status_code == 200
    body = response.json()
    assert len(body["nodes"]) == 4
    assert {edge["id"] for edge in body["edges"]} == {
        "src/index.ts->src/utils.ts",
        "src/index.ts->src/services/api.ts",
        "src/services/api.ts->src/shared.ts",
    }


def test_summary_endpoint(client: TestClient, pipeline: _StubPipeline) -> None:
    response = client.post(
        "/summary",
        json={"code": "function run() {}", "type": "entity", "entity_name": "run"},
    )

    assert response.status_code == 200
    assert response.json() == {"summary": "entity summary"}
    assert pipeline.summaries.calls[0]["entity_name"] == "run"


def test_summary_upstream_failure_maps_to_bad_request(client: TestClient) -> None:
    response = client.post("/summary", json={"code": "fail"})

    assert response.status_code == 400
    assert "overloaded" in response.json()["detail"]
