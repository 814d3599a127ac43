"""Tests for repograph.models."""

from __future__ import annotations

import pytest

from repograph.models import (
    CodeEntity,
    EntityNodeData,
    ExportStatement,
    FileAnalysis,
    FileAnalysisResult,
    FileNodeData,
    GraphEdge,
    GraphNode,
    RepositoryAnalysis,
)


def _analysis() -> FileAnalysis:
    return FileAnalysis(file_path="src/a.ts", file_name="a.ts", file_type="typescript", line_count=3)


def test_result_requires_exactly_one_of_analysis_or_error() -> None:
    with pytest.raises(ValueError):
        FileAnalysisResult(file_path="/x/a.ts", relative_path="a.ts")
    with pytest.raises(ValueError):
        FileAnalysisResult(
            file_path="/x/a.ts", relative_path="a.ts", analysis=_analysis(), error="boom"
        )

    ok = FileAnalysisResult(file_path="/x/a.ts", relative_path="a.ts", analysis=_analysis())
    bad = FileAnalysisResult(file_path="/x/a.ts", relative_path="a.ts", error="boom")
    assert ok.succeeded and not bad.succeeded
    assert bad.to_dict() == {
        "filePath": "/x/a.ts",
        "relativePath": "a.ts",
        "analysis": None,
        "error": "boom",
    }


def test_result_from_dict_without_analysis_records_error() -> None:
    result = FileAnalysisResult.from_dict({"filePath": "/x/a.ts", "relativePath": "a.ts"})

    assert result.error == "No analysis recorded"


def test_entity_validates_kind_and_range() -> None:
    with pytest.raises(ValueError):
        CodeEntity(name="x", kind="module", start_line=1, end_line=2)
    with pytest.raises(ValueError):
        CodeEntity(name="x", kind="function", start_line=5, end_line=2)
    with pytest.raises(ValueError):
        ExportStatement(name="x", kind="namespace")


def test_file_analysis_from_dict_drops_invalid_items() -> None:
    analysis = FileAnalysis.from_dict(
        {
            "filePath": "src/a.ts",
            "fileName": "a.ts",
            "fileType": "typescript",
            "lines": 40,
            "imports": [{"source": "./b", "specifiers": ["b"], "isExternal": False}, "junk"],
            "exports": [{"name": "a", "type": "const"}, {"name": "ns", "type": "namespace"}],
            "entities": [
                {"name": "run", "type": "function", "startLine": 10, "endLine": 4},
                {"name": "mod", "type": "module", "startLine": 1, "endLine": 2},
                {"name": "bad", "type": "class", "startLine": "x", "endLine": 2},
            ],
        }
    )

    assert [item.source for item in analysis.imports] == ["./b"]
    assert [item.name for item in analysis.exports] == ["a"]
    assert [(e.name, e.start_line, e.end_line) for e in analysis.entities] == [("run", 4, 10)]


def test_file_analysis_from_dict_tolerates_loose_scalars() -> None:
    analysis = FileAnalysis.from_dict(
        {
            "filePath": "src/a.ts",
            "fileName": "a.ts",
            "fileType": "typescript",
            "lines": None,
            "imports": [
                {"source": "./b", "specifiers": ["b"], "isExternal": "false"},
                {"source": "react", "specifiers": ["useState"], "isExternal": "true"},
                {"source": "./c", "specifiers": [], "isExternal": None},
            ],
        }
    )

    assert analysis.line_count == 0
    assert [item.is_external for item in analysis.imports] == [False, True, False]
    assert FileAnalysis.from_dict({"lines": "12"}).line_count == 12
    assert FileAnalysis.from_dict({"lines": "many"}).line_count == 0


def test_graph_node_metadata_must_match_kind() -> None:
    file_data = FileNodeData(path="a.ts", line_count=1, file_type="typescript")
    entity_data = EntityNodeData(file_id="a.ts", start_line=1, end_line=3)

    GraphNode(id="a.ts", label="a.ts", kind="file", metadata=file_data)
    GraphNode(id="a.ts#run", label="run", kind="function", metadata=entity_data)
    with pytest.raises(TypeError):
        GraphNode(id="a.ts", label="a.ts", kind="file", metadata=entity_data)
    with pytest.raises(ValueError):
        GraphNode(id="a.ts", label="a.ts", kind="module", metadata=file_data)  # type: ignore[arg-type]


def test_edge_id_and_serialised_shape() -> None:
    edge = GraphEdge(source="src/index.ts", target="src/utils.ts", specifiers=("helper",))

    assert edge.id == "src/index.ts->src/utils.ts"
    assert edge.to_dict() == {
        "id": "src/index.ts->src/utils.ts",
        "source": "src/index.ts",
        "target": "src/utils.ts",
        "type": "imports",
        "data": {"specifiers": ["helper"]},
    }


def test_repository_analysis_round_trips_through_json_shape() -> None:
    payload = {
        "repositoryUrl": "https://github.com/acme/web.git",
        "branch": "main",
        "analysedAt": "2024-01-01T00:00:00+00:00",
        "summary": {
            "totalFiles": 2,
            "totalLines": 5,
            "successfulAnalyses": 1,
            "failedAnalyses": 1,
            "filesByType": {"typescript": 2},
        },
        "files": [
            {"filePath": "/x/a.ts", "relativePath": "a.ts", "analysis": _analysis().to_dict()},
            {"filePath": "/x/b.ts", "relativePath": "b.ts", "analysis": None, "error": "boom"},
        ],
    }

    analysis = RepositoryAnalysis.from_dict(payload)

    assert analysis.to_dict() == payload
