"""Tests for repograph.graph.builder."""

from __future__ import annotations

import pytest

from repograph.errors import GraphInvariantError
from repograph.graph.builder import GraphBuilder, _make_edge, build_graph
from repograph.models import FileAnalysisResult, FileNodeData, InternalImport
from tests._fixtures.analysis import analysed, failed, mixed_repository_payload, sample_results


def test_build_graph_from_sample_results() -> None:
    graph = build_graph(sample_results())

    assert [node.id for node in graph.nodes] == [
        "src/index.ts",
        "src/utils.ts",
        "src/services/api.ts",
        "src/shared.ts",
    ]
    assert {edge.id for edge in graph.edges} == {
        "src/index.ts->src/utils.ts",
        "src/index.ts->src/services/api.ts",
        "src/services/api.ts->src/shared.ts",
    }
    # External packages never become edges.
    targets = {edge.target for edge in graph.edges}
    assert not targets & {"express", "axios", "date-fns", "lodash"}
    assert {lib.name for lib in graph.external_libraries} == {"express", "lodash", "axios", "date-fns"}
    assert graph.unresolved_imports == []


def test_every_edge_endpoint_is_a_node() -> None:
    results = sample_results() + [
        analysed("src/extra.ts", [("./broken", ["x"]), ("./utils", ["helper"])])
    ]

    graph = build_graph(results)
    node_ids = graph.node_ids()

    assert all(edge.source in node_ids and edge.target in node_ids for edge in graph.edges)
    assert [(u.from_file, u.import_source) for u in graph.unresolved_imports] == [
        ("src/extra.ts", "./broken")
    ]


def test_failed_files_are_not_nodes_or_targets() -> None:
    results = [
        analysed("src/index.ts", [("./broken", ["x"])]),
        failed("src/broken.ts"),
    ]

    graph = build_graph(results)

    assert [node.id for node in graph.nodes] == ["src/index.ts"]
    assert graph.edges == []
    assert len(graph.unresolved_imports) == 1


def test_file_nodes_carry_analysis_metadata() -> None:
    [node] = build_graph([analysed("src/utils.ts")]).nodes

    assert node.kind == "file"
    assert node.label == "utils.ts"
    assert isinstance(node.metadata, FileNodeData)
    assert node.metadata.path == "src/utils.ts"
    assert node.metadata.line_count == 10
    assert node.to_dict()["data"]["fileType"] == "typescript"


def test_duplicate_files_keep_first_occurrence() -> None:
    first = analysed("src/a.ts", [("./b", ["one"])])
    second = analysed("./src/a.ts", [("./c", ["two"])])
    results = [first, second, analysed("src/b.ts"), analysed("src/c.ts")]

    graph = build_graph(results)

    assert [node.id for node in graph.nodes] == ["src/a.ts", "src/b.ts", "src/c.ts"]
    assert [edge.id for edge in graph.edges] == ["src/a.ts->src/b.ts"]


def test_repeated_imports_merge_into_one_edge() -> None:
    results = [
        analysed("src/a.ts", [("./b", ["one"]), ("./b.ts", ["two", "one"])]),
        analysed("src/b.ts"),
    ]

    [edge] = build_graph(results).edges

    assert edge.id == "src/a.ts->src/b.ts"
    assert edge.specifiers == ("one", "two")


def test_relative_imports_flagged_external_are_ignored() -> None:
    results = [
        analysed("src/a.ts", [("./b", ["x"], True)]),
        analysed("src/b.ts"),
    ]

    graph = build_graph(results)

    assert graph.edges == []
    assert graph.unresolved_imports == []
    assert graph.external_libraries == []


def test_build_edges_drops_imports_to_unknown_nodes() -> None:
    builder = GraphBuilder()
    nodes = builder.build_nodes([analysed("src/a.ts")])

    edges = builder.build_edges(nodes, [InternalImport("src/a.ts", "src/ghost.ts", ("x",))])

    assert edges == []


def test_make_edge_guards_missing_endpoints() -> None:
    with pytest.raises(GraphInvariantError):
        _make_edge({"src/a.ts"}, "src/a.ts", "src/ghost.ts", ())


def test_graph_serialises_to_json_shape() -> None:
    payload = build_graph(sample_results()).to_dict()

    assert set(payload) == {"nodes", "edges", "externalLibraries", "unresolvedImports"}
    assert payload["edges"][0] == {
        "id": "src/index.ts->src/utils.ts",
        "source": "src/index.ts",
        "target": "src/utils.ts",
        "type": "imports",
        "data": {"specifiers": ["helper"]},
    }
    assert {"id": "lib-express", "name": "express", "type": "external"} in payload["externalLibraries"]


def test_build_graph_tolerates_null_line_counts() -> None:
    payload = [result.to_dict() for result in sample_results()]
    payload[0]["analysis"]["lines"] = None

    graph = build_graph([FileAnalysisResult.from_dict(item) for item in payload])

    assert graph.nodes[0].metadata.line_count == 0
    assert len(graph.edges) == 3


def test_build_graph_from_stored_repository_payload() -> None:
    results = [FileAnalysisResult.from_dict(item) for item in mixed_repository_payload()]

    graph = build_graph(results)

    assert graph.node_ids() == {"src/index.ts", "src/utils.ts", "src/services/api.ts", "src/types.ts"}
    assert len(graph.nodes) == 4
    assert {edge.id for edge in graph.edges} == {
        "src/index.ts->src/utils.ts",
        "src/index.ts->src/services/api.ts",
        "src/services/api.ts->src/utils.ts",
    }
    endpoints = {edge.source for edge in graph.edges} | {edge.target for edge in graph.edges}
    assert not endpoints & {"express", "axios", "date-fns"}
    assert [edge.target for edge in graph.edges].count("src/utils.ts") == 2
    types_node = next(node for node in graph.nodes if node.id == "src/types.ts")
    assert [item.name for item in types_node.metadata.exports] == ["User", "Config"]
    assert graph.unresolved_imports == []
