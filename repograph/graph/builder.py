"""File-level dependency graph assembly."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Sequence

from ..errors import GraphInvariantError
from ..logging import get_logger
from ..models import (
    DependencyGraph,
    FileAnalysisResult,
    FileNodeData,
    GraphEdge,
    GraphNode,
    InternalImport,
)
from .resolver import DependencyResolver, ResolverInput, is_relative_import, normalize_path


class GraphBuilder:
    """Builds nodes for analysed files and edges for resolved internal imports."""

    def __init__(self) -> None:
        self.logger = get_logger("graph.builder")

    def build_nodes(self, files: Iterable[FileAnalysisResult]) -> List[GraphNode]:
        """One ``file`` node per analysed result; the first occurrence of an id wins."""
        nodes: List[GraphNode] = []
        seen: set[str] = set()
        for file in files:
            analysis = file.analysis
            if analysis is None:
                continue
            node_id = normalize_path(file.relative_path)
            if node_id in seen:
                self.logger.debug("Duplicate file node %s ignored", node_id)
                continue
            seen.add(node_id)
            nodes.append(
                GraphNode(
                    id=node_id,
                    label=analysis.file_name or PurePosixPath(node_id).name,
                    kind="file",
                    metadata=FileNodeData(
                        path=node_id,
                        line_count=analysis.line_count,
                        file_type=analysis.file_type,
                        exports=tuple(analysis.exports),
                        entities=tuple(analysis.entities),
                    ),
                )
            )
        return nodes

    def build_edges(
        self, nodes: Sequence[GraphNode], internal_imports: Iterable[InternalImport]
    ) -> List[GraphEdge]:
        """One ``imports`` edge per source/target pair, both ends guaranteed to be nodes.

        Repeated imports between the same pair merge their specifiers into one edge.
        """
        node_ids = {node.id for node in nodes}
        edges: Dict[str, GraphEdge] = {}
        for item in internal_imports:
            if item.from_file_id not in node_ids or item.to_file_id not in node_ids:
                self.logger.debug(
                    "Dropping import %s -> %s: endpoint is not a graph node",
                    item.from_file_id,
                    item.to_file_id,
                )
                continue
            edge = _make_edge(node_ids, item.from_file_id, item.to_file_id, item.specifiers)
            existing = edges.get(edge.id)
            if existing is not None:
                merged = existing.specifiers + tuple(
                    name for name in edge.specifiers if name not in existing.specifiers
                )
                edge = _make_edge(node_ids, edge.source, edge.target, merged)
            edges[edge.id] = edge
        return list(edges.values())

    def build(
        self, files: Iterable[FileAnalysisResult], internal_imports: Iterable[InternalImport]
    ) -> DependencyGraph:
        nodes = self.build_nodes(files)
        edges = self.build_edges(nodes, internal_imports)
        self.logger.info("Created %d nodes and %d edges", len(nodes), len(edges))
        return DependencyGraph(nodes=nodes, edges=edges)


def _make_edge(
    node_ids: set[str], source: str, target: str, specifiers: Iterable[str]
) -> GraphEdge:
    if source not in node_ids or target not in node_ids:
        raise GraphInvariantError(f"Edge {source}->{target} references a missing node")
    return GraphEdge(source=source, target=target, specifiers=tuple(specifiers))


def build_graph(
    files: Sequence[FileAnalysisResult],
    *,
    resolver: DependencyResolver | None = None,
    builder: GraphBuilder | None = None,
) -> DependencyGraph:
    """Compose resolution and graph assembly over previously analysed files.

    Imports the extraction service flagged as external never become edges,
    even when their specifier looks relative.
    """
    resolver = resolver or DependencyResolver()
    builder = builder or GraphBuilder()

    nodes = builder.build_nodes(files)
    node_ids = {node.id for node in nodes}

    inputs: List[ResolverInput] = []
    claimed: set[str] = set()
    for file in files:
        analysis = file.analysis
        if analysis is None:
            continue
        node_id = normalize_path(file.relative_path)
        if node_id in claimed or node_id not in node_ids:
            continue
        claimed.add(node_id)
        imports = tuple(
            statement
            for statement in analysis.imports
            if not (statement.is_external and is_relative_import(statement.source))
        )
        inputs.append(ResolverInput(id=node_id, file_path=node_id, imports=imports))

    extraction = resolver.resolve(inputs)
    edges = builder.build_edges(nodes, extraction.internal_imports)
    builder.logger.info("Created %d nodes and %d edges", len(nodes), len(edges))
    return DependencyGraph(
        nodes=nodes,
        edges=edges,
        external_libraries=list(extraction.external_libraries),
        unresolved_imports=list(extraction.unresolved_imports),
    )


__all__ = ["GraphBuilder", "build_graph"]
