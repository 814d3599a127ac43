"""Value objects shared across the analysis pipeline.

Every model renders to the camelCase JSON shape consumed by the downstream
graph store via ``to_dict``. Models that are accepted back as input (analysis
results fed into ``build_graph``) also provide ``from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

EXPORT_KINDS = ("function", "class", "interface", "type", "const", "default")
ENTITY_KINDS = ("function", "class", "interface", "type", "variable")

NodeKind = Literal["file", "function", "class", "interface"]


@dataclass(frozen=True)
class ScannedFile:
    """A source file read from the scan root."""

    absolute_path: str
    relative_path: str
    file_name: str
    content: str
    line_count: int


@dataclass
class ImportStatement:
    """A single import as reported by the extraction service."""

    source: str
    specifiers: List[str] = field(default_factory=list)
    is_external: bool = False
    resolved_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "source": self.source,
            "specifiers": list(self.specifiers),
            "isExternal": self.is_external,
        }
        if self.resolved_path is not None:
            payload["resolvedPath"] = self.resolved_path
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImportStatement":
        return cls(
            source=str(data.get("source", "")),
            specifiers=_str_list(data.get("specifiers")),
            is_external=_as_bool(data.get("isExternal")),
            resolved_path=_opt_str(data.get("resolvedPath")),
        )


@dataclass
class ExportStatement:
    name: str
    kind: str

    def __post_init__(self) -> None:
        if self.kind not in EXPORT_KINDS:
            raise ValueError(f"Unknown export kind: {self.kind!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.kind}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExportStatement":
        return cls(name=str(data.get("name", "")), kind=str(data.get("type", "")))


@dataclass
class CodeEntity:
    """A named code entity with an inclusive line range."""

    name: str
    kind: str
    start_line: int
    end_line: int

    def __post_init__(self) -> None:
        if self.kind not in ENTITY_KINDS:
            raise ValueError(f"Unknown entity kind: {self.kind!r}")
        if self.start_line > self.end_line:
            raise ValueError(
                f"Entity {self.name!r} starts after it ends ({self.start_line} > {self.end_line})"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.kind,
            "startLine": self.start_line,
            "endLine": self.end_line,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CodeEntity":
        start = int(data.get("startLine", 0))
        end = int(data.get("endLine", start))
        # Service output occasionally reports ranges backwards.
        if start > end:
            start, end = end, start
        return cls(
            name=str(data.get("name", "")),
            kind=str(data.get("type", "")),
            start_line=start,
            end_line=end,
        )


@dataclass
class FileAnalysis:
    """Structural facts extracted for one file."""

    file_path: str
    file_name: str
    file_type: str
    line_count: int
    imports: List[ImportStatement] = field(default_factory=list)
    exports: List[ExportStatement] = field(default_factory=list)
    entities: List[CodeEntity] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filePath": self.file_path,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "lines": self.line_count,
            "imports": [item.to_dict() for item in self.imports],
            "exports": [item.to_dict() for item in self.exports],
            "entities": [item.to_dict() for item in self.entities],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileAnalysis":
        return cls(
            file_path=str(data.get("filePath", "")),
            file_name=str(data.get("fileName", "")),
            file_type=str(data.get("fileType", "")),
            line_count=_as_int(data.get("lines")),
            imports=[ImportStatement.from_dict(item) for item in _dict_list(data.get("imports"))],
            exports=_coerce_all(ExportStatement.from_dict, data.get("exports")),
            entities=_coerce_all(CodeEntity.from_dict, data.get("entities")),
        )


@dataclass
class FileAnalysisResult:
    """Outcome of analysing one file: either an analysis or an error, never both."""

    file_path: str
    relative_path: str
    analysis: Optional[FileAnalysis] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.analysis is None) == (self.error is None):
            raise ValueError(
                f"FileAnalysisResult for {self.relative_path} must carry exactly one of analysis/error"
            )

    @property
    def succeeded(self) -> bool:
        return self.analysis is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "filePath": self.file_path,
            "relativePath": self.relative_path,
            "analysis": self.analysis.to_dict() if self.analysis is not None else None,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileAnalysisResult":
        raw_analysis = data.get("analysis")
        analysis = FileAnalysis.from_dict(raw_analysis) if isinstance(raw_analysis, Mapping) else None
        error = _opt_str(data.get("error"))
        if analysis is None and error is None:
            error = "No analysis recorded"
        if analysis is not None:
            error = None
        return cls(
            file_path=str(data.get("filePath", "")),
            relative_path=str(data.get("relativePath", "")),
            analysis=analysis,
            error=error,
        )


@dataclass
class AnalysisSummary:
    total_files: int = 0
    total_lines: int = 0
    successful_analyses: int = 0
    failed_analyses: int = 0
    files_by_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "totalLines": self.total_lines,
            "successfulAnalyses": self.successful_analyses,
            "failedAnalyses": self.failed_analyses,
            "filesByType": dict(self.files_by_type),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisSummary":
        by_type = data.get("filesByType")
        return cls(
            total_files=_as_int(data.get("totalFiles")),
            total_lines=_as_int(data.get("totalLines")),
            successful_analyses=_as_int(data.get("successfulAnalyses")),
            failed_analyses=_as_int(data.get("failedAnalyses")),
            files_by_type={str(k): _as_int(v) for k, v in by_type.items()} if isinstance(by_type, Mapping) else {},
        )


@dataclass
class RepositoryAnalysis:
    """Analysis results for one repository (or one batch of it)."""

    repository_url: str
    analysed_at: str
    summary: AnalysisSummary
    files: List[FileAnalysisResult] = field(default_factory=list)
    branch: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"repositoryUrl": self.repository_url}
        if self.branch is not None:
            payload["branch"] = self.branch
        payload.update(
            {
                "analysedAt": self.analysed_at,
                "summary": self.summary.to_dict(),
                "files": [item.to_dict() for item in self.files],
            }
        )
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RepositoryAnalysis":
        summary = data.get("summary")
        return cls(
            repository_url=str(data.get("repositoryUrl", "")),
            branch=_opt_str(data.get("branch")),
            analysed_at=str(data.get("analysedAt", "")),
            summary=AnalysisSummary.from_dict(summary) if isinstance(summary, Mapping) else AnalysisSummary(),
            files=[FileAnalysisResult.from_dict(item) for item in _dict_list(data.get("files"))],
        )


@dataclass(frozen=True)
class FileNodeData:
    """Metadata carried by ``file`` nodes."""

    path: str
    line_count: int
    file_type: str
    exports: tuple[ExportStatement, ...] = ()
    entities: tuple[CodeEntity, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "lines": self.line_count,
            "fileType": self.file_type,
            "exports": [item.to_dict() for item in self.exports],
            "entities": [item.to_dict() for item in self.entities],
        }


@dataclass(frozen=True)
class EntityNodeData:
    """Metadata carried by ``function``/``class``/``interface`` nodes."""

    file_id: str
    start_line: int
    end_line: int

    def to_dict(self) -> Dict[str, Any]:
        return {"fileId": self.file_id, "startLine": self.start_line, "endLine": self.end_line}


NodeData = Union[FileNodeData, EntityNodeData]

_NODE_DATA_BY_KIND = {
    "file": FileNodeData,
    "function": EntityNodeData,
    "class": EntityNodeData,
    "interface": EntityNodeData,
}


@dataclass(frozen=True)
class GraphNode:
    id: str
    label: str
    kind: NodeKind
    metadata: NodeData

    def __post_init__(self) -> None:
        expected = _NODE_DATA_BY_KIND.get(self.kind)
        if expected is None:
            raise ValueError(f"Unknown node kind: {self.kind!r}")
        if not isinstance(self.metadata, expected):
            raise TypeError(
                f"Node {self.id!r} of kind {self.kind!r} requires {expected.__name__} metadata"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.kind,
            "data": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    specifiers: tuple[str, ...] = ()
    kind: Literal["imports"] = "imports"

    @property
    def id(self) -> str:
        return f"{self.source}->{self.target}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.kind,
            "data": {"specifiers": list(self.specifiers)},
        }


@dataclass(frozen=True)
class ExternalLibrary:
    id: str
    name: str
    kind: str = "external"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "type": self.kind}


@dataclass(frozen=True)
class InternalImport:
    from_file_id: str
    to_file_id: str
    specifiers: tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromFileId": self.from_file_id,
            "toFileId": self.to_file_id,
            "specifiers": list(self.specifiers),
        }


@dataclass(frozen=True)
class ExternalImport:
    from_file_id: str
    to_library_id: str
    specifiers: tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromFileId": self.from_file_id,
            "toLibraryId": self.to_library_id,
            "specifiers": list(self.specifiers),
        }


@dataclass(frozen=True)
class UnresolvedImport:
    """A relative import that matched no known file."""

    from_file: str
    import_source: str

    def to_dict(self) -> Dict[str, Any]:
        return {"fromFile": self.from_file, "importSource": self.import_source}


@dataclass
class DependencyExtraction:
    internal_imports: List[InternalImport] = field(default_factory=list)
    external_libraries: List[ExternalLibrary] = field(default_factory=list)
    external_imports: List[ExternalImport] = field(default_factory=list)
    unresolved_imports: List[UnresolvedImport] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "internalImports": [item.to_dict() for item in self.internal_imports],
            "externalLibraries": [item.to_dict() for item in self.external_libraries],
            "externalImports": [item.to_dict() for item in self.external_imports],
            "unresolvedImports": [item.to_dict() for item in self.unresolved_imports],
        }


@dataclass
class DependencyGraph:
    """File-level import graph plus the diagnostics gathered while building it."""

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    external_libraries: List[ExternalLibrary] = field(default_factory=list)
    unresolved_imports: List[UnresolvedImport] = field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "externalLibraries": [item.to_dict() for item in self.external_libraries],
            "unresolvedImports": [item.to_dict() for item in self.unresolved_imports],
        }


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes"}:
            return True
        if lowered in {"false", "0", "no", ""}:
            return False
        return default
    if isinstance(value, int):
        return value != 0
    return default


def _opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, (str, int, float))]


def _dict_list(value: Any) -> List[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _coerce_all(factory: Any, value: Any) -> List[Any]:
    """Build items from loose JSON, dropping entries with unknown kinds or bad numbers."""
    items: List[Any] = []
    for raw in _dict_list(value):
        try:
            items.append(factory(raw))
        except (TypeError, ValueError):
            continue
    return items
