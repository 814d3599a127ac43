"""Import specifier classification and resolution against known files."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence

from ..logging import get_logger
from ..models import (
    DependencyExtraction,
    ExternalImport,
    ExternalLibrary,
    ImportStatement,
    InternalImport,
    UnresolvedImport,
)

EXTENSIONS_TO_TRY: tuple[str, ...] = (
    "",
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    "/index.ts",
    "/index.js",
)

_LIBRARY_ID_CHARS = re.compile(r"[@/]")


@dataclass(frozen=True)
class ResolverInput:
    """One analysed file as seen by the resolver."""

    id: str
    file_path: str
    imports: Sequence[ImportStatement] = field(default_factory=tuple)


def normalize_path(file_path: str) -> str:
    """Use forward slashes and drop a single leading ``./``."""
    normalized = file_path.replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def is_relative_import(source: str) -> bool:
    return source.startswith("./") or source.startswith("../")


def resolve_import_path(source: str, from_file: str) -> str:
    """Join a relative specifier onto the importing file's directory."""
    from_directory = posixpath.dirname(normalize_path(from_file))
    return normalize_path(posixpath.normpath(posixpath.join(from_directory, source)))


def find_matching_file(resolved_path: str, known_files: Mapping[str, str]) -> Optional[str]:
    """Return the id of the first known file matching ``resolved_path`` plus a candidate suffix."""
    for extension in EXTENSIONS_TO_TRY:
        candidate = normalize_path(resolved_path + extension)
        file_id = known_files.get(candidate)
        if file_id is not None:
            return file_id
    return None


def library_name(source: str) -> str:
    """Package identity of an external specifier (``@scope/name`` keeps both segments)."""
    parts = source.split("/")
    if source.startswith("@"):
        return "/".join(parts[:2])
    return parts[0]


def library_id(name: str) -> str:
    return f"lib-{_LIBRARY_ID_CHARS.sub('-', name)}"


class DependencyResolver:
    """Splits file imports into internal edges, external libraries and unresolved leftovers."""

    def __init__(self) -> None:
        self.logger = get_logger("graph.resolver")

    def resolve(self, files: Sequence[ResolverInput]) -> DependencyExtraction:
        known_files: Dict[str, str] = {}
        for file in files:
            known_files.setdefault(normalize_path(file.file_path), file.id)

        result = DependencyExtraction()
        libraries: Dict[str, ExternalLibrary] = {}

        for file in files:
            for statement in file.imports:
                source = statement.source
                if not source:
                    self.logger.debug("Ignoring empty import specifier in %s", file.file_path)
                    continue

                if is_relative_import(source):
                    resolved = resolve_import_path(source, file.file_path)
                    target_id = find_matching_file(resolved, known_files)
                    if target_id is not None:
                        result.internal_imports.append(
                            InternalImport(
                                from_file_id=file.id,
                                to_file_id=target_id,
                                specifiers=tuple(statement.specifiers),
                            )
                        )
                    else:
                        self.logger.debug(
                            "Unresolved relative import: %s -> %s", file.file_path, source
                        )
                        result.unresolved_imports.append(
                            UnresolvedImport(from_file=file.file_path, import_source=source)
                        )
                    continue

                name = library_name(source)
                library = libraries.get(name)
                if library is None:
                    library = ExternalLibrary(id=library_id(name), name=name)
                    libraries[name] = library
                    result.external_libraries.append(library)
                result.external_imports.append(
                    ExternalImport(
                        from_file_id=file.id,
                        to_library_id=library.id,
                        specifiers=tuple(statement.specifiers),
                    )
                )

        self.logger.info(
            "Resolved %d files: %d internal, %d external (%d libraries), %d unresolved",
            len(files),
            len(result.internal_imports),
            len(result.external_imports),
            len(result.external_libraries),
            len(result.unresolved_imports),
        )
        return result


__all__ = [
    "DependencyResolver",
    "EXTENSIONS_TO_TRY",
    "ResolverInput",
    "find_matching_file",
    "is_relative_import",
    "library_name",
    "normalize_path",
    "resolve_import_path",
]