"""Error taxonomy for the analysis pipeline."""

from __future__ import annotations


class RepographError(RuntimeError):
    """Base class for pipeline failures."""


class CloneError(RepographError):
    """Raised when the repository cannot be cloned. Fatal to the whole run."""


class ScanTraversalError(RepographError):
    """A matched path resolves outside the scan root."""

    def __init__(self, relative_path: str, resolved: str) -> None:
        super().__init__(f"Path escapes scan root: {relative_path} -> {resolved}")
        self.relative_path = relative_path
        self.resolved = resolved


class FileReadError(RepographError):
    """A scanned file could not be read as text."""

    def __init__(self, relative_path: str, reason: str) -> None:
        super().__init__(f"Failed to read file {relative_path}: {reason}")
        self.relative_path = relative_path


class UpstreamError(RepographError):
    """The structural-extraction service call failed or returned nothing usable."""


class ParseError(RepographError):
    """The service responded but no valid JSON could be extracted."""


class GraphInvariantError(RepographError):
    """An edge would reference a node that is not part of the graph."""


__all__ = [
    "CloneError",
    "FileReadError",
    "GraphInvariantError",
    "ParseError",
    "RepographError",
    "ScanTraversalError",
    "UpstreamError",
]
