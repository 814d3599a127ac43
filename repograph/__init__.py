"""Repository structure analysis: clone, scan, extract and graph source dependencies."""

from .errors import CloneError, RepographError
from .graph.builder import build_graph
from .pipeline import Pipeline

__version__ = "0.1.0"

__all__ = ["CloneError", "Pipeline", "RepographError", "__version__", "build_graph"]
