"""Dependency resolution and file-level graph construction."""

from .builder import GraphBuilder, build_graph
from .resolver import DependencyResolver, ResolverInput

__all__ = ["DependencyResolver", "GraphBuilder", "ResolverInput", "build_graph"]
