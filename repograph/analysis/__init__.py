"""Per-file structural analysis and the worker pool that drives it."""

from .orchestrator import AnalysisBatch, AnalysisOrchestrator
from .retry import with_retry
from .structural import StructuralAnalyzer, extract_json
from .summaries import SummaryGenerator

__all__ = [
    "AnalysisBatch",
    "AnalysisOrchestrator",
    "StructuralAnalyzer",
    "SummaryGenerator",
    "extract_json",
    "with_retry",
]
