"""Free-text technical summaries for files and code entities."""

from __future__ import annotations

from typing import Optional

from ..logging import get_logger
from ..prompting.constants import ENTITY_SUMMARY_PROMPT, FILE_SUMMARY_PROMPT
from .structural import StructuralAnalyzer

SUMMARY_TYPES = ("file", "entity")


class SummaryGenerator:
    """Produces short prose summaries through the structural analyzer's text call."""

    def __init__(self, analyzer: StructuralAnalyzer) -> None:
        self.analyzer = analyzer
        self.logger = get_logger("analysis.summaries")

    def summarize(
        self,
        code: str,
        summary_type: str = "file",
        *,
        entity_name: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> str:
        if summary_type not in SUMMARY_TYPES:
            raise ValueError(
                f"Unknown summary type: {summary_type!r} (expected one of {', '.join(SUMMARY_TYPES)})"
            )
        is_file = summary_type == "file"
        prompt = FILE_SUMMARY_PROMPT if is_file else ENTITY_SUMMARY_PROMPT
        if file_path:
            prompt += f"\n\nFile path: {file_path}"
        if not is_file and entity_name:
            prompt += f"\n\nEntity name: {entity_name}"

        self.logger.info(
            "Generating %s summary%s%s",
            summary_type,
            f" for {entity_name}" if entity_name and not is_file else "",
            f" ({file_path})" if file_path else "",
        )
        summary = self.analyzer.analyze_text(prompt, code).strip()
        self.logger.debug("Summary generated (%d characters)", len(summary))
        return summary


__all__ = ["SUMMARY_TYPES", "SummaryGenerator"]
