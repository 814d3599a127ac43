"""Structural extraction for single source files via the completion service."""

from __future__ import annotations

import json
import re
from pathlib import PurePosixPath
from typing import Any, NamedTuple

from ..errors import ParseError, UpstreamError
from ..llm.runner import LLMRunner
from ..logging import get_logger
from ..models import FileAnalysis, ScannedFile
from ..prompting.constants import (
    FILE_ANALYSIS_PROMPT,
    FILE_ANALYSIS_SCHEMA,
    FILE_TYPE_MAP,
    STRUCTURED_RESPONSE_TEMPLATE,
)

_JSON_FENCE = re.compile(r"```json\s*\n(.*?)\n```", re.DOTALL)
_BARE_FENCE = re.compile(r"```\s*\n(.*?)\n```", re.DOTALL)

_MISS = object()


class ExtractionOutcome(NamedTuple):
    """Which extraction stage produced the payload, and the payload itself."""

    stage: str
    value: Any


def _fenced_stage(pattern: re.Pattern[str], text: str) -> Any:
    match = pattern.search(text)
    if match is None:
        return _MISS
    try:
        return json.loads(match.group(1).strip())
    except json.JSONDecodeError:
        return _MISS


def extract_json_outcome(text: str) -> ExtractionOutcome:
    """Parse a JSON payload from a service response.

    Stages run in a fixed order: a ```json fence, then a bare ``` fence, then
    the raw trimmed text. Earlier stages fall through on a miss; only the raw
    stage raises.
    """
    stripped = text.strip()
    for stage, pattern in (("json_fence", _JSON_FENCE), ("bare_fence", _BARE_FENCE)):
        value = _fenced_stage(pattern, stripped)
        if value is not _MISS:
            return ExtractionOutcome(stage, value)
    try:
        return ExtractionOutcome("raw", json.loads(stripped))
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse JSON: {exc}") from exc


def extract_json(text: str) -> Any:
    return extract_json_outcome(text).value


def file_type_for(path: str) -> str:
    suffix = PurePosixPath(path).suffix.lower()
    return FILE_TYPE_MAP.get(suffix, suffix[1:])


class StructuralAnalyzer:
    """Wraps calls to the completion service with a fixed prompt/schema contract."""

    def __init__(self, runner: LLMRunner | None = None) -> None:
        self.runner = runner or LLMRunner()
        self.logger = get_logger("analysis.structural")

    def analyze_text(self, prompt: str, code: str) -> str:
        """Send ``prompt`` plus fenced ``code`` and return the raw response text."""
        message = f"{prompt}\n\n```\n{code}\n```"
        try:
            response = self.runner.run(message)
        except Exception as exc:
            raise UpstreamError(f"Extraction service failed: {exc}") from exc
        if not isinstance(response, str) or not response.strip():
            raise UpstreamError("Extraction service failed: no text content returned")
        return response

    def analyze_structured(self, prompt: str, code: str, schema: str) -> Any:
        """Request a single fenced JSON block matching ``schema`` and parse it."""
        structured_prompt = STRUCTURED_RESPONSE_TEMPLATE.format(prompt=prompt, schema=schema)
        response = self.analyze_text(structured_prompt, code)
        outcome = extract_json_outcome(response)
        self.logger.debug("Parsed structured response via %s stage", outcome.stage)
        return outcome.value

    def analyze_file(self, file: ScannedFile) -> FileAnalysis:
        """Extract imports, exports and entities for ``file``.

        Path, name and line count always come from the scanned file rather than
        the service response.
        """
        payload = self.analyze_structured(FILE_ANALYSIS_PROMPT, file.content, FILE_ANALYSIS_SCHEMA)
        if not isinstance(payload, dict):
            raise ParseError(
                f"Failed to parse JSON: expected an object, got {type(payload).__name__}"
            )

        data = dict(payload)
        data["filePath"] = file.relative_path
        data["fileName"] = file.file_name
        data["lines"] = file.line_count
        file_type = data.get("fileType")
        if not isinstance(file_type, str) or not file_type.strip():
            data["fileType"] = file_type_for(file.relative_path)
        return FileAnalysis.from_dict(data)


__all__ = [
    "ExtractionOutcome",
    "StructuralAnalyzer",
    "extract_json",
    "extract_json_outcome",
    "file_type_for",
]
