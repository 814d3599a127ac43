"""Bounded-concurrency analysis of a batch of scanned files."""

from __future__ import annotations

import threading
import time
from collections import Counter
from typing import Callable, List, NamedTuple, Optional, Sequence

from ..logging import get_logger
from ..models import AnalysisSummary, FileAnalysisResult, ScannedFile
from .retry import MAX_RETRY_ATTEMPTS, with_retry
from .structural import StructuralAnalyzer, file_type_for

DEFAULT_CONCURRENCY = 5
CANCELLED_MESSAGE = "Analysis cancelled before start"


class AnalysisBatch(NamedTuple):
    results: List[FileAnalysisResult]
    summary: AnalysisSummary


class _Cursor:
    """Shared work index; ``claim`` is an atomic fetch-and-increment."""

    def __init__(self) -> None:
        self._next = 0
        self._lock = threading.Lock()

    def claim(self) -> int:
        with self._lock:
            index = self._next
            self._next += 1
            return index


class AnalysisOrchestrator:
    """Runs the structural analyzer over many files with a fixed-size worker pool."""

    def __init__(
        self,
        analyzer: StructuralAnalyzer,
        *,
        max_attempts: int = MAX_RETRY_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.analyzer = analyzer
        self.max_attempts = max_attempts
        self._sleep = sleep
        self.logger = get_logger("analysis.orchestrator")

    def analyze_all(
        self,
        files: Sequence[ScannedFile],
        concurrency: int = DEFAULT_CONCURRENCY,
        *,
        total_files: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AnalysisBatch:
        """Analyse ``files`` and return per-file results in input order plus a summary.

        Individual failures are recorded on the matching result and never stop
        the batch. ``total_files`` lets a caller analysing a slice report the
        repository-wide file count.
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        files_by_type = Counter(file_type_for(file.relative_path) for file in files)
        total_lines = sum(file.line_count for file in files)

        results: List[Optional[FileAnalysisResult]] = [None] * len(files)
        cursor = _Cursor()
        total = len(files)

        def worker() -> None:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    return
                index = cursor.claim()
                if index >= total:
                    return
                results[index] = self._analyze_one(files[index], index, total)

        worker_count = min(concurrency, total)
        threads = [
            threading.Thread(target=worker, name=f"repograph-analysis-{n}", daemon=True)
            for n in range(worker_count)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        final: List[FileAnalysisResult] = []
        for index, result in enumerate(results):
            if result is None:
                file = files[index]
                result = FileAnalysisResult(
                    file_path=file.absolute_path,
                    relative_path=file.relative_path,
                    error=CANCELLED_MESSAGE,
                )
            final.append(result)

        successful = sum(1 for result in final if result.succeeded)
        summary = AnalysisSummary(
            total_files=total_files if total_files is not None else total,
            total_lines=total_lines,
            successful_analyses=successful,
            failed_analyses=len(final) - successful,
            files_by_type=dict(files_by_type),
        )
        return AnalysisBatch(results=final, summary=summary)

    def _analyze_one(self, file: ScannedFile, index: int, total: int) -> FileAnalysisResult:
        self.logger.info("Analysing %d/%d: %s", index + 1, total, file.relative_path)
        try:
            analysis = with_retry(
                lambda: self.analyzer.analyze_file(file),
                self.max_attempts,
                sleep=self._sleep,
                description=file.relative_path,
            )
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            self.logger.warning("Analysis failed: %s -> %s", file.relative_path, message)
            return FileAnalysisResult(
                file_path=file.absolute_path,
                relative_path=file.relative_path,
                error=message,
            )
        self.logger.debug("Analysis successful: %s", file.relative_path)
        return FileAnalysisResult(
            file_path=file.absolute_path,
            relative_path=file.relative_path,
            analysis=analysis,
        )


__all__ = ["AnalysisBatch", "AnalysisOrchestrator", "CANCELLED_MESSAGE", "DEFAULT_CONCURRENCY"]
