"""End-to-end repository analysis: fetch, scan, analyse, clean up."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

from .analysis.orchestrator import AnalysisOrchestrator
from .analysis.structural import StructuralAnalyzer
from .analysis.summaries import SummaryGenerator
from .config import RepographConfig, load_config
from .git.fetcher import RepositoryFetcher, repository_id_from_url
from .graph.builder import build_graph
from .llm.runner import LLMRunner
from .logging import get_logger
from .models import (
    AnalysisSummary,
    DependencyGraph,
    FileAnalysisResult,
    RepositoryAnalysis,
    ScannedFile,
)
from .scanner import FileScanner

BatchCallback = Callable[[RepositoryAnalysis], None]


class Pipeline:
    """Coordinates fetching, scanning and analysis for one repository at a time."""

    def __init__(
        self,
        config: RepographConfig | None = None,
        *,
        fetcher: RepositoryFetcher | None = None,
        scanner: FileScanner | None = None,
        analyzer: StructuralAnalyzer | None = None,
        orchestrator: AnalysisOrchestrator | None = None,
    ) -> None:
        self.config = config or load_config()
        self.fetcher = fetcher or RepositoryFetcher(
            self.config.fetch.scratch_root,
            stale_after=self.config.fetch.stale_after_hours * 3600,
        )
        self.scanner = scanner or FileScanner(
            self.config.scan.extensions, self.config.scan.ignore_patterns
        )
        if analyzer is None:
            analyzer = orchestrator.analyzer if orchestrator is not None else None
        self.analyzer = analyzer or StructuralAnalyzer(LLMRunner.from_config(self.config.llm))
        self.orchestrator = orchestrator or AnalysisOrchestrator(
            self.analyzer, max_attempts=self.config.analysis.max_attempts
        )
        self.summaries = SummaryGenerator(self.analyzer)
        self.logger = get_logger("pipeline")

    def run_analysis(
        self,
        repository_url: str,
        branch: Optional[str] = None,
        repository_id: Optional[str] = None,
        max_files: Optional[int] = None,
        skip_files: Optional[int] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> RepositoryAnalysis:
        """Clone, scan and analyse one slice of a repository.

        ``skip_files``/``max_files`` select the slice; the summary still reports
        the full scanned file count. The clone is removed on every exit path.
        """
        skip = _non_negative(skip_files, "skip_files")
        limit = _positive_or_none(max_files, "max_files")

        with self._checkout(repository_url, repository_id, branch) as root:
            all_files = self._scan(root)
            files = all_files[skip : skip + limit if limit is not None else None]
            self.logger.info(
                "Analysing batch: %d-%d of %d", skip, skip + len(files), len(all_files)
            )
            batch = self.orchestrator.analyze_all(
                files,
                self.config.analysis.concurrency,
                total_files=len(all_files),
                cancel_event=cancel_event,
            )

        self.logger.info(
            "Success: %d, Failed: %d",
            batch.summary.successful_analyses,
            batch.summary.failed_analyses,
        )
        return _repository_analysis(repository_url, branch, batch.results, batch.summary)

    def run_batched(
        self,
        repository_url: str,
        branch: Optional[str] = None,
        repository_id: Optional[str] = None,
        *,
        batch_size: Optional[int] = None,
        on_batch_complete: Optional[BatchCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> RepositoryAnalysis:
        """Analyse a whole repository in fixed-size batches from a single clone.

        Each batch is handed to ``on_batch_complete`` as it finishes; a failing
        callback is logged and does not stop later batches.
        """
        size = _positive_or_none(batch_size, "batch_size") or self.config.analysis.batch_size

        results: List[FileAnalysisResult] = []
        merged = AnalysisSummary()
        with self._checkout(repository_url, repository_id, branch) as root:
            all_files = self._scan(root)
            merged.total_files = len(all_files)
            for skip in range(0, len(all_files), size):
                if cancel_event is not None and cancel_event.is_set():
                    self.logger.warning("Batched analysis cancelled at offset %d", skip)
                    break
                files = all_files[skip : skip + size]
                self.logger.info("Analysing batch starting at file %d", skip)
                batch = self.orchestrator.analyze_all(
                    files,
                    self.config.analysis.concurrency,
                    total_files=len(all_files),
                    cancel_event=cancel_event,
                )
                results.extend(batch.results)
                _merge_summary(merged, batch.summary)
                self.logger.info(
                    "Batch complete: %d files (%d/%d total)",
                    len(batch.results),
                    merged.successful_analyses,
                    merged.total_files,
                )
                if on_batch_complete is not None:
                    try:
                        on_batch_complete(
                            _repository_analysis(repository_url, branch, batch.results, batch.summary)
                        )
                    except Exception as exc:
                        self.logger.error(
                            "Batch callback failed at offset %d: %s", skip, exc
                        )

        self.logger.info(
            "Analysis complete: %d/%d files", merged.successful_analyses, merged.total_files
        )
        return _repository_analysis(repository_url, branch, results, merged)

    def build_graph(self, results: Sequence[FileAnalysisResult]) -> DependencyGraph:
        return build_graph(results)

    def count(self, root: str | Path) -> int:
        return self.scanner.count(root)

    @contextmanager
    def _checkout(
        self, repository_url: str, repository_id: Optional[str], branch: Optional[str]
    ) -> Iterator[Path]:
        repo_id = repository_id or repository_id_from_url(repository_url)
        cloned: Optional[Path] = None
        try:
            cloned = self.fetcher.fetch(repository_url, repo_id, branch)
            yield cloned
        finally:
            if cloned is not None:
                self.logger.debug("Removing cloned path %s", cloned)
                self.fetcher.remove(cloned)

    def _scan(self, root: Path) -> List[ScannedFile]:
        self.logger.info("Scanning for files...")
        files = self.scanner.scan(root)
        self.logger.info("Found %d files", len(files))
        return files


def _repository_analysis(
    repository_url: str,
    branch: Optional[str],
    files: List[FileAnalysisResult],
    summary: AnalysisSummary,
) -> RepositoryAnalysis:
    return RepositoryAnalysis(
        repository_url=repository_url,
        branch=branch,
        analysed_at=datetime.now(UTC).isoformat(),
        summary=summary,
        files=files,
    )


def _merge_summary(target: AnalysisSummary, batch: AnalysisSummary) -> None:
    target.total_lines += batch.total_lines
    target.successful_analyses += batch.successful_analyses
    target.failed_analyses += batch.failed_analyses
    for file_type, count in batch.files_by_type.items():
        target.files_by_type[file_type] = target.files_by_type.get(file_type, 0) + count


def _non_negative(value: Optional[int], name: str) -> int:
    if value is None:
        return 0
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return value


def _positive_or_none(value: Optional[int], name: str) -> Optional[int]:
    if value is None:
        return None
    if value < 1:
        raise ValueError(f"{name} must be at least 1")
    return value


__all__ = ["BatchCallback", "Pipeline"]
