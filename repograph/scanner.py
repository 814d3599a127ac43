"""Source file discovery and reading for the analysis pipeline."""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .config import DEFAULT_EXTENSIONS, DEFAULT_IGNORE_PATTERNS
from .errors import FileReadError, ScanTraversalError
from .logging import get_logger
from .models import ScannedFile

ProgressCallback = Callable[[int, int, str], None]


def glob_matches(rel_path: str, pattern: str) -> bool:
    """Match a root-relative POSIX path against a ``**``-style glob.

    ``fnmatch`` lets ``*`` cross directory separators, so ``**/`` behaves as
    "any leading directories"; the prefix is also tried stripped so that the
    pattern matches at the root.
    """
    if fnmatchcase(rel_path, pattern):
        return True
    if pattern.startswith("**/"):
        return glob_matches(rel_path, pattern[3:])
    return False


def _include_patterns(extensions: Sequence[str]) -> List[str]:
    return [f"**/*{ext}" for ext in extensions]


def _dir_prefixes(ignore_patterns: Sequence[str]) -> List[str]:
    # "**/node_modules/**" prunes the "node_modules" directory itself.
    return [pattern[:-3] for pattern in ignore_patterns if pattern.endswith("/**")]


def _is_ignored(rel_path: str, ignore_patterns: Sequence[str]) -> bool:
    return any(glob_matches(rel_path, pattern) for pattern in ignore_patterns)


def _iter_candidates(
    root: Path, extensions: Sequence[str], ignore_patterns: Sequence[str]
) -> List[str]:
    includes = _include_patterns(extensions)
    dir_prefixes = _dir_prefixes(ignore_patterns)

    candidates: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in sorted(dirnames):
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if any(glob_matches(rel_path, prefix) for prefix in dir_prefixes):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if not any(glob_matches(rel_path, pattern) for pattern in includes):
                continue
            if _is_ignored(rel_path, ignore_patterns):
                continue
            candidates.append(rel_path)
    return candidates


class FileScanner:
    """Enumerates and reads candidate source files beneath a root directory."""

    def __init__(
        self,
        extensions: Optional[Sequence[str]] = None,
        ignore_patterns: Optional[Sequence[str]] = None,
    ) -> None:
        self.extensions = tuple(extensions) if extensions is not None else DEFAULT_EXTENSIONS
        self.ignore_patterns = (
            tuple(ignore_patterns) if ignore_patterns is not None else DEFAULT_IGNORE_PATTERNS
        )
        self.logger = get_logger("scanner")

    def scan(
        self,
        root: str | Path,
        extensions: Optional[Sequence[str]] = None,
        ignore_patterns: Optional[Sequence[str]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[ScannedFile]:
        """Read every matching file under ``root``; unreadable or escaping entries are skipped."""
        root_path = self._resolve_root(root)
        candidates = _iter_candidates(
            root_path,
            extensions if extensions is not None else self.extensions,
            ignore_patterns if ignore_patterns is not None else self.ignore_patterns,
        )

        files: List[ScannedFile] = []
        total = len(candidates)
        for index, rel_path in enumerate(candidates, start=1):
            try:
                files.append(self._read_entry(root_path, rel_path))
            except ScanTraversalError as exc:
                self.logger.warning("Skipping traversal attempt: %s", exc)
            except FileReadError as exc:
                self.logger.warning("%s", exc)
            if on_progress is not None:
                on_progress(index, total, rel_path)

        self.logger.debug("Scanned %d of %d candidate files under %s", len(files), total, root_path)
        return files

    def count(
        self,
        root: str | Path,
        extensions: Optional[Sequence[str]] = None,
        ignore_patterns: Optional[Sequence[str]] = None,
    ) -> int:
        """Count matching files without reading them."""
        root_path = self._resolve_root(root)
        return len(
            _iter_candidates(
                root_path,
                extensions if extensions is not None else self.extensions,
                ignore_patterns if ignore_patterns is not None else self.ignore_patterns,
            )
        )

    @staticmethod
    def _resolve_root(root: str | Path) -> Path:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Scan root not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Scan root is not a directory: {root}")
        return root_path

    @staticmethod
    def _read_entry(root: Path, rel_path: str) -> ScannedFile:
        absolute = (root / rel_path).resolve()
        if absolute == root or not absolute.is_relative_to(root):
            raise ScanTraversalError(rel_path, str(absolute))
        try:
            content = absolute.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FileReadError(rel_path, str(exc)) from exc
        return ScannedFile(
            absolute_path=str(absolute),
            relative_path=rel_path,
            file_name=Path(rel_path).name,
            content=content,
            line_count=content.count("\n") + 1,
        )


__all__ = ["FileScanner", "glob_matches"]
