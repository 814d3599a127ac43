"""Shallow repository clones into isolated scratch directories."""

from __future__ import annotations

import itertools
import shutil
import subprocess
import time
from pathlib import Path
from typing import Callable, Iterable

from ..errors import CloneError
from ..logging import get_logger

DEFAULT_STALE_AGE_SECONDS = 24 * 60 * 60


def repository_id_from_url(repository_url: str) -> str:
    """Derive a directory-safe repository id from its URL (``.../name.git`` -> ``name``)."""
    last = repository_url.rstrip("/").split("/")[-1]
    if last.endswith(".git"):
        last = last[: -len(".git")]
    return last or "repo"


class RepositoryFetcher:
    """Clones remote repositories with ``git clone --depth=1`` and cleans them up."""

    def __init__(
        self,
        scratch_root: Path | str,
        *,
        stale_after: float = DEFAULT_STALE_AGE_SECONDS,
        runner: Callable[..., None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.scratch_root = Path(scratch_root)
        self.stale_after = stale_after
        self._runner = runner or self._default_runner
        self._clock = clock
        self.logger = get_logger("git.fetcher")

    def temporary_path(self, repository_id: str) -> Path:
        """Create and return an empty clone directory owned by the caller alone.

        The directory is reserved with an exclusive ``mkdir`` so concurrent
        runs of the same repository id in the same millisecond fall through
        to the next ``-N`` suffix instead of sharing a checkout.
        """
        base = self._repository_dir(repository_id)
        base.mkdir(parents=True, exist_ok=True)
        stamp = str(int(self._clock() * 1000))
        candidate = base / stamp
        for suffix in itertools.count(1):
            try:
                candidate.mkdir(exist_ok=False)
            except FileExistsError:
                candidate = base / f"{stamp}-{suffix}"
                continue
            return candidate
        raise AssertionError("unreachable")  # pragma: no cover

    def fetch(self, url: str, repository_id: str, branch: str | None = None) -> Path:
        """Shallow-clone ``url`` (optionally pinned to ``branch``) and return the checkout path."""
        self.prune_stale(repository_id)
        try:
            target = self.temporary_path(repository_id)
        except OSError as exc:
            raise CloneError(f"Unable to create clone directory for {repository_id}: {exc}") from exc

        args = ["git", "clone", "--depth=1"]
        if branch:
            args.extend(["--branch", branch])
        args.extend([url, str(target)])

        self.logger.info("Cloning %s%s", url, f" (branch {branch})" if branch else "")
        try:
            self._runner(args, cwd=None)
        except FileNotFoundError as exc:
            self.remove(target)
            raise CloneError("Unable to locate 'git'. Install git to analyse repositories.") from exc
        except subprocess.CalledProcessError as exc:
            self.remove(target)
            detail = (exc.stderr or "").strip() if isinstance(exc.stderr, str) else ""
            message = detail or f"git exited with code {exc.returncode}"
            raise CloneError(f"Failed to clone {url}: {message}") from exc
        except OSError as exc:
            self.remove(target)
            raise CloneError(f"Failed to clone {url}: {exc}") from exc

        self.logger.info("Cloned to %s", target)
        return target

    def remove(self, path: Path | str) -> None:
        """Force-delete ``path``; failures are logged and never raised."""
        target = Path(path)
        try:
            shutil.rmtree(target)
        except FileNotFoundError:
            return
        except OSError as exc:
            self.logger.warning("Failed to delete directory %s: %s", target, exc)

    def prune_stale(self, repository_id: str, max_age: float | None = None) -> int:
        """Remove clones of ``repository_id`` older than ``max_age`` seconds (default ``stale_after``)."""
        if max_age is None:
            max_age = self.stale_after
        base = self._repository_dir(repository_id)
        try:
            entries = list(base.iterdir())
        except OSError:
            return 0

        cutoff_ms = (self._clock() - max_age) * 1000
        removed = 0
        for entry in entries:
            stamp = _timestamp_of(entry.name)
            if stamp is None or stamp >= cutoff_ms:
                continue
            self.logger.debug("Pruning stale clone %s", entry)
            self.remove(entry)
            removed += 1
        return removed

    # ------------------------------------------------------------------
    # Helpers

    def _repository_dir(self, repository_id: str) -> Path:
        safe_id = repository_id.replace("/", "-").replace("\\", "-").strip(".") or "repo"
        return self.scratch_root / "repos" / safe_id

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path | None = None) -> None:
        subprocess.run(
            list(args),
            cwd=str(cwd) if cwd else None,
            check=True,
            text=True,
            capture_output=True,
        )


def _timestamp_of(name: str) -> int | None:
    head = name.split("-", 1)[0]
    return int(head) if head.isdigit() else None


__all__ = ["RepositoryFetcher", "repository_id_from_url"]
