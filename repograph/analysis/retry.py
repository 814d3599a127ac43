"""Bounded retry with exponential backoff for per-file extraction calls."""

from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

from ..logging import get_logger

T = TypeVar("T")

MAX_RETRY_ATTEMPTS = 3
BASE_DELAY_MS = 1000
MAX_DELAY_MS = 30_000

_logger = get_logger("analysis.retry")


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after failed attempt ``attempt`` (1-based)."""
    return min(BASE_DELAY_MS * 2**attempt, MAX_DELAY_MS) / 1000


def with_retry(
    fn: Callable[[], T],
    max_attempts: int = MAX_RETRY_ATTEMPTS,
    *,
    sleep: Callable[[float], None] = time.sleep,
    description: Optional[str] = None,
) -> T:
    """Call ``fn`` until it succeeds or ``max_attempts`` calls have failed.

    The error from the final attempt is re-raised unchanged.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    attempt = 1
    while True:
        try:
            return fn()
        except Exception as exc:
            if attempt >= max_attempts:
                raise
            delay = backoff_delay(attempt)
            _logger.debug(
                "Attempt %d/%d%s failed (%s); retrying in %.1fs",
                attempt,
                max_attempts,
                f" for {description}" if description else "",
                exc,
                delay,
            )
            sleep(delay)
            attempt += 1


__all__ = ["MAX_RETRY_ATTEMPTS", "backoff_delay", "with_retry"]
