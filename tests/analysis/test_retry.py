"""Tests for repograph.analysis.retry."""

from __future__ import annotations

import pytest

from repograph.analysis.retry import backoff_delay, with_retry


class Flaky:
    def __init__(self, failures: int, error: Exception | None = None) -> None:
        self.failures = failures
        self.error = error or RuntimeError("transient")
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "done"


def test_backoff_doubles_and_caps() -> None:
    assert [backoff_delay(n) for n in (1, 2, 3, 4)] == [2.0, 4.0, 8.0, 16.0]
    assert backoff_delay(5) == 30.0
    assert backoff_delay(10) == 30.0


def test_succeeds_after_transient_failures() -> None:
    sleeps: list[float] = []
    fn = Flaky(failures=2)

    assert with_retry(fn, 3, sleep=sleeps.append) == "done"
    assert fn.calls == 3
    assert sleeps == [2.0, 4.0]


def test_reraises_final_error_after_max_attempts() -> None:
    sleeps: list[float] = []
    error = ValueError("still broken")
    fn = Flaky(failures=10, error=error)

    with pytest.raises(ValueError) as excinfo:
        with_retry(fn, 3, sleep=sleeps.append)

    assert excinfo.value is error
    assert fn.calls == 3
    # No sleep after the final attempt.
    assert sum(sleeps) == 6.0


def test_single_attempt_never_sleeps() -> None:
    sleeps: list[float] = []

    with pytest.raises(RuntimeError):
        with_retry(Flaky(failures=1), 1, sleep=sleeps.append)

    assert sleeps == []


def test_rejects_non_positive_attempts() -> None:
    with pytest.raises(ValueError):
        with_retry(lambda: None, 0)
