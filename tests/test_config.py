"""Tests for repograph.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from repograph.config import (
    CONFIG_FILENAME,
    DEFAULT_EXTENSIONS,
    DEFAULT_IGNORE_PATTERNS,
    ConfigError,
    load_config,
)


@pytest.fixture(autouse=True)
def _clear_concurrency_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REPOGRAPH_ANALYSIS_CONCURRENCY", raising=False)
    monkeypatch.delenv("ANALYSIS_CONCURRENCY", raising=False)


def test_load_config_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.llm.provider is None
    assert tuple(config.scan.extensions) == DEFAULT_EXTENSIONS
    assert tuple(config.scan.ignore_patterns) == DEFAULT_IGNORE_PATTERNS
    assert config.analysis.concurrency == 5
    assert config.analysis.max_attempts == 3
    assert config.analysis.batch_size == 5
    assert config.fetch.stale_after_hours == 24.0


def test_load_config_reads_all_sections(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(
        """
llm:
  provider: openai
  model: gpt-4o-mini
  base_url: http://localhost:8080/v1
  temperature: 0.1
  max_tokens: 2048
  request_timeout: 30
scan:
  extensions: [ts, .mjs]
  ignore_patterns:
    - "**/generated/**"
analysis:
  concurrency: 8
  max_attempts: 2
  batch_size: 20
fetch:
  scratch_root: .scratch
  stale_after_hours: 2
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.llm.provider == "openai"
    assert config.llm.model == "gpt-4o-mini"
    assert config.llm.base_url == "http://localhost:8080/v1"
    assert config.llm.temperature == 0.1
    assert config.llm.max_tokens == 2048
    assert config.llm.request_timeout == 30.0
    assert config.scan.extensions == [".ts", ".mjs"]
    assert config.scan.ignore_patterns == ["**/generated/**"]
    assert config.analysis.concurrency == 8
    assert config.analysis.max_attempts == 2
    assert config.analysis.batch_size == 20
    assert config.fetch.scratch_root == tmp_path.resolve() / ".scratch"
    assert config.fetch.stale_after_hours == 2.0


def test_load_config_accepts_explicit_file(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yml"
    config_file.write_text("analysis:\n  batch_size: 7\n", encoding="utf-8")

    config = load_config(config_file)

    assert config.analysis.batch_size == 7
    assert config.analysis.concurrency == 5


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("llm: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_load_config_rejects_non_positive_concurrency(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("analysis:\n  concurrency: 0\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="analysis.concurrency"):
        load_config(tmp_path)


def test_env_concurrency_applies_when_file_is_silent(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("ANALYSIS_CONCURRENCY", "12")

    assert load_config(tmp_path).analysis.concurrency == 12


def test_file_concurrency_beats_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPOGRAPH_ANALYSIS_CONCURRENCY", "12")
    (tmp_path / CONFIG_FILENAME).write_text("analysis:\n  concurrency: 3\n", encoding="utf-8")

    assert load_config(tmp_path).analysis.concurrency == 3
