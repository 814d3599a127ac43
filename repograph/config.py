"""Configuration loading for repograph (.repograph.yml)."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import RepographError

CONFIG_FILENAME = ".repograph.yml"

DEFAULT_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx")

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/*.test.*",
    "**/*.spec.*",
    "**/__tests__/**",
    "**/*.d.ts",
    "**/coverage/**",
    "**/.git/**",
)

DEFAULT_CONCURRENCY = 5
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BATCH_SIZE = 5
DEFAULT_STALE_AFTER_HOURS = 24.0

ENV_CONCURRENCY_KEYS = ("REPOGRAPH_ANALYSIS_CONCURRENCY", "ANALYSIS_CONCURRENCY")


class ConfigError(RepographError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Extraction service settings."""

    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None
    executable: Optional[str] = None


@dataclass
class ScanConfig:
    """Include/exclude rules for the file scanner."""

    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    ignore_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))


@dataclass
class AnalysisConfig:
    """Worker pool and retry settings."""

    concurrency: int = DEFAULT_CONCURRENCY
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    batch_size: int = DEFAULT_BATCH_SIZE


@dataclass
class FetchConfig:
    """Scratch space used for temporary clones."""

    scratch_root: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / "repograph")
    stale_after_hours: float = DEFAULT_STALE_AFTER_HOURS


@dataclass
class RepographConfig:
    """Represents the settings defined in .repograph.yml."""

    root: Path
    llm: LLMConfig = field(default_factory=LLMConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)


def load_config(config_path: Path | None = None) -> RepographConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path or Path.cwd())
    root = config_file.parent.resolve()

    if not config_file.exists():
        config = RepographConfig(root=root)
        _apply_env_overrides(config)
        return config

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = RepographConfig(root=root)

    llm_data = _as_dict(data.get("llm"))
    if llm_data:
        config.llm = LLMConfig(
            provider=_as_str(llm_data.get("provider")),
            model=_as_str(llm_data.get("model")),
            temperature=_as_float(llm_data.get("temperature")),
            max_tokens=_as_int(llm_data.get("max_tokens")),
            base_url=_as_str(llm_data.get("base_url")),
            api_key=_as_str(llm_data.get("api_key")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
            executable=_as_str(llm_data.get("executable")),
        )

    scan_data = _as_dict(data.get("scan"))
    if scan_data:
        extensions = _as_str_list(scan_data.get("extensions"))
        ignore_patterns = _as_str_list(scan_data.get("ignore_patterns"))
        if extensions:
            config.scan.extensions = [_dotted(ext) for ext in extensions]
        if "ignore_patterns" in scan_data:
            config.scan.ignore_patterns = ignore_patterns

    analysis_data = _as_dict(data.get("analysis"))
    if analysis_data:
        config.analysis = AnalysisConfig(
            concurrency=_positive(analysis_data.get("concurrency"), "analysis.concurrency", DEFAULT_CONCURRENCY),
            max_attempts=_positive(analysis_data.get("max_attempts"), "analysis.max_attempts", DEFAULT_MAX_ATTEMPTS),
            batch_size=_positive(analysis_data.get("batch_size"), "analysis.batch_size", DEFAULT_BATCH_SIZE),
        )

    fetch_data = _as_dict(data.get("fetch"))
    if fetch_data:
        scratch_root = _as_str(fetch_data.get("scratch_root"))
        if scratch_root:
            scratch_path = Path(scratch_root).expanduser()
            config.fetch.scratch_root = scratch_path if scratch_path.is_absolute() else root / scratch_path
        stale = _as_float(fetch_data.get("stale_after_hours"))
        if stale is not None:
            config.fetch.stale_after_hours = stale

    _apply_env_overrides(config, explicit_concurrency="concurrency" in analysis_data)
    return config


def _apply_env_overrides(config: RepographConfig, *, explicit_concurrency: bool = False) -> None:
    if explicit_concurrency:
        return
    for key in ENV_CONCURRENCY_KEYS:
        value = _as_int(os.getenv(key))
        if value is not None and value > 0:
            config.analysis.concurrency = value
            return


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _dotted(extension: str) -> str:
    return extension if extension.startswith(".") else f".{extension}"


def _positive(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    parsed = _as_int(value)
    if parsed is None or parsed < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return parsed


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
