"""Logging for repograph runs.

Every module logs under the ``repograph`` hierarchy (``repograph.git.fetcher``,
``repograph.analysis.orchestrator``, ...). Analysis workers log from their own
threads, so verbose output tags each line with the worker name to keep
interleaved per-file messages readable.
"""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "repograph"

CONSOLE_FORMAT = "[repograph] %(levelname)s %(message)s"
VERBOSE_CONSOLE_FORMAT = "[repograph] %(levelname)s %(threadName)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """``get_logger("git.fetcher")`` -> ``repograph.git.fetcher``."""
    full_name = f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route repograph logs to stderr and, optionally, to ``log_file``.

    Calling this again replaces the handlers installed by the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(VERBOSE_CONSOLE_FORMAT if verbose else CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        # The file keeps debug detail even when the console stays at INFO.
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
