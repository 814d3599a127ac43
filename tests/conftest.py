from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from repograph.logging import ROOT_LOGGER
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """A checkout-shaped directory under tmp_path that tests fill file by file."""
    return RepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _restore_repograph_logger() -> Iterator[None]:
    # CLI tests install handlers bound to pytest's captured stderr; drop them
    # afterwards so later tests see the default propagating logger.
    logger = logging.getLogger(ROOT_LOGGER)
    level, propagate, handlers = logger.level, logger.propagate, list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate
