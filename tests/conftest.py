"""Shared pytest fixtures for the full novelshelf test suite."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Iterator

from loguru import logger as loguru_logger
import pytest

from novelshelf.telemetry.logger import CatalogLogger
from tests.fixture_paths import write_publishing_root


@pytest.fixture(autouse=True)
def _reset_loguru_handlers() -> Iterator[None]:
    """Drop sinks installed by a test so later tests never write to closed streams."""

    yield
    loguru_logger.remove()


@pytest.fixture
def log_buffer() -> io.StringIO:
    """Provide a buffer receiving catalog log lines."""

    return io.StringIO()


@pytest.fixture
def catalog_logger(log_buffer: io.StringIO) -> CatalogLogger:
    """Provide a catalog logger writing into `log_buffer`."""

    return CatalogLogger(sink=log_buffer)


@pytest.fixture
def published_root(tmp_path: Path) -> Path:
    """Create a publishing directory with a manifest and two text bodies."""

    return write_publishing_root(tmp_path / "published")
