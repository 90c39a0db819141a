"""
cellcheck - shared pytest fixtures

File: tests/conftest.py
Last updated: 2026-10-19

Purpose
- Keep tests hermetic: no ambient ``CELLCHECK_*`` variables, and no logging
  handler left behind by a test that configured structlog.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("CELLCHECK_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(sys.stderr))
    yield
    logger = logging.getLogger("cellcheck")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    structlog.reset_defaults()
