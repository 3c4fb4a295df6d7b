"""Tests for Loguru sink setup."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from investiga.utils.config import LoggingConfig
from investiga.utils.logging import setup_logging


def test_setup_logging_writes_file_sink(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "investiga.log"

    setup_logging(LoggingConfig(level="info", file=str(log_file)))
    logger.info("search started")
    logger.debug("hidden at info level")
    logger.remove()

    content = log_file.read_text(encoding="utf-8")
    assert "search started" in content
    assert "hidden at info level" not in content


def test_verbose_enables_debug(tmp_path: Path) -> None:
    log_file = tmp_path / "investiga.log"

    setup_logging(LoggingConfig(level="WARNING", file=str(log_file)), verbose=True)
    logger.debug("provider payload")
    logger.remove()

    assert "provider payload" in log_file.read_text(encoding="utf-8")
