"""Unit tests for src/utils/logging.py."""

from __future__ import annotations

import io
import json
import logging

import pytest
import structlog

from src.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo global structlog / root-logger changes after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_lines_carry_context() -> None:
    stream = io.StringIO()
    logger = configure_logging(log_level="INFO", json_output=True, stream=stream)

    with structlog.contextvars.bound_contextvars(import_id="abc123"):
        logger.info("import_started", total=3)

    line = json.loads(stream.getvalue().splitlines()[0])
    assert line["event"] == "import_started"
    assert line["import_id"] == "abc123"
    assert line["total"] == 3
    assert line["level"] == "info"
    assert "timestamp" in line


def test_level_filters_below_threshold() -> None:
    stream = io.StringIO()
    logger = configure_logging(log_level="WARNING", json_output=True, stream=stream)
    logger.info("genre_created")
    logger.warning("relationship_write_failed")

    events = [json.loads(line)["event"] for line in stream.getvalue().splitlines()]
    assert events == ["relationship_write_failed"]


def test_production_env_selects_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    stream = io.StringIO()
    configure_logging(stream=stream).info("catalog_assembled")
    assert json.loads(stream.getvalue())["event"] == "catalog_assembled"


def test_stdlib_records_share_the_stream() -> None:
    stream = io.StringIO()
    configure_logging(json_output=True, stream=stream)
    logging.getLogger("aiosqlite").warning("connection slow")
    assert "connection slow" in stream.getvalue()
