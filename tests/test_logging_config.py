"""Tests for structured logging configuration."""

import json

import pytest

from delivery_location.logging_config import configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    configure_logging(level="debug", testing=True)


def test_logger_created_before_configure_honours_new_level(capsys):
    logger = get_logger(module="early")

    configure_logging(level="warning")
    logger.info("hidden_event")
    logger.warning("shown_event", attempt=2)

    captured = capsys.readouterr()
    assert captured.out == ""
    lines = captured.err.strip().splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["event"] == "shown_event"
    assert record["module"] == "early"
    assert record["attempt"] == 2
    assert record["level"] == "warning"


def test_unknown_level_falls_back_to_info(capsys):
    configure_logging(level="chatty")
    logger = get_logger(module="fallback")

    logger.debug("hidden_event")
    logger.info("shown_event")

    err = capsys.readouterr().err
    assert "hidden_event" not in err
    assert "shown_event" in err
