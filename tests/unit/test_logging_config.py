"""Tests for the logging configuration."""

import logging

import pytest

from mcp_linear.logging_config import log_operation, mask_sensitive, setup_logger


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        ("", ""),
        ("short", "*****"),
        ("lin_api_1234567890", "lin_**********7890"),
    ],
)
def test_mask_sensitive(value, expected):
    assert mask_sensitive(value) == expected


def test_setup_logger_does_not_stack_handlers():
    logger = setup_logger("mcp-linear.test-handlers", level="DEBUG")
    setup_logger("mcp-linear.test-handlers", level="DEBUG")

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_setup_logger_writes_to_file(tmp_path):
    logger = setup_logger("mcp-linear.test-file", log_to_file=True, log_dir=str(tmp_path))
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()

    log_file = tmp_path / "mcp-linear.test-file.log"
    assert "hello" in log_file.read_text()
    setup_logger("mcp-linear.test-file")


@pytest.fixture
def captured(caplog):
    """Attach caplog directly; mcp-linear loggers do not propagate to root."""
    attached = []

    def attach(logger):
        logger.addHandler(caplog.handler)
        attached.append(logger)
        return caplog

    yield attach
    for logger in attached:
        logger.removeHandler(caplog.handler)


def test_log_operation_adds_context(captured):
    logger = setup_logger("mcp-linear.test-context", level="DEBUG")
    caplog = captured(logger)

    with log_operation(logger, "list_teams", team="ENG"):
        logger.info("inside")

    inside = next(record for record in caplog.records if record.message == "inside")
    assert "operation=list_teams" in inside.context
    assert "team=ENG" in inside.context
    assert any(
        record.message.startswith("Operation completed: list_teams")
        for record in caplog.records
    )


def test_log_operation_logs_failure(captured):
    logger = setup_logger("mcp-linear.test-failure", level="INFO")
    caplog = captured(logger)

    with pytest.raises(RuntimeError):
        with log_operation(logger, "sync"):
            raise RuntimeError("boom")

    assert any("Operation failed: sync" in record.message for record in caplog.records)
