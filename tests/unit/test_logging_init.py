from __future__ import annotations

import logging
from io import StringIO
from unittest.mock import patch

import fvtidy.logging.init as log_init
from fvtidy.logging.init import LabeledFormatter, get_logger, log_summary, setup_logging


def _capture(logger: logging.Logger) -> StringIO:
    buf = StringIO()
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    handler = logging.StreamHandler(buf)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    return buf


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()

    assert logger.name == "fvtidy"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_logging_labeled_prefixes():
    logger = setup_logging()
    buf = _capture(logger)

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(25, "Test summary message")

    lines = buf.getvalue().strip().split("\n")
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY Test summary message",
    ]


def test_module_loggers_are_children_of_app_logger():
    logger = setup_logging()
    buf = _capture(logger)

    logging.getLogger("fvtidy.services.builder").info("table=x rows=1")

    assert buf.getvalue().strip() == "INFO table=x rows=1"


def test_get_logger_returns_configured_logger():
    setup_logger = setup_logging()
    assert get_logger() is setup_logger


def test_get_logger_configures_on_first_use():
    assert log_init._logger is None
    logger = get_logger()
    assert logger.name == "fvtidy"
    assert log_init._logger is logger


def test_setup_logging_idempotent():
    logger1 = setup_logging()
    logger2 = setup_logging()

    assert logger1 is logger2
    assert len(logger1.handlers) == 1


def test_debug_applied_on_later_call():
    logger = setup_logging()
    assert logger.level == logging.INFO
    setup_logging(debug=True)
    assert logger.level == logging.DEBUG
    assert logger.handlers[0].level == logging.DEBUG


def test_logging_with_progress_bar_disabled():
    with patch("sys.stdout.isatty", return_value=False):
        logger = setup_logging()
        logger.info("Test message when not TTY")
        assert logger.level == logging.INFO


def test_summary_level_name_registered():
    setup_logging()
    assert logging.getLevelName(25) == "SUMMARY"


def test_log_summary_convenience_function():
    logger = setup_logging()
    buf = _capture(logger)

    log_summary("tables=2 success=2 failed=0 rows=150 derived=0 elapsed_sec=2.5")

    assert buf.getvalue().strip() == "SUMMARY tables=2 success=2 failed=0 rows=150 derived=0 elapsed_sec=2.5"
