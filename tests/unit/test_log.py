"""Tests for textcal logging setup."""

from __future__ import annotations

import io
import logging
import re

import pytest

from textcal.log import get_logger, setup_logging


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_logging_sets_level(self) -> None:
        """setup_logging('DEBUG') sets the root logger to DEBUG."""
        setup_logging("DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_default_level_is_info(self) -> None:
        """setup_logging() with no args defaults to INFO."""
        setup_logging()

        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_accepts_lowercase(self) -> None:
        """Level names are case-insensitive."""
        setup_logging("warning")

        assert logging.getLogger().level == logging.WARNING

    def test_setup_logging_invalid_level_raises(self) -> None:
        """An unrecognised level string raises ValueError."""
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging("INVALID")

    def test_setup_logging_idempotent(self) -> None:
        """Calling setup_logging() twice does not add duplicate handlers."""
        setup_logging()
        count_after_first = len(logging.getLogger().handlers)

        setup_logging("DEBUG")
        count_after_second = len(logging.getLogger().handlers)

        assert count_after_second == count_after_first

    def test_second_call_updates_handler_level(self) -> None:
        """A repeated call changes the level of the existing handler."""
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)
        setup_logging("DEBUG")

        get_logger("test.relevel").debug("now visible")

        assert "now visible" in stream.getvalue()


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_get_logger_name(self) -> None:
        """get_logger() returns a logger with the requested name."""
        logger = get_logger("textcal.test")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "textcal.test"


class TestLogOutput:
    """Tests for the log line format."""

    def test_log_line_format(self) -> None:
        """Lines carry an ISO timestamp, level, logger name and message."""
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)

        get_logger("test.format").info("hello world")

        line = stream.getvalue().strip()
        assert re.match(
            r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2} \| INFO     \| test\.format \| hello world$",
            line,
        )

    def test_log_output_goes_to_stderr_by_default(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Without a stream argument, output goes to stderr."""
        setup_logging("INFO")
        get_logger("test.stderr").info("to stderr")

        captured = capsys.readouterr()
        assert "to stderr" in captured.err
        assert captured.out == ""

    def test_debug_not_shown_at_info_level(self) -> None:
        """DEBUG messages are filtered at INFO."""
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)

        get_logger("test.filter").debug("should not appear")

        assert "should not appear" not in stream.getvalue()
