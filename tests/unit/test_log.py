"""Tests for chronos logging setup."""

from __future__ import annotations

import logging
import re

import pytest

from chronos.log import get_logger, setup_logging


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_logging_sets_level(self) -> None:
        """setup_logging('DEBUG') must set root logger to DEBUG."""
        setup_logging("DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_default_level_is_info(self) -> None:
        setup_logging()

        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_accepts_lowercase(self) -> None:
        setup_logging("warning")

        assert logging.getLogger().level == logging.WARNING

    def test_setup_logging_invalid_level_raises(self) -> None:
        """An unrecognised level string must raise ValueError."""
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging("CHATTY")

    def test_setup_logging_idempotent(self) -> None:
        """Calling setup_logging() twice must not add duplicate handlers."""
        setup_logging()
        count_after_first = len(logging.getLogger().handlers)

        setup_logging("DEBUG")
        count_after_second = len(logging.getLogger().handlers)

        assert count_after_second == count_after_first

    def test_repeat_call_updates_handler_level(self) -> None:
        """A second call changes the level of the existing handler."""
        setup_logging("INFO")
        setup_logging("ERROR")

        levels = {handler.level for handler in logging.getLogger().handlers}
        assert logging.ERROR in levels


class TestGoogleLibraryLoggers:
    """The Google client libraries are quieter than the application."""

    def test_google_loggers_held_at_warning(self) -> None:
        setup_logging("INFO")

        assert logging.getLogger("googleapiclient.discovery").level == logging.WARNING
        assert logging.getLogger("google_auth_oauthlib.flow").level == logging.WARNING

    def test_google_loggers_follow_debug(self) -> None:
        """At DEBUG the library loggers are opened up too."""
        setup_logging("DEBUG")

        assert logging.getLogger("googleapiclient.discovery").level == logging.DEBUG


class TestGetLogger:
    def test_get_logger_name(self) -> None:
        """get_logger() must return a logger with the requested name."""
        logger = get_logger("chronos.test")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "chronos.test"


class TestLogOutput:
    """Tests for the actual log output format."""

    def test_log_line_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        """One pipe-separated line with timestamp, level, logger and message."""
        setup_logging("INFO")
        get_logger("chronos.format").info("hello world")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        assert re.match(
            r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2} \| INFO +\| chronos\.format \| hello world$",
            line,
        )

    def test_below_level_is_dropped(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("WARNING")
        get_logger("chronos.quiet").info("not shown")

        assert "not shown" not in capsys.readouterr().err
