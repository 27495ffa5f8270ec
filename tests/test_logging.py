"""Tests for the logging setup."""

import logging
from io import StringIO

import pytest

from compspec.logging_setup import ROOT_LOGGER, LogObjects, ScreenLogFormatter, get_logger, init_logger, is_debug, set_debug, use_colors


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    init_logger("/dev/null", force_debug=True)


def test_get_logger():
    """Loggers get the shared handlers and don't propagate."""
    logger = get_logger("compspec.test-logging")
    assert logger.propagate is False
    assert logger.level == logging.DEBUG
    for handler in LogObjects.handlers:
        assert handler in logger.handlers
    assert get_logger("compspec.test-logging", logging.ERROR).level == logging.ERROR


def test_reinit_to_file(tmp_path):
    """Calling init_logger again switches every logger to the new handlers."""
    logger = get_logger("compspec.test-reinit")
    old_handlers = list(LogObjects.handlers)

    init_logger(str(tmp_path / "debug.log"), force_debug=True)

    for handler in old_handlers:
        assert handler not in logger.handlers
    assert len(LogObjects.handlers) == 2
    logger.warning("switched")
    for handler in LogObjects.handlers:
        handler.flush()
    assert "switched" in (tmp_path / "debug.log").read_text()


def test_module_loggers_propagate(tmp_path):
    """Module level loggers end up in the root compspec logger."""
    init_logger(str(tmp_path / "debug.log"), force_debug=True)
    logging.getLogger("compspec.completions.interpreter").debug("walking")
    for handler in logging.getLogger(ROOT_LOGGER).handlers:
        handler.flush()
    assert "walking" in (tmp_path / "debug.log").read_text()


def test_debug_state():
    """The debug flag can be toggled."""
    set_debug(False)
    assert is_debug() is False
    set_debug(True)
    assert is_debug() is True


def _record(level):
    return logging.LogRecord("compspec.test", level, __file__, 1, "resolver failed", None, None)


class TestColors:
    """Colors of the lines written on stderr."""

    def test_no_color_wins(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.setenv("FORCE_COLOR", "1")
        assert use_colors() is False

    def test_pipes_are_plain(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        assert use_colors(StringIO()) is False
        monkeypatch.setenv("FORCE_COLOR", "1")
        assert use_colors(StringIO()) is True

    def test_colored_levels(self, monkeypatch):
        """Warnings and errors are wrapped in their color, other levels are not."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("FORCE_COLOR", "1")
        set_debug(False)
        formatter = ScreenLogFormatter(StringIO())
        assert formatter.format(_record(logging.WARNING)) == "\x1b[33;2mresolver failed\x1b[0m"
        assert formatter.format(_record(logging.CRITICAL)) == "\x1b[31;1mresolver failed\x1b[0m"
        assert formatter.format(_record(logging.INFO)) == "resolver failed"

    def test_plain_levels(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        set_debug(False)
        assert ScreenLogFormatter(StringIO()).format(_record(logging.ERROR)) == "resolver failed"

    def test_debug_format(self, monkeypatch):
        """In debug mode lines carry the logger name and the source location."""
        monkeypatch.setenv("NO_COLOR", "1")
        set_debug(True)
        line = ScreenLogFormatter(StringIO()).format(_record(logging.DEBUG))
        assert line.endswith(f"compspec.test - resolver failed // {__file__.rsplit('/', 1)[-1]}:1")
