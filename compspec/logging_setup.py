"""Logging setup and utilities.

Completion output owns stdout, so every handler installed here writes to
stderr or to a file.
"""

import logging
import os
import sys
from typing import TextIO

__all__ = [
    "ROOT_LOGGER",
    "LogObjects",
    "get_logger",
    "init_logger",
    "is_debug",
    "set_debug",
    "use_colors",
]

ROOT_LOGGER = "compspec"

# SGR codes wrapping the message of each level on a terminal
LEVEL_COLORS = {
    logging.WARNING: "33;2",
    logging.ERROR: "31;2",
    logging.CRITICAL: "31;1",
}


class LogObjects:
    """Reusable objects for loggers."""

    handlers: list[logging.Handler] = []
    loggers: list[logging.Logger] = []


class _DebugState:
    """Container for the debug flag to avoid global statement."""

    value: bool = bool(os.environ.get("COMPSPEC_DEBUG"))


_debug_state = _DebugState()


def is_debug() -> bool:
    return _debug_state.value


def set_debug(value: bool) -> None:
    _debug_state.value = value


def use_colors(stream: TextIO | None = None) -> bool:
    """Tell whether log lines written to `stream` get ANSI colors.

    NO_COLOR wins over FORCE_COLOR, otherwise only terminals are colored.
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    if stream is None:
        stream = sys.stderr
    return hasattr(stream, "isatty") and stream.isatty()


class ScreenLogFormatter(logging.Formatter):
    """Formats the lines shown on stderr, coloring warnings and errors."""

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        log_format = r"%(name)25s - %(message)s // %(filename)s:%(lineno)d" if is_debug() else r"%(message)s"
        colored = use_colors(stream)
        self._formatters: dict[int, logging.Formatter] = {}
        for level in (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL):
            code = LEVEL_COLORS.get(level)
            if colored and code:
                self._formatters[level] = logging.Formatter(f"\x1b[{code}m{log_format}\x1b[0m")
            else:
                self._formatters[level] = logging.Formatter(log_format)

    def format(self, record: logging.LogRecord) -> str:
        return self._formatters.get(record.levelno, self._formatters[logging.WARNING]).format(record)


def init_logger(filename: str | None = None, force_debug: bool = False) -> None:
    """Initialize the logging system.

    Can be called again, eg: once the configuration asks for a log file.
    Loggers already returned by `get_logger` are switched to the new handlers.
    Module level loggers (``logging.getLogger(__name__)``) propagate to the
    "compspec" logger.

    Args:
        filename: Optional filename to log to
        force_debug: If True, force debug level
    """
    if force_debug:
        set_debug(True)

    old_handlers = list(LogObjects.handlers)
    LogObjects.handlers.clear()
    if filename:
        file_handler = logging.FileHandler(filename)
        file_handler.setFormatter(logging.Formatter(fmt=r"%(asctime)s [%(levelname)s] %(name)s :: %(message)s :: %(filename)s:%(lineno)d"))
        LogObjects.handlers.append(file_handler)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(ScreenLogFormatter(stream_handler.stream))
    LogObjects.handlers.append(stream_handler)

    for logger in LogObjects.loggers:
        for handler in old_handlers:
            logger.removeHandler(handler)
        _setup(logger, None)
    for handler in old_handlers:
        handler.close()

    get_logger(ROOT_LOGGER)


def _setup(logger: logging.Logger, level: int | None) -> None:
    if level is None:
        logger.setLevel(logging.DEBUG if is_debug() else logging.WARNING)
    else:
        logger.setLevel(level)
    logger.propagate = False
    for handler in LogObjects.handlers:
        if handler not in logger.handlers:
            logger.addHandler(handler)


def get_logger(name: str = ROOT_LOGGER, level: int | None = None) -> logging.Logger:
    """Return a named logger.

    Args:
        name (str): logger's name
        level (int): logger's level (auto if not set)

    Returns:
        The logger instance
    """
    logger = logging.getLogger(name)
    _setup(logger, level)
    if logger not in LogObjects.loggers:
        LogObjects.loggers.append(logger)
    logger.debug('Logger "%s" initialized', name)
    return logger
