"""Common errors and exit codes."""

from enum import IntEnum

__all__ = ["CompspecError", "ConfigError", "ExitCode", "SpecCompileError"]


class CompspecError(Exception):
    """Base class for errors raised by compspec."""


class ConfigError(CompspecError):
    """Used for configuration errors which already triggered logging."""


class SpecCompileError(CompspecError):
    """A grammar token could not be compiled.

    Specs are written by driver authors, so this is a bug in the driver data,
    never a user input problem.
    """

    def __init__(self, token: str, reason: str) -> None:
        super().__init__(f"invalid spec token {token!r}: {reason}")
        self.token = token
        self.reason = reason


# Exit codes for the command line
class ExitCode(IntEnum):
    """Standard exit codes for the compspec command."""

    SUCCESS = 0
    USAGE_ERROR = 1  # Invalid arguments
    CONFIG_ERROR = 2  # Unreadable configuration
    UNKNOWN_COMMAND = 3  # No driver for the command
