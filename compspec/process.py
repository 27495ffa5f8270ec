"""Running external programs for resolvers.

Resolvers ask external tools (nix-env, nix-instantiate...) for candidates.
A failing or slow tool means "no candidates", never an error on the user's
terminal.
"""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from .constants import DEFAULT_RESOLVER_TIMEOUT

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

__all__ = ["run_lines", "set_default_timeout"]

_log = logging.getLogger(__name__)


class _TimeoutState:
    """Container for the configured timeout to avoid global statement."""

    value: float = DEFAULT_RESOLVER_TIMEOUT


_timeout_state = _TimeoutState()


def set_default_timeout(value: float) -> None:
    """Set the timeout used when `run_lines` gets none."""
    _timeout_state.value = value


def run_lines(
    argv: Sequence[str],
    timeout: float | None = None,
    input: str | None = None,  # noqa: A002
    env: Mapping[str, str] | None = None,
) -> list[str]:
    """Run a program and return the non-empty lines of its standard output.

    Args:
        argv: Program and arguments
        timeout: Seconds before giving up, defaults to the configured timeout
        input: Text fed to the program's standard input
        env: Full environment of the program (inherited when None)

    Returns:
        The output lines, an empty list if the program failed or timed out
    """
    if timeout is None:
        timeout = _timeout_state.value
    try:
        proc = subprocess.run(  # noqa: S603
            list(argv),
            input=input,
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:
        _log.debug("%s is not installed", argv[0])
        return []
    except subprocess.TimeoutExpired:
        _log.warning("%s timed out after %ss", argv[0], timeout)
        return []
    except (OSError, subprocess.SubprocessError) as e:
        _log.warning("%s failed: %s", argv[0], e)
        return []
    if proc.returncode != 0:
        _log.debug("%s exited with %s: %s", argv[0], proc.returncode, proc.stderr.strip())
        return []
    return [line for line in proc.stdout.splitlines() if line]
