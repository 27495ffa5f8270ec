"""Shared constants for compspec."""

import os
from pathlib import Path

__all__ = [
    "CACHE_HOME",
    "CONFIG_FILE",
    "DEFAULT_RESOLVER_TIMEOUT",
    "MAX_STATE_HOPS",
    "SUPPORTED_SHELLS",
]

# Config file path - use XDG_CONFIG_HOME with fallback to ~/.config
_xdg_config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
CONFIG_FILE = Path(os.environ.get("COMPSPEC_CONFIG") or _xdg_config_home / "compspec" / "config.toml")

CACHE_HOME = Path(os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache")

# Seconds an external resolver may run
DEFAULT_RESOLVER_TIMEOUT = 2.0

# Redirects allowed while resolving one named state
MAX_STATE_HOPS = 8

# Supported shells for the completion hook
SUPPORTED_SHELLS = ("bash", "zsh")
