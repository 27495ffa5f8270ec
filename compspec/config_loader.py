"""Configuration file loading utilities.

This module handles loading and merging TOML configuration files, and
turning their sections into validated `Configuration` objects.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import Configuration
from .constants import CONFIG_FILE
from .models import ConfigError
from .validation import ConfigValidator

if TYPE_CHECKING:
    import logging

    from .validation import ConfigItems

__all__ = ["ConfigLoader", "merge"]


def merge(merged: dict[str, Any], obj2: dict[str, Any]) -> dict[str, Any]:
    """Merge the content of obj2 into merged.

    Eg:
        merge({"a": {"b": 1}}, {"a": {"c": 2}}) == {"a": {"b": 1, "c": 2}}
    """
    for key, value in obj2.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merge(merged[key], value)
        elif key in merged and isinstance(merged[key], list) and isinstance(value, list):
            merged[key] += value
        else:
            merged[key] = value
    return merged


class ConfigLoader:
    """Handles loading configuration files.

    Supports:
    - a single TOML file
    - a directory of .toml files, merged in name order
    - no file at all when the default location is used
    """

    def __init__(self, log: logging.Logger) -> None:
        """Initialize the config loader.

        Args:
            log: Logger instance for status and error messages
        """
        self.log = log
        self._config: dict[str, Any] = {}

    @property
    def config(self) -> dict[str, Any]:
        """Return the loaded configuration."""
        return self._config

    def load(self, config_filename: str = "") -> dict[str, Any]:
        """Load configuration from file or directory.

        Args:
            config_filename: Optional path to config file or directory.
                           If empty, uses default CONFIG_FILE location.

        Returns:
            The loaded configuration dictionary.

        Raises:
            ConfigError: If an explicit config file is missing or has syntax errors.
        """
        if config_filename:
            fname = Path(os.path.expandvars(config_filename)).expanduser()
            config = self._load_config_directory(fname) if fname.is_dir() else self._load_config_file(fname)
        elif CONFIG_FILE.exists():
            config = self._load_config_file(CONFIG_FILE)
        else:
            self.log.debug("No config file at %s, using defaults", CONFIG_FILE)
            config = {}
        merge(self._config, config)
        return self._config

    def _load_config_directory(self, directory: Path) -> dict[str, Any]:
        config: dict[str, Any] = {}
        for toml_file in sorted(f.name for f in directory.iterdir()):
            if not toml_file.endswith(".toml"):
                continue
            merge(config, self._load_config_file(directory / toml_file))
        return config

    def _load_config_file(self, fname: Path) -> dict[str, Any]:
        """Load a single configuration file.

        Raises:
            ConfigError: If file not found or has syntax errors
        """
        if not fname.exists():
            self.log.critical("Config file not found: %s", fname)
            msg = f"config file not found: {fname}"
            raise ConfigError(msg)
        self.log.info("Loading %s", fname)
        with fname.open("rb") as f:
            try:
                return tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                self.log.critical("Problem reading %s: %s", fname, e)
                msg = f"problem reading {fname}: {e}"
                raise ConfigError(msg) from e

    def section(self, name: str, schema: ConfigItems | None = None) -> Configuration:
        """Return one section as a Configuration, warning about invalid entries.

        Args:
            name: The section name, eg: "compspec" or "nix"
            schema: Fields expected in that section
        """
        raw = self._config.get(name, {})
        if not isinstance(raw, dict):
            self.log.warning("[%s] should be a table, ignoring it", name)
            raw = {}
        if schema is not None:
            for error in ConfigValidator(raw, name).validate(schema):
                self.log.warning(error)
        return Configuration(raw, logger=self.log, schema=schema)
