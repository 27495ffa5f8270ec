"""Command drivers.

Each module lists its driver classes in `DRIVERS`; a driver declares the
commands it completes in its `commands` attribute.
"""

from __future__ import annotations

import importlib
import os
from functools import cache
from typing import TYPE_CHECKING

from .interface import Driver

if TYPE_CHECKING:
    from ..config_loader import ConfigLoader

__all__ = ["DRIVER_MODULES", "Driver", "driver_classes", "get_driver", "supported_commands"]

DRIVER_MODULES = ("nix_tools", "nix_env", "nix_store", "nixos")


@cache
def driver_classes() -> dict[str, type[Driver]]:
    """Return the driver class of every supported command."""
    classes: dict[str, type[Driver]] = {}
    for modname in DRIVER_MODULES:
        module = importlib.import_module(f"{__name__}.{modname}")
        for driver in module.DRIVERS:
            for command in driver.commands:
                classes[command] = driver
    return classes


def supported_commands() -> list[str]:
    """Return the sorted names of the supported commands."""
    return sorted(driver_classes())


def get_driver(command: str, loader: ConfigLoader | None = None) -> Driver | None:
    """Instantiate the driver of `command`.

    Args:
        command: The command name, a path to it is accepted
        loader: Loaded configuration passed to the driver

    Returns:
        The driver, None if the command isn't supported
    """
    name = os.path.basename(command)
    driver_class = driver_classes().get(name)
    if driver_class is None:
        return None
    driver = driver_class(name)
    if loader is not None:
        driver.load_config(loader)
    return driver
