"""compspec command line: completion requests, shell hooks and debugging helpers."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import TYPE_CHECKING

import shtab

from .config_loader import ConfigLoader
from .constants import SUPPORTED_SHELLS
from .drivers import get_driver, supported_commands
from .logging_setup import get_logger, init_logger
from .models import CompspecError, ConfigError, ExitCode
from .process import set_default_timeout
from .schema import CORE_SCHEMA, CORE_SECTION
from .shells import hook

if TYPE_CHECKING:
    import logging
    from collections.abc import Sequence

    from .drivers import Driver

__all__ = ["get_parser", "main", "run"]

TOML_FILE = {
    "bash": "_shtab_compspec_compgen_TOMLFiles",
    "zsh": "_files -g '(*.toml|*.TOML)'",
    "tcsh": "f:*.toml",
}

PREAMBLE = {
    "bash": """
# $1=COMP_WORDS[1]
_shtab_compspec_compgen_TOMLFiles() {
  compgen -d -- $1  # recurse into subdirs
  compgen -f -X '!*?.toml' -- $1
  compgen -f -X '!*?.TOML' -- $1
}
""",
    "zsh": "",
    "tcsh": "",
}


def get_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(prog="compspec", description="Command line completion for the nix tools", allow_abbrev=False)
    parser.add_argument(
        "--debug",
        help="Enable debug mode and log to a file",
        metavar="filename",
    ).complete = shtab.FILE  # type: ignore[attr-defined]
    parser.add_argument(
        "--config",
        help="Use a different configuration file",
        metavar="filename",
        default="",
    ).complete = TOML_FILE  # type: ignore[attr-defined]
    shtab.add_argument_to(parser, preamble=PREAMBLE)

    subparsers = parser.add_subparsers(dest="command", required=True)

    complete = subparsers.add_parser("complete", help="Print the suggestions for the word at the cursor")
    complete.add_argument("--cword", type=int, required=True, help="index of the word being completed")
    complete.add_argument("words", nargs="*", help="the command line, command name first")

    parse = subparsers.add_parser("parse", help="Print how the command line is interpreted, as JSON")
    parse.add_argument("--cword", type=int, required=True, help="index of the word being completed")
    parse.add_argument("words", nargs="*", help="the command line, command name first")

    init = subparsers.add_parser("init", help="Print the shell hook")
    init.add_argument("shell", choices=SUPPORTED_SHELLS)
    init.add_argument("--executable", default="compspec", help="how the hook calls compspec")

    subparsers.add_parser("commands", help="List the supported commands")
    return parser


def _load_config(args: argparse.Namespace, log: logging.Logger) -> ConfigLoader:
    """Load the configuration and apply the [compspec] section."""
    loader = ConfigLoader(log)
    loader.load(args.config)
    core = loader.section(CORE_SECTION, CORE_SCHEMA)
    set_default_timeout(core.get_float("timeout"))
    debug_log = core.get_str("debug_log")
    if debug_log and not args.debug:
        init_logger(filename=os.path.expanduser(debug_log), force_debug=True)
    return loader


def _driver_for(words: Sequence[str], loader: ConfigLoader, log: logging.Logger) -> Driver | None:
    if not words:
        return None
    core = loader.section(CORE_SECTION, CORE_SCHEMA)
    driver = get_driver(words[0], loader)
    if driver is None:
        log.debug("no driver for %s", words[0])
        return None
    if driver.name in core.get_list("disabled"):
        log.debug("completion disabled for %s", driver.name)
        return None
    return driver


def _complete(args: argparse.Namespace, log: logging.Logger) -> int:
    """Print the suggestions. Failures are logged, the shell just gets nothing."""
    try:
        loader = _load_config(args, log)
        driver = _driver_for(args.words, loader, log)
        if driver is None:
            return ExitCode.SUCCESS
        suggestions = driver.resolve(args.words, args.cword)
    except Exception:  # pylint: disable=broad-exception-caught
        log.exception("Completion failed for %s", args.words)
        return ExitCode.SUCCESS
    for suggestion in sorted(suggestions):
        print(suggestion)
    return ExitCode.SUCCESS


def _parse(args: argparse.Namespace, log: logging.Logger) -> int:
    loader = _load_config(args, log)
    driver = _driver_for(args.words, loader, log)
    if driver is None:
        log.error("Unsupported command: %s", args.words[0] if args.words else "")
        return ExitCode.UNKNOWN_COMMAND
    print(json.dumps(driver.parse(args.words, args.cword).to_dict(), indent=2))
    return ExitCode.SUCCESS


def run(argv: Sequence[str] | None = None) -> int:
    """Run the command line, returning the exit code."""
    args = get_parser().parse_args(argv)
    if args.debug:
        init_logger(filename=args.debug, force_debug=True)
    else:
        init_logger()
    log = get_logger("compspec.command")

    if args.command == "complete":
        return _complete(args, log)
    if args.command == "init":
        print(hook(args.shell, supported_commands(), args.executable), end="")
        return ExitCode.SUCCESS
    if args.command == "commands":
        for name in supported_commands():
            print(name)
        return ExitCode.SUCCESS

    try:
        return _parse(args, log)
    except ConfigError:
        log.critical("Invalid configuration.")
        return ExitCode.CONFIG_ERROR
    except CompspecError:
        log.critical("Command failed.", exc_info=True)
        return ExitCode.USAGE_ERROR


def main() -> None:
    """Run the command."""
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        sys.exit(ExitCode.USAGE_ERROR)


if __name__ == "__main__":
    main()
