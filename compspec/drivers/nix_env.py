"""nix-env driver.

The options depend on the main operation (--install, --query, ...), so the
grammar is built from the words typed so far.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from ..completions import Redirect
from ..process import run_lines
from .nix_common import BOILERPLATE, COMMON_OPTS, DRY_RUN, NixDriver, find_operation, operation_pattern

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..completions import ParseResult

__all__ = ["DRIVERS", "NixEnv"]

MAIN_OPTIONS = (
    ("--install", "-i"),
    ("--upgrade", "-u"),
    ("--uninstall", "-e"),
    ("--set-flag", None),
    ("--query", "-q"),
    ("--switch-profile", "-S"),
    ("--list-generations", None),
    ("--delete-generations", None),
    ("--switch-generation", "-G"),
    ("--rollback", None),
)

OPERATIONS = (
    ("install", operation_pattern("--install", "i")),
    ("upgrade", operation_pattern("--upgrade", "u")),
    ("uninstall", operation_pattern("--uninstall", "e")),
    ("set-flag", operation_pattern("--set-flag")),
    ("query", operation_pattern("--query", "q")),
    ("switch-profile", operation_pattern("--switch-profile", "S")),
    ("delete-generations", operation_pattern("--delete-generations")),
    ("switch-generation", operation_pattern("--switch-generation", "G")),
    ("list-generations", operation_pattern("--list-generations")),
)

ENV_COMMON = (
    *COMMON_OPTS,
    "(--profile|-p){--profile,-p}:->profile",
    DRY_RUN,
    "--system-filter:->nix-system",
)

PREBUILT_ONLY = "(--prebuilt-only|-b){--prebuilt-only,-b}"

FROM_PROFILE = "--from-profile:->profile"

OPERATION_OPTIONS: dict[str | None, tuple[str, ...]] = {
    None: (),
    "install": (
        *ENV_COMMON,
        PREBUILT_ONLY,
        FROM_PROFILE,
        "(--preserve-installed|-P){--preserve-installed,-P}",
        "(--remove-all|-r){--remove-all,-r}",
        "(-A|--attr){-A,--attr}",
        ":*->installed_packages",
    ),
    "upgrade": (
        *ENV_COMMON,
        PREBUILT_ONLY,
        FROM_PROFILE,
        "(-lt|-leq|-eq|--always)--lt",
        "(-lt|-leq|-eq|--always)--leq",
        "(-lt|-leq|-eq|--always)--eq",
        "(-lt|-leq|-eq|--always)--always",
        ":*->installed_packages",
    ),
    "uninstall": (*ENV_COMMON, ":*->installed_packages"),
    "set-flag": ENV_COMMON,
    "query": (
        *ENV_COMMON,
        PREBUILT_ONLY,
        "(--available|-a){--available,-a}",
        "(--status|-s){--status,-s}",
        "(--attr-path|-P){--attr-path,-P}",
        "(--compare-versions|-c){--compare-versions,-c}",
        "--no-name",
        "--system",
        "--drv-path",
        "--out-path",
        "--description",
        "--xml",
        "--json",
        "--meta",
    ),
    "switch-profile": (*ENV_COMMON, ":->profile"),
    "delete-generations": (*ENV_COMMON, ":*->nix_generation"),
    "switch-generation": (*ENV_COMMON, ":->nix_generation"),
    "list-generations": ENV_COMMON,
}

FLAG_NAMES = ("priority", "keep", "active")

DEFEXPR = Path("~/.nix-defexpr")


def main_spec() -> list[str]:
    """Tokens of the mutually exclusive main operations."""
    spellings = [s for pair in MAIN_OPTIONS for s in pair if s]
    group = "(" + "|".join(spellings) + ")"
    tokens = []
    for long, short in MAIN_OPTIONS:
        flag = f"{{{long},{short}}}" if short else long
        if long == "--set-flag":
            flag += ":->flag_name:->flag_value"
        tokens.append(group + flag)
    return tokens


def defexpr_roots(root: Path) -> list[Path]:
    """Find the directories holding a default.nix, breadth first."""
    found = []
    queue = [root]
    while queue:
        current = queue.pop(0)
        if (current / "default.nix").exists():
            found.append(current)
        elif current.is_dir():
            try:
                queue.extend(sorted(current.iterdir()))
            except OSError:
                continue
    return found


class NixEnv(NixDriver):
    """nix-env."""

    commands = ("nix-env",)
    file_from_option = True

    def tokens(self, words: Sequence[str]) -> list[str]:
        operation = find_operation(words, OPERATIONS)
        return [
            *OPERATION_OPTIONS[operation],
            "*{--file,-f}:->option-FILE",
            *BOILERPLATE,
            *main_spec(),
        ]

    def default_expression(self, parse: ParseResult) -> str:
        """Without -f, the expression `nix-env -iA` uses: every default.nix of ~/.nix-defexpr."""
        expression = super().default_expression(parse)
        if expression:
            return expression
        roots = defexpr_roots(DEFEXPR.expanduser())
        if not roots:
            return ""
        return "{ " + " ".join(f"{root.name} = import {root};" for root in roots) + " }"

    def state_installed_packages(self, partial: str, parse: ParseResult) -> Iterable[str] | Redirect:
        """Installed package names, attribute paths for -iA, files for paths."""
        if parse.seen("--install", "-i") and parse.seen("--attr", "-A"):
            return Redirect("attr_path")
        if partial.startswith(("./", "/", "~")):
            return Redirect("file")
        return [re.sub(r"-[0-9].*$", "", name) for name in run_lines(["nix-env", "-q"])]

    def state_nix_generation(self, _partial: str, _parse: ParseResult) -> Iterable[str]:
        generations = []
        for line in run_lines(["nix-env", "--list-generations"]):
            fields = line.split()
            if fields and fields[0].isdigit():
                generations.append(fields[0])
        return generations

    def state_flag_name(self, _partial: str, _parse: ParseResult) -> Iterable[str]:
        return FLAG_NAMES

    def state_flag_value(self, _partial: str, parse: ParseResult) -> Iterable[str]:
        if parse.previous in ("keep", "active"):
            return ("true", "false")
        return ()


DRIVERS = (NixEnv,)
