"""nix-store driver, its options depending on the main operation."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .nix_common import BOILERPLATE, DRY_RUN, NEW_OPTS, NixDriver, exclusive, find_operation, operation_pattern

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["DRIVERS", "NixStore"]

MAIN_OPTIONS = (
    "--realise",
    "-r",
    "--gc",
    "--delete",
    "--query",
    "-q",
    "--add",
    "--verify",
    "--verify-path",
    "--repair-path",
    "--dump",
    "--restore",
    "--export",
    "--import",
    "--optimise",
    "--read-log",
    "-l",
    "--dump-db",
    "--load-db",
    "--print-env",
    "--query-failed-paths",
    "--clear-failed-paths",
)

QUERIES = (
    "--outputs",
    "--requisites",
    "-R",
    "--references",
    "--referrers",
    "--referrers-closure",
    "--deriver",
    "--graph",
    "--tree",
    "--binding",
    "--hash",
    "--size",
    "--roots",
)

QUERY_COMMON = (
    "(--use-output|-u){--use-output,-u}",
    "(--force-realise|-f){--force-realise,-f}",
)

GC_COMMON = (
    "(- --print* --delete)--print-roots",
    "(-|--print*|--delete)--print-live",
    "(-|--print*|--delete)--print-dead",
    "(-|--print*|--delete)--delete",
)

# Any other word: the operation takes paths
OPERATIONS = (
    ("realise", operation_pattern("--realise", "r")),
    ("gc", operation_pattern("--gc")),
    ("delete", operation_pattern("--delete")),
    ("query", operation_pattern("--query", "q")),
    ("verify", operation_pattern("--verify")),
    ("nothing", re.compile("--dump-db|--load-db|--query-failed-paths")),
    ("paths", re.compile(".*")),
)

REQUISITES = operation_pattern("--requisites", "R")

OPERATION_OPTIONS: dict[str | None, tuple[str, ...]] = {
    None: (),
    "realise": (DRY_RUN, "--add-root:->gc-root", "--indirect", "--ignore-unknown", ":*->file"),
    "gc": (*GC_COMMON, "--max-freed:->empty"),
    "delete": ("--ignore-liveness", ":*->file"),
    "verify": ("--check-contents", "--repair"),
    "nothing": (),
    "paths": (":*->file",),
}


class NixStore(NixDriver):
    """nix-store."""

    commands = ("nix-store",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        operation = find_operation(words, OPERATIONS)
        if operation == "query":
            options = [*exclusive(*QUERIES), *QUERY_COMMON]
            if any(REQUISITES.fullmatch(word) for word in words[1:]):
                options.append("--include-outputs")
            options.append(":*->file")
        else:
            options = list(OPERATION_OPTIONS[operation])
        return [*BOILERPLATE, *options, *NEW_OPTS, *exclusive(*MAIN_OPTIONS)]


DRIVERS = (NixStore,)
