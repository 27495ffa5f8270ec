"""Grammar fragments and resolvers shared by the nix-* and nixos-* drivers."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from ..completions import Redirect, matching
from ..completions.builtins import list_commands, list_paths
from ..completions.matching import match_path
from ..process import run_lines
from ..validation import ConfigField, ConfigItems
from .interface import Driver
from .nixpath import CHANNEL_PREFIX, DEFAULT_CACHE_DIR, build_nix_path, channel_url, resolve_url, split_nix_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..completions import ParseResult

__all__ = [
    "BOILERPLATE",
    "COMMON_NIXOS_REBUILD",
    "COMMON_OPTS",
    "DRY_RUN",
    "NEW_OPTS",
    "NIX_CHANNELS",
    "NIX_SCHEMA",
    "REPAIR",
    "SEARCH_PATH_ARGS",
    "NixDriver",
    "exclusive",
    "find_operation",
    "operation_pattern",
    "words_after",
]

BOILERPLATE = ("--help", "--version")

REPAIR = "--repair"

DRY_RUN = "--dry-run"

SEARCH_PATH_ARGS = "*-I:->option-INCLUDE"

# Options also understood by nixos-rebuild
COMMON_NIXOS_REBUILD = (
    SEARCH_PATH_ARGS,
    "(--verbose|-v){--verbose,-v}",
    "(--no-build-output|-Q){--no-build-output,-Q}",
    "(--max-jobs|-j){--max-jobs,-j}:->empty",
    "--cores",
    "(--keep-going|-k){--keep-going,-k}",
    "(--keep-failed|-K){--keep-failed,-K}",
    "--fallback",
    "--show-trace",
    REPAIR,
)

# nix-* commands only, since nix 2.0
NEW_OPTS = (
    "*--include:->option-INCLUDE",
    "*--option:->nixoption:->nixoptionvalue",
)

# nix-build, nix-env, nix-instantiate and nix-shell
COMMON_OPTS = (
    *COMMON_NIXOS_REBUILD,
    *NEW_OPTS,
    "*{--attr,-A}:->attr_path",
    "*--arg:->function-arg:->empty",
    "*--argstr:->function-arg:->empty",
    "--max-silent-time:->empty",
    "--timeout:->empty",
    "--readonly-mode",
    "--log-type:->log-type",
)

NIX_CHANNELS = [
    "nixos-unstable",
    "nixos-unstable-small",
    "nixpkgs-unstable",
    "nixos-18.03",
    "nixos-18.03-small",
    "nixpkgs-18.03-darwin",
    "nixos-17.09",
    "nixos-17.09-small",
    "nixpkgs-17.09-darwin",
    "nixos-17.03",
    "nixos-17.03-small",
    "nixos-16.09",
    "nixos-16.09-small",
    "nixos-16.03",
    "nixos-16.03-small",
    "nixos-16.03-testing",
    "nixos-15.09",
    "nixos-15.09-small",
    "nixos-14.12",
    "nixos-14.12-small",
    "nixos-14.04",
    "nixos-14.04-small",
    "nixos-13.10",
]

HASH_TYPES = ("md5", "sha1", "sha256", "sha512")

NIX_SCHEMA = ConfigItems(
    ConfigField("channels", list, NIX_CHANNELS, "Channels offered after 'channel:'"),
    ConfigField("profiles_dir", str, "/nix/var/nix/profiles/", "Where nix profiles live"),
    ConfigField("gcroots_dir", str, "/nix/var/nix/gcroots/", "Where garbage collector roots live"),
    ConfigField("cache_dir", str, "", "Nix tarball cache, defaults to $XDG_CACHE_HOME/nix/tarballs"),
)

# Double quoted strings in `nix-instantiate --eval` output
_NIX_STRING = re.compile(r'"((?:[^"\\]|\\.)*)"')

# Lists the attribute names found at the typed attribute path.
# Functions along the path are called with {}, as nix does for -A.
_ATTR_NAMES_EXPR = """
let
  autocall = setOrLambda:
    if builtins.isFunction setOrLambda then setOrLambda {{}} else setOrLambda;
  top = autocall ({defexpr});
  names = [ {names} ];
  reducer = set: name: autocall (builtins.getAttr name set);
  result = builtins.foldl' reducer top names;
in
  if builtins.isAttrs result then builtins.attrNames result else ""
"""


def exclusive(*spellings: str) -> list[str]:
    """Return tokens for flags which exclude each other, eg: main operations."""
    group = "(" + "|".join(spellings) + ")"
    return [group + spelling for spelling in spellings]


def words_after(parse: ParseResult, *spellings: str) -> list[str]:
    """Return the words following any of `spellings`, in command line order."""
    words = parse.words
    return [words[i + 1] for i in range(1, len(words) - 1) if words[i] in spellings]


def dequote(text: str) -> str:
    """Remove one level of matching quotes."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return text[1:-1]
    return text


class NixDriver(Driver):
    """Base driver for the nix tools."""

    config_section = "nix"
    config_schema = NIX_SCHEMA
    fallback_state = "file"

    main_commands: ClassVar[tuple[str, ...]] = ()
    """ Sub-commands offered by the "main_command" state """

    file_from_option: ClassVar[bool] = False
    """ The nix file comes from -f/--file instead of the first argument """

    # Running nix

    @property
    def cache_dir(self) -> Path:
        """The nix tarball cache."""
        configured = self.config.get_str("cache_dir")
        return Path(configured).expanduser() if configured else DEFAULT_CACHE_DIR

    def nix_path(self, parse: ParseResult) -> str:
        """NIX_PATH for evaluations, honouring -I and --include."""
        return build_nix_path(words_after(parse, "-I", "--include"), os.environ.get("NIX_PATH", ""), self.cache_dir)

    def eval_strings(self, expression: str, parse: ParseResult) -> list[str]:
        """Evaluate a nix expression returning strings or a list of strings."""
        env = dict(os.environ, NIX_PATH=self.nix_path(parse))
        output = run_lines(["nix-instantiate", "--eval", "-"], input=expression, env=env)
        return [m.group(1) for line in output for m in _NIX_STRING.finditer(line)]

    def attr_paths(self, defexpr: str, partial: str, parse: ParseResult) -> list[str]:
        """Complete an attribute path inside `defexpr`."""
        if partial.startswith("."):
            return []
        attr_path = partial.rpartition(".")[0]
        names = " ".join(f'"{name}"' for name in attr_path.split(".")) if attr_path else ""
        prefix = f"{attr_path}." if attr_path else ""
        expression = _ATTR_NAMES_EXPR.format(defexpr=defexpr, names=names)
        return [prefix + name for name in self.eval_strings(expression, parse) if name]

    def file_arg(self, parse: ParseResult) -> str:
        """Return the nix file the command operates on, as a local path."""
        file = ""
        if self.file_from_option:
            values = words_after(parse, "--file", "-f")
            file = values[-1] if values else ""
        elif parse.line:
            file = parse.line[0]
        elif self.name == "nix-shell" and Path("shell.nix").exists():
            file = "shell.nix"
        elif Path("default.nix").exists():
            file = "default.nix"
        if not file:
            return ""

        file = os.path.expanduser(dequote(channel_url(file)))
        if os.path.exists(file):
            return os.path.realpath(file)
        if file.startswith(("https://", "http://")):
            return resolve_url(file, self.cache_dir) or ""
        return file

    def function_arguments(self, parse: ParseResult) -> str:
        """Return the "{ name = value; }" set built from --arg and --argstr."""
        words = parse.words
        args = ""
        i = 1
        while i < len(words) - 2:
            if words[i] == "--arg":
                args += f"{dequote(words[i + 1])} = {dequote(words[i + 2])};"
                i += 2
            elif words[i] == "--argstr":
                args += f'{dequote(words[i + 1])} = "{dequote(words[i + 2])}";'
                i += 2
            i += 1
        return f"{{{args}}}" if args else ""

    def default_expression(self, parse: ParseResult) -> str:
        """The expression attribute paths are looked up in."""
        file = self.file_arg(parse)
        if not file:
            return ""
        args = self.function_arguments(parse)
        if parse.seen("--expr", "-E"):
            return f"({file}) {args}"
        return f"import {file} {args}"

    # States

    def state_main_command(self, _partial: str, _parse: ParseResult) -> Iterable[str]:
        return self.main_commands

    def state_empty(self, _partial: str, _parse: ParseResult) -> Iterable[str]:
        return ()

    @matching(match_path)
    def state_file(self, partial: str, _parse: ParseResult) -> Iterable[str]:
        return list_paths(partial)

    state_option_FILES = state_file
    state_option_PATH = state_file
    state_arg_PATH = state_file

    @matching(match_path)
    def state_directory(self, partial: str, _parse: ParseResult) -> Iterable[str]:
        return list_paths(partial, directories_only=True)

    state_option_STORE_URI = state_directory

    @matching(match_path)
    def state_nix_file(self, partial: str, _parse: ParseResult) -> Iterable[str]:
        """Directories and .nix files."""
        return list_paths(partial, extensions=(".nix",))

    state_arg_FILES = state_nix_file

    def state_option_FILE(self, partial: str, _parse: ParseResult) -> Iterable[str] | Redirect:
        """Nix files, or channel names after "channel:"."""
        if partial.startswith(CHANNEL_PREFIX):
            return [CHANNEL_PREFIX + channel for channel in self.config.get_list("channels", NIX_CHANNELS)]
        return Redirect("nix_file")

    def state_file_or_expr(self, _partial: str, parse: ParseResult) -> Redirect:
        """The first argument is an expression with --expr, a file otherwise."""
        if parse.seen("--expr", "-E"):
            return Redirect("expr")
        return Redirect("option-FILE")

    def state_option_TYPE(self, _partial: str, _parse: ParseResult) -> Iterable[str]:
        return HASH_TYPES

    def state_option_COMMAND(self, partial: str, _parse: ParseResult) -> Iterable[str]:
        return list_commands(partial)

    def state_option_PARAMS(self, _partial: str, _parse: ParseResult) -> Iterable[str]:
        return list(os.environ)

    @matching(match_path)
    def state_profile(self, partial: str, _parse: ParseResult) -> Iterable[str]:
        """Directories, starting from the profiles directory."""
        return list_paths(partial or self.config.get_str("profiles_dir"), directories_only=True)

    state_option_PROFILE_DIR = state_profile

    @matching(match_path)
    def state_gc_root(self, partial: str, parse: ParseResult) -> Iterable[str]:
        """Directories, starting from the gc roots unless --indirect is used."""
        if partial or parse.seen("--indirect"):
            return list_paths(partial, directories_only=True)
        return list_paths(self.config.get_str("gcroots_dir"), directories_only=True)

    def state_option_INCLUDE(self, partial: str, _parse: ParseResult) -> Iterable[str]:
        """Search path entries: a path, "name=path", or a name from NIX_PATH."""
        if partial.startswith(("/", "./", "~/")):
            return list_paths(partial, extensions=(".nix",))
        if "=" in partial:
            name, _, path = partial.partition("=")
            return [f"{name}={entry}" for entry in list_paths(path, extensions=(".nix",))]
        names = [entry.partition("=")[0] for entry in split_nix_path(os.environ.get("NIX_PATH", "")) if "=" in entry]
        return [f"{name}=" for name in names]

    def state_nixoption(self, _partial: str, _parse: ParseResult) -> Iterable[str]:
        """Settings listed by `nix --help-config`."""
        options = []
        for line in run_lines(["nix", "--help-config"]):
            match = re.match(r"^ +([0-9a-z-]+)(?: |$)", line)
            if match:
                options.append(match.group(1))
        return options

    def state_nix_system(self, _partial: str, parse: ParseResult) -> Iterable[str]:
        return self.eval_strings("(import <nixpkgs> {}).lib.systems.doubles.all", parse)

    def state_attr_path(self, partial: str, parse: ParseResult) -> Iterable[str]:
        """Attribute paths of the default expression."""
        defexpr = self.default_expression(parse)
        if not defexpr:
            return []
        return self.attr_paths(defexpr, partial, parse)

    def state_function_arg(self, _partial: str, parse: ParseResult) -> Iterable[str]:
        """Arguments of the function in the nix file, minus the ones already given."""
        file = self.file_arg(parse)
        if not file:
            return []
        function = f"({file})" if parse.seen("--expr", "-E") else f"import {file}"
        words = parse.words
        given = {
            dequote(words[i + 1])
            for i in range(1, len(words) - 1)
            if words[i] in ("--arg", "--argstr") and i + 1 != parse.cursor
        }
        names = self.eval_strings(f"builtins.attrNames (builtins.functionArgs ({function}))", parse)
        return [name for name in names if name not in given]

    state_option_NAME = state_function_arg


def operation_pattern(long: str, letter: str | None = None) -> re.Pattern[str]:
    """Match an operation given as `long`, or as a short flag bundle containing `letter`."""
    if letter is None:
        return re.compile(re.escape(long))
    return re.compile(rf"{re.escape(long)}|-[a-zA-Z]*{letter}[a-zA-Z]*")


def find_operation(words: Sequence[str], operations: Sequence[tuple[str, re.Pattern[str]]]) -> str | None:
    """Return the first operation found in the words after the command name.

    Args:
        words: The typed words
        operations: (name, pattern) pairs, checked in order for every word
    """
    for word in words[1:]:
        for name, pattern in operations:
            if pattern.fullmatch(word):
                return name
    return None
