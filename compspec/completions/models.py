"""Data models for command line interpretation and dispatch."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Any

from ..grammar.models import LITERAL, ActionKind, CompletionAction

__all__ = [
    "OPT_ARG_SEPARATOR",
    "Dispatch",
    "ParseResult",
    "Redirect",
    "Resolver",
    "join_opt_values",
    "split_opt_arg",
]

# Separator between repeated option arguments in `opt_args`
OPT_ARG_SEPARATOR = ":"

_UNESCAPED_SEPARATOR = re.compile(r"(?<!\\)" + re.escape(OPT_ARG_SEPARATOR))


def join_opt_values(values: Iterable[str]) -> str:
    """Join option arguments, escaping the separator inside values."""
    return OPT_ARG_SEPARATOR.join(v.replace(OPT_ARG_SEPARATOR, "\\" + OPT_ARG_SEPARATOR) for v in values)


def split_opt_arg(text: str) -> list[str]:
    """Split an `opt_args` entry back into its values."""
    if not text:
        return []
    return [v.replace("\\" + OPT_ARG_SEPARATOR, OPT_ARG_SEPARATOR) for v in _UNESCAPED_SEPARATOR.split(text)]


@dataclass
class ParseResult:  # pylint: disable=too-many-instance-attributes
    """Outcome of walking the typed words against a Grammar.

    Built fresh for every completion request.

    Attributes:
        words: The words, command name first
        cursor: Index of the word being completed
        line: Positional values, command name excluded
        opts: Flag spellings seen
        opt_values: Captured option arguments per flag spelling
        excluded: Spelling patterns no longer offered as flag completions
        actions: Completion action recorded for each word index
    """

    words: list[str]
    cursor: int
    line: list[str] = field(default_factory=list)
    opts: set[str] = field(default_factory=set)
    opt_values: dict[str, list[str]] = field(default_factory=dict)
    excluded: set[str] = field(default_factory=set)
    actions: dict[int, CompletionAction] = field(default_factory=dict)

    @property
    def opt_args(self) -> dict[str, str]:
        """Captured option arguments, repeated values joined with ":"."""
        return {flag: join_opt_values(values) for flag, values in self.opt_values.items()}

    @property
    def cursor_action(self) -> CompletionAction:
        """The action applying to the word under the cursor."""
        return self.actions.get(self.cursor, LITERAL)

    @property
    def command(self) -> str:
        """The command name."""
        return self.words[0] if self.words else ""

    @property
    def current(self) -> str:
        """The (partial) word under the cursor."""
        if 0 <= self.cursor < len(self.words):
            return self.words[self.cursor]
        return ""

    @property
    def previous(self) -> str:
        """The word before the cursor."""
        if 0 < self.cursor <= len(self.words):
            return self.words[self.cursor - 1]
        return ""

    def seen(self, *spellings: str) -> bool:
        """Check if any of the spellings was typed."""
        return any(s in self.opts for s in spellings)

    def values(self, *spellings: str) -> list[str]:
        """Return the option arguments captured for the spellings."""
        return [v for s in spellings for v in self.opt_values.get(s, ())]

    def is_excluded(self, spelling: str) -> bool:
        """Check if a flag spelling may no longer be suggested."""
        return any(fnmatchcase(spelling, pattern) for pattern in self.excluded)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON friendly view."""
        return {
            "words": list(self.words),
            "cursor": self.cursor,
            "line": list(self.line),
            "opts": sorted(self.opts),
            "opt_args": self.opt_args,
            "excluded": sorted(self.excluded),
            "actions": {str(index): str(action) for index, action in sorted(self.actions.items())},
            "cursor_action": {"kind": str(self.cursor_action.kind), "name": self.cursor_action.name},
        }


@dataclass(frozen=True)
class Redirect:
    """Returned by a resolver to continue with another state."""

    state: str


@dataclass
class Dispatch:
    """Outcome of dispatching the cursor action.

    Named states are not resolved here: `state` is set and the caller decides.
    """

    action: CompletionAction
    parse: ParseResult
    suggestions: frozenset[str] = frozenset()

    @property
    def state(self) -> str | None:
        """The symbolic state handed over to the driver, if any."""
        if self.action.kind == ActionKind.NAMED_STATE:
            return self.action.name
        return None


# Turns a partial word into suggestions, or hands over to another state
Resolver = Callable[[str, ParseResult], Iterable[str] | Redirect]
