"""Spec compiler: turns grammar tokens into a Grammar.

Token summary::

    (a|b|c)         exclusion group prefix, stripped before the rest is parsed
    +name           following flags are added to the named group "name"
    -f[:act...]     a flag, "*-f" makes it repeatable, "{-f,--foo}" declares aliases
    :act / :*act    a positional slot ("*" = repeatable)

Actions: "->state", "_function", "-" (flag names), "" (nothing), "*act" repeats.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..models import SpecCompileError
from .models import ExclusionGroup, Flag, Grammar, PositionalSlot
from .parsing import parse_action, parse_flag_token, split_exclusion_prefix

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = ["SpecCompiler", "compile_spec", "group_id"]

_log = logging.getLogger(__name__)


def group_id(members: Iterable[str]) -> str:
    """Return the id of an exclusion group given its members."""
    return "(" + "|".join(members) + ")"


class SpecCompiler:
    """Accumulates tokens and builds a Grammar.

    Usage:
        compiler = SpecCompiler()
        compiler.feed_all(["--help", "(--expr|-E){--expr,-E}", ":*->file"])
        grammar = compiler.compile()
    """

    def __init__(self) -> None:
        self._flags: dict[str, Flag] = {}
        self._positionals: list[PositionalSlot] = []
        self._groups: dict[str, ExclusionGroup] = {}
        self._named_groups: dict[str, list[str]] = {}
        self._current_named: str = ""
        self._expect_named: str | None = None  # the "+" token waiting for a name

    def feed_all(self, tokens: Iterable[str]) -> None:
        """Feed several tokens."""
        for token in tokens:
            self.feed(token)

    def feed(self, token: str) -> None:
        """Compile one token into the current state.

        Raises:
            SpecCompileError: If the token is malformed
        """
        if self._expect_named is not None:
            self._expect_named = None
            self._switch_named_group(token)
            return

        members, body = split_exclusion_prefix(token)

        if body.startswith("+"):
            if members is not None:
                raise SpecCompileError(token, "named groups can't have an exclusion group")
            if body == "+":
                self._expect_named = token
            else:
                self._switch_named_group(body[1:])
        elif body.startswith(":"):
            if members is not None:
                raise SpecCompileError(token, "positional slots can't have an exclusion group")
            self._add_positional(body[1:], token)
        elif body.startswith(("-", "*", "{")):
            self._add_flag(body, token, None if members is None else self._expand_members(members, token))
        else:
            raise SpecCompileError(token, "expected a flag, a positional slot or a named group")

    def compile(self) -> Grammar:
        """Return the compiled Grammar.

        Raises:
            SpecCompileError: If a trailing "+" is missing its group name
        """
        if self._expect_named is not None:
            raise SpecCompileError(self._expect_named, "missing named group")
        used = {flag.group for flag in self._flags.values() if flag.group}
        return Grammar(
            flags=dict(self._flags),
            positionals=tuple(self._positionals),
            groups={gid: group for gid, group in self._groups.items() if gid in used},
            named_groups={name: tuple(spellings) for name, spellings in self._named_groups.items()},
        )

    def _switch_named_group(self, name: str) -> None:
        if not name:
            raise SpecCompileError("+", "missing named group")
        self._current_named = name
        self._named_groups.setdefault(name, [])

    def _expand_members(self, members: list[str], token: str) -> list[str]:
        """Replace "+name" members with the spellings collected in that named group."""
        expanded: list[str] = []
        for member in members:
            if member.startswith("+"):
                if member[1:] not in self._named_groups:
                    raise SpecCompileError(token, f"unknown named group {member[1:]!r}")
                candidates = self._named_groups[member[1:]]
            else:
                candidates = [member]
            expanded.extend(c for c in candidates if c not in expanded)
        return expanded

    def _add_positional(self, spec: str, token: str) -> None:
        repeatable = spec.startswith("*")
        action = parse_action(spec[1:] if repeatable else spec, token)
        if action.repeating:
            raise SpecCompileError(token, "use ':*action' for a repeatable positional slot")
        self._positionals.append(PositionalSlot(action=action, repeatable=repeatable))

    def _add_flag(self, body: str, token: str, members: list[str] | None) -> None:
        parsed = parse_flag_token(body, token)

        if members is not None:
            if not parsed.repeatable:
                # non-repeatable flags always exclude themselves
                members = members + [s for s in parsed.spellings if s not in members]
            gid: str | None = group_id(members)
            group = self._groups.get(gid)
            if group is None or group.implicit:
                self._groups[gid] = ExclusionGroup(id=gid, members=tuple(members))
        elif parsed.repeatable:
            gid = None
        else:
            gid = group_id(parsed.spellings)
            self._groups.setdefault(gid, ExclusionGroup(id=gid, members=tuple(parsed.spellings), implicit=True))

        flag = Flag(
            spellings=tuple(parsed.spellings),
            group=gid,
            actions=parsed.actions,
            repeatable=parsed.repeatable,
        )
        for spelling in parsed.spellings:
            if spelling in self._flags:
                _log.debug("%s redefined by %r", spelling, token)
            self._flags[spelling] = flag
        if self._current_named:
            named = self._named_groups[self._current_named]
            named.extend(s for s in parsed.spellings if s not in named)


def compile_spec(tokens: Iterable[str]) -> Grammar:
    """Compile a sequence of grammar tokens.

    Args:
        tokens: The grammar tokens, e.g. ["--help", "*-I:->include", ":*->file"]

    Returns:
        The compiled Grammar

    Raises:
        SpecCompileError: If a token is malformed
    """
    compiler = SpecCompiler()
    compiler.feed_all(tokens)
    grammar = compiler.compile()
    _log.debug("compiled %d flags, %d positional slots", len(grammar.flags), len(grammar.positionals))
    return grammar
