"""Render a Grammar back to tokens, and compare grammars."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Flag, Grammar, PositionalSlot

__all__ = ["grammars_equivalent", "render_flag", "render_positional", "render_tokens"]


def render_flag(flag: Flag, grammar: Grammar, explicit_group: bool = False) -> str:
    """Render one Flag record as a single token.

    Args:
        flag: The flag record
        grammar: The grammar owning the flag's exclusion group
        explicit_group: Always write the group prefix, even for implicit groups
    """
    prefix = ""
    if flag.group:
        group = grammar.groups[flag.group]
        if explicit_group or not group.implicit:
            prefix = "(" + "|".join(group.members) + ")"
    star = "*" if flag.repeatable else ""
    name = flag.spellings[0] if len(flag.spellings) == 1 else "{" + ",".join(flag.spellings) + "}"
    actions = (":" + ":".join(str(action) for action in flag.actions)) if flag.actions else ""
    return f"{prefix}{star}{name}{actions}"


def render_positional(slot: PositionalSlot) -> str:
    """Render one positional slot."""
    return ":" + ("*" if slot.repeatable else "") + str(slot.action)


def render_tokens(grammar: Grammar) -> list[str]:
    """Re-derive tokens which compile to an equivalent Grammar.

    Spellings which were redefined keep only their last definition.
    """
    tokens: list[str] = []
    for flag in grammar.records():
        live = tuple(s for s in flag.spellings if grammar.flags.get(s) is flag)
        if live == flag.spellings:
            tokens.append(render_flag(flag, grammar))
        else:
            partial = replace(flag, spellings=live)
            tokens.append(render_flag(partial, grammar, explicit_group=True))
    tokens.extend(render_positional(slot) for slot in grammar.positionals)
    return tokens


def _exclusions(grammar: Grammar, spelling: str) -> frozenset[str] | None:
    flag = grammar.flags[spelling]
    if not flag.group:
        return None
    return frozenset(grammar.groups[flag.group].members)


def grammars_equivalent(first: Grammar, second: Grammar) -> bool:
    """Compare grammars by behaviour: spellings, exclusion memberships, action chains and slots."""
    if set(first.flags) != set(second.flags) or first.positionals != second.positionals:
        return False
    for spelling, flag in first.flags.items():
        other = second.flags[spelling]
        if (flag.actions, flag.repeatable) != (other.actions, other.repeatable):
            return False
        if _exclusions(first, spelling) != _exclusions(second, spelling):
            return False
    return True
