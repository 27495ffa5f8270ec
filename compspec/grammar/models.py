"""Data models for compiled grammars."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

__all__ = [
    "EMPTY",
    "LITERAL",
    "ActionKind",
    "CompletionAction",
    "ExclusionGroup",
    "Flag",
    "Grammar",
    "PositionalSlot",
]


class ActionKind(StrEnum):
    """Kinds of completion actions."""

    LITERAL = "literal"  # complete flag names
    NAMED_STATE = "state"  # handed over to the driver
    FUNCTION = "function"  # built-in resolver
    EMPTY = "empty"  # argument accepted, nothing to suggest


@dataclass(frozen=True)
class CompletionAction:
    """What to complete for one word."""

    kind: ActionKind
    name: str = ""
    repeating: bool = False

    @classmethod
    def state(cls, name: str, repeating: bool = False) -> CompletionAction:
        """Build a named state action."""
        return cls(ActionKind.NAMED_STATE, name, repeating)

    @classmethod
    def function(cls, name: str, repeating: bool = False) -> CompletionAction:
        """Build a built-in function action."""
        return cls(ActionKind.FUNCTION, name, repeating)

    def __str__(self) -> str:
        star = "*" if self.repeating else ""
        if self.kind == ActionKind.NAMED_STATE:
            return f"{star}->{self.name}"
        if self.kind == ActionKind.FUNCTION:
            return f"{star}{self.name}"
        if self.kind == ActionKind.LITERAL:
            return f"{star}-"
        return star


LITERAL = CompletionAction(ActionKind.LITERAL)
EMPTY = CompletionAction(ActionKind.EMPTY)


@dataclass(frozen=True)
class Flag:
    """One option record, shared by all its alias spellings."""

    spellings: tuple[str, ...]
    group: str | None = None  # exclusion group id
    actions: tuple[CompletionAction, ...] = ()
    repeatable: bool = False

    @property
    def name(self) -> str:
        """Return the first (canonical) spelling."""
        return self.spellings[0]


@dataclass(frozen=True)
class ExclusionGroup:
    """Spellings (or glob patterns) which exclude each other once typed."""

    id: str
    members: tuple[str, ...]
    implicit: bool = False  # created for a flag declaring no group


@dataclass(frozen=True)
class PositionalSlot:
    """Rule applied to a bare word."""

    action: CompletionAction
    repeatable: bool = False


@dataclass(frozen=True)
class Grammar:
    """Compiled form of a command spec.

    `flags` maps every spelling to its Flag, so aliases resolve to the same record.
    `named_groups` only matters while compiling (`+name` expansions).
    """

    flags: dict[str, Flag] = field(default_factory=dict)
    positionals: tuple[PositionalSlot, ...] = ()
    groups: dict[str, ExclusionGroup] = field(default_factory=dict)
    named_groups: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def lookup(self, spelling: str) -> Flag | None:
        """Get the Flag for a spelling, if declared."""
        return self.flags.get(spelling)

    def records(self) -> list[Flag]:
        """Return each distinct Flag once, in declaration order."""
        seen: dict[int, Flag] = {}
        for flag in self.flags.values():
            seen.setdefault(id(flag), flag)
        return list(seen.values())

    def spellings(self) -> list[str]:
        """Return every declared spelling."""
        return list(self.flags)
