"""Grammar token parsing utilities."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import SpecCompileError
from .models import EMPTY, LITERAL, CompletionAction

__all__ = [
    "FlagToken",
    "expand_braces",
    "parse_action",
    "parse_action_chain",
    "parse_flag_token",
    "split_exclusion_prefix",
]

# Separators allowed between exclusion group members: "(a|b)" or "(a b)"
_MEMBER_SEPARATOR = re.compile(r"[|\s]+")


@dataclass
class FlagToken:
    """A flag definition token, before compilation."""

    spellings: list[str]
    repeatable: bool
    actions: tuple[CompletionAction, ...]


def split_exclusion_prefix(token: str) -> tuple[list[str] | None, str]:
    """Strip a leading "(a|b|c)" exclusion group from a token.

    Args:
        token: The raw spec token

    Returns:
        Tuple of (members, remainder). members is None when there is no prefix.

    Raises:
        SpecCompileError: On an unterminated or empty group
    """
    if not token.startswith("("):
        return None, token
    end = token.find(")")
    if end == -1:
        raise SpecCompileError(token, "unterminated exclusion group")
    members = [m for m in _MEMBER_SEPARATOR.split(token[1:end]) if m]
    if not members:
        raise SpecCompileError(token, "empty exclusion group")
    return members, token[end + 1 :]


def expand_braces(text: str, token: str | None = None) -> list[str]:
    """Expand "{a,b}" alternatives, e.g. "{--attr,-A}" -> ["--attr", "-A"].

    Args:
        text: The text to expand
        token: The full token, for error messages

    Returns:
        The expanded words, in order
    """
    token = text if token is None else token
    start = text.find("{")
    if start == -1:
        if "}" in text:
            raise SpecCompileError(token, "unbalanced braces")
        return [text]
    end = text.find("}", start)
    if end == -1:
        raise SpecCompileError(token, "unbalanced braces")
    inner = text[start + 1 : end]
    if "{" in inner:
        raise SpecCompileError(token, "nested braces are not supported")
    heads = [text[:start] + alternative for alternative in inner.split(",")]
    tails = expand_braces(text[end + 1 :], token)
    return [head + tail for head in heads for tail in tails]


def parse_action(text: str, token: str | None = None) -> CompletionAction:
    """Parse one action.

    "->name" is a named state, "_name" a built-in function, "-" completes
    flag names, "" completes nothing and any other word is a named state.
    A leading "*" marks the action as repeating.
    """
    repeating = text.startswith("*")
    body = text[1:] if repeating else text
    if body.startswith("->"):
        name = body[2:]
        if not name:
            raise SpecCompileError(token or text, "missing state name after '->'")
        return CompletionAction.state(name, repeating)
    if body == "-":
        return CompletionAction(LITERAL.kind, repeating=repeating)
    if not body:
        return CompletionAction(EMPTY.kind, repeating=repeating)
    if body.startswith("_"):
        return CompletionAction.function(body, repeating)
    return CompletionAction.state(body, repeating)


def parse_action_chain(text: str, token: str | None = None) -> tuple[CompletionAction, ...]:
    """Parse a ":"-separated action chain. Only the tail may repeat."""
    actions = tuple(parse_action(part, token) for part in text.split(":"))
    if any(action.repeating for action in actions[:-1]):
        raise SpecCompileError(token or text, "only the last action of a chain may repeat")
    return actions


def parse_flag_token(body: str, token: str | None = None) -> FlagToken:
    """Parse "[*]-flag[:action...]", the exclusion prefix being already stripped.

    Args:
        body: The token without its exclusion group
        token: The full token, for error messages

    Returns:
        The parsed FlagToken
    """
    token = body if token is None else token
    repeatable = body.startswith("*")
    if repeatable:
        body = body[1:]
    flag_part, sep, action_part = body.partition(":")
    spellings = expand_braces(flag_part, token)
    for spelling in spellings:
        if len(spelling) < 2 or not spelling.startswith("-") or spelling == "--":
            raise SpecCompileError(token, f"invalid flag spelling {spelling!r}")
    actions = parse_action_chain(action_part, token) if sep else ()
    return FlagToken(spellings=spellings, repeatable=repeatable, actions=actions)
