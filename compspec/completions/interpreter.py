"""Command line interpreter.

Walks the typed words against a Grammar in a single greedy pass and records,
for every word, the completion action which applied while it was typed.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from ..grammar.models import EMPTY, LITERAL
from .models import ParseResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..grammar.models import CompletionAction, Flag, Grammar

__all__ = ["interpret", "resolve_flags"]

_log = logging.getLogger(__name__)

FLAG_PREFIX = "-"


def _is_short(spelling: str) -> bool:
    """Check for a single letter "-x" spelling."""
    return len(spelling) == 2 and spelling[0] == FLAG_PREFIX and spelling[1] != FLAG_PREFIX


def resolve_flags(grammar: Grammar, word: str) -> list[tuple[str, Flag]]:
    """Resolve a flag word to the declared flags it contains.

    "--long" and declared spellings are one flag, any other "-abc" word is
    split into "-a", "-b", "-c". Unknown spellings are skipped.

    Args:
        grammar: The grammar to look spellings up in
        word: A word starting with "-"

    Returns:
        List of (spelling, Flag) in typing order
    """
    if word.startswith(FLAG_PREFIX * 2) or word in grammar.flags:
        spellings = [word]
    else:
        spellings = [FLAG_PREFIX + letter for letter in word[1:]]

    resolved: list[tuple[str, Flag]] = []
    for spelling in spellings:
        flag = grammar.lookup(spelling)
        if flag is None:
            _log.debug("unknown flag %s in %r", spelling, word)
            continue
        resolved.append((spelling, flag))
    return resolved


def _exclusions(grammar: Grammar, flag: Flag) -> list[str]:
    """Return the patterns excluded once `flag` is typed."""
    if not flag.group:
        return []
    members = grammar.groups[flag.group].members
    if flag.repeatable:
        return [m for m in members if m not in flag.spellings]
    return list(members)


def _walk(grammar: Grammar, result: ParseResult) -> None:
    """Fill `result` by walking all its words."""
    queue: deque[CompletionAction] = deque()
    current_option = ""
    remaining = deque(grammar.positionals)

    result.actions[0] = EMPTY  # the command name itself

    for index, word in enumerate(result.words[1:], start=1):
        if queue and queue[0].repeating and word.startswith(FLAG_PREFIX):
            # a repeating argument runs until the next flag
            queue.clear()

        if queue:
            if index != result.cursor:
                # the word under the cursor is still being typed
                result.opt_values.setdefault(current_option, []).append(word)
            result.actions[index] = queue[0]
            if not queue[0].repeating:
                queue.popleft()

        elif word.startswith(FLAG_PREFIX):
            result.actions[index] = LITERAL
            for spelling, flag in resolve_flags(grammar, word):
                result.opts.add(spelling)
                if result.cursor != index or _is_short(spelling):
                    result.excluded.update(_exclusions(grammar, flag))
                if flag.actions:
                    current_option = spelling
                    queue = deque(flag.actions)

        else:
            result.line.append(word)
            if not remaining:
                result.actions[index] = EMPTY
                continue
            slot = remaining[0]
            result.actions[index] = slot.action
            if not slot.repeatable:
                remaining.popleft()


def interpret(grammar: Grammar, words: Sequence[str], cursor: int) -> ParseResult:
    """Interpret the typed words.

    Never raises: anomalies fall back to completing flag names.

    Args:
        grammar: The compiled grammar of the command
        words: The words, command name first
        cursor: Index of the word being completed. `len(words)` completes a new, empty word.

    Returns:
        A fresh ParseResult
    """
    words = list(words)
    if words and cursor == len(words):
        words.append("")
    result = ParseResult(words=words, cursor=cursor)

    if not 0 <= cursor < len(words):
        _log.debug("cursor %d out of range for %r", cursor, words)
        return result

    try:
        _walk(grammar, result)
    except Exception:  # pylint: disable=broad-exception-caught
        _log.debug("failed to interpret %r", words, exc_info=True)
        result.actions[cursor] = LITERAL

    _log.debug("line=%s opts=%s cursor action=%s", result.line, sorted(result.opts), result.cursor_action)
    return result
