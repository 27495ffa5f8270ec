"""Completion dispatcher.

Turns the cursor action of a ParseResult into suggestions:

- Literal: flag spellings still allowed
- NamedState: handed back to the caller (see `resolve_state`)
- Function: a built-in resolver
- Empty: nothing
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..constants import MAX_STATE_HOPS
from ..grammar.models import ActionKind, CompletionAction
from .builtins import BUILTINS
from .interpreter import interpret
from .matching import MatchPolicy, filter_suggestions, match_prefix
from .models import Dispatch, ParseResult, Redirect

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..grammar.models import Grammar
    from .registry import ResolverRegistry

__all__ = ["complete", "dispatch", "literal_suggestions", "resolve_state"]

_log = logging.getLogger(__name__)


def literal_suggestions(grammar: Grammar, parse: ParseResult) -> list[str]:
    """Return the flag spellings which are not excluded."""
    return [spelling for spelling in grammar.spellings() if not parse.is_excluded(spelling)]


def dispatch(
    grammar: Grammar,
    parse: ParseResult,
    functions: ResolverRegistry | None = None,
    match: MatchPolicy | None = None,
) -> Dispatch:
    """Resolve the cursor action.

    Args:
        grammar: The grammar `parse` was built from
        parse: The interpreted command line
        functions: Registry for "_function" actions, defaults to the built-ins
        match: Policy filtering the suggestions. Defaults to prefix matching
            for literals and to the registered policy for functions.

    Returns:
        The Dispatch. For named states, `state` is set and `suggestions` is empty.
    """
    action = parse.cursor_action
    partial = parse.current
    candidates: Iterable[str] = ()

    if action.kind == ActionKind.LITERAL:
        candidates = literal_suggestions(grammar, parse)

    elif action.kind == ActionKind.NAMED_STATE:
        return Dispatch(action, parse)

    elif action.kind == ActionKind.FUNCTION:
        registry = BUILTINS if functions is None else functions
        outcome = registry.call(action.name, partial, parse)
        if isinstance(outcome, Redirect):
            return Dispatch(CompletionAction.state(outcome.state), parse)
        candidates = outcome
        match = match or registry.match_for(action.name)

    return Dispatch(action, parse, filter_suggestions(candidates, partial, match or match_prefix))


def resolve_state(
    state: str,
    parse: ParseResult,
    states: ResolverRegistry,
    fallback_state: str | None = None,
) -> frozenset[str]:
    """Resolve a named state with the driver's resolvers, following redirects.

    Args:
        state: The state name
        parse: The interpreted command line
        states: The driver's resolvers
        fallback_state: Used when no resolver handles a state

    Returns:
        The filtered suggestions, empty if the state can't be resolved
    """
    partial = parse.current
    for _hop in range(MAX_STATE_HOPS):
        if state not in states:
            if fallback_state is None or fallback_state not in states:
                _log.debug("unhandled state %s", state)
                return frozenset()
            _log.debug("unhandled state %s, using %s", state, fallback_state)
            state = fallback_state
        outcome = states.call(state, partial, parse)
        if isinstance(outcome, Redirect):
            _log.debug("state %s -> %s", state, outcome.state)
            state = outcome.state
            continue
        return filter_suggestions(outcome, partial, states.match_for(state))
    _log.warning("too many redirects resolving %s", state)
    return frozenset()


def complete(
    grammar: Grammar,
    words: Sequence[str],
    cursor: int,
    states: ResolverRegistry | None = None,
    functions: ResolverRegistry | None = None,
    fallback_state: str | None = None,
) -> frozenset[str]:
    """Interpret, dispatch and resolve in one go.

    Args:
        grammar: The grammar of the command
        words: The typed words, command name first
        cursor: Index of the word being completed
        states: Resolvers for named states
        functions: Resolvers for "_function" actions
        fallback_state: State used when `states` lacks one

    Returns:
        The suggestions
    """
    parse = interpret(grammar, words, cursor)
    result = dispatch(grammar, parse, functions)
    if result.state is None:
        return result.suggestions
    if states is None:
        return frozenset()
    return resolve_state(result.state, parse, states, fallback_state)
