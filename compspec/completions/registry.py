"""Resolver registry: maps state and function names to resolvers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .matching import MatchPolicy, match_prefix
from .models import ParseResult, Redirect, Resolver

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

__all__ = [
    "ResolverRegistry",
    "extract_resolvers_from_object",
    "matching",
    "normalize_state_name",
]

_log = logging.getLogger(__name__)

# Attribute set by @matching on resolver functions
MATCH_ATTRIBUTE = "match_policy"


def normalize_state_name(name: str) -> str:
    """Normalize a state name to its method form.

    E.g., "file-or-expr" -> "file_or_expr", "option-INCLUDE" -> "option_INCLUDE"
    """
    return name.replace("-", "_")


def matching(policy: MatchPolicy) -> Callable[[Callable], Callable]:
    """Decorator choosing the match policy used to filter a resolver's suggestions."""

    def _decorate(fn: Callable) -> Callable:
        setattr(fn, MATCH_ATTRIBUTE, policy)
        return fn

    return _decorate


class ResolverRegistry:
    """Named resolvers, with the match policy filtering their output.

    Names are normalized, so "file-or-expr" and "file_or_expr" are the same entry.
    """

    def __init__(self, resolvers: dict[str, Resolver] | None = None) -> None:
        self._resolvers: dict[str, tuple[Resolver, MatchPolicy]] = {}
        for name, resolver in (resolvers or {}).items():
            self.register(name, resolver)

    def register(self, name: str, resolver: Resolver, match: MatchPolicy | None = None) -> None:
        """Add or replace a resolver.

        Args:
            name: State or function name
            resolver: Callable (partial word, parse result) -> suggestions or Redirect
            match: Match policy, defaults to the one set with @matching, else prefix matching
        """
        policy = match or getattr(resolver, MATCH_ATTRIBUTE, match_prefix)
        self._resolvers[normalize_state_name(name)] = (resolver, policy)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_state_name(name) in self._resolvers

    def __iter__(self) -> Iterator[str]:
        return iter(self._resolvers)

    def __len__(self) -> int:
        return len(self._resolvers)

    def match_for(self, name: str) -> MatchPolicy:
        """Return the match policy of a resolver."""
        entry = self._resolvers.get(normalize_state_name(name))
        return entry[1] if entry else match_prefix

    def call(self, name: str, partial: str, parse: ParseResult) -> Iterable[str] | Redirect:
        """Run a resolver.

        Resolver failures never propagate: an unknown name or a failing
        resolver gives no suggestions.
        """
        entry = self._resolvers.get(normalize_state_name(name))
        if entry is None:
            _log.debug("no resolver for %s", name)
            return ()
        try:
            outcome = entry[0](partial, parse)
        except Exception:  # pylint: disable=broad-exception-caught
            _log.warning("resolver %s failed", name, exc_info=True)
            return ()
        if isinstance(outcome, Redirect):
            return outcome
        return list(outcome or ())


def extract_resolvers_from_object(obj: object, prefix: str = "state_") -> dict[str, Resolver]:
    """Extract resolvers from the methods of an object.

    Looks for methods starting with `prefix`, e.g. "state_attr_path" resolves
    the "attr_path" (or "attr-path") state.

    Args:
        obj: A driver instance
        prefix: Method name prefix

    Returns:
        Dict mapping state name to bound method
    """
    resolvers: dict[str, Resolver] = {}
    for name in dir(obj):
        if not name.startswith(prefix):
            continue
        method = getattr(obj, name)
        if callable(method):
            resolvers[name[len(prefix) :]] = method
    return resolvers
