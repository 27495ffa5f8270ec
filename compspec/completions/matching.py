"""Match policies used to filter suggestions against the partial word."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable

__all__ = ["MatchPolicy", "filter_suggestions", "match_after", "match_path", "match_prefix"]

# (candidate, partial word) -> keep the candidate?
MatchPolicy = Callable[[str, str], bool]


def match_prefix(candidate: str, partial: str) -> bool:
    """Plain prefix match."""
    return candidate.startswith(partial)


def _normalize_path(path: str) -> str:
    path = os.path.expanduser(path)
    while path.startswith("./"):
        path = path[2:]
    return path


def match_path(candidate: str, partial: str) -> bool:
    """Prefix match for paths, "~" and leading "./" being normalized on both sides."""
    return _normalize_path(candidate).startswith(_normalize_path(partial))


def match_after(separator: str) -> MatchPolicy:
    """Build a policy matching against the part of the word after `separator`.

    Used for words like "channel:nixos-" or "nixpkgs=/path", where the
    candidates only cover the right hand side.
    """

    def _match(candidate: str, partial: str) -> bool:
        _head, sep, tail = partial.partition(separator)
        return candidate.startswith(tail if sep else partial)

    return _match


def filter_suggestions(candidates: Iterable[str], partial: str, match: MatchPolicy = match_prefix) -> frozenset[str]:
    """Keep the candidates matching the partial word."""
    return frozenset(c for c in candidates if c and match(c, partial))
