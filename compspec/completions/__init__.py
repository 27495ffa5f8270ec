"""Command line interpretation and completion dispatch.

This package provides:
- models: ParseResult, Dispatch and Redirect
- interpreter: walks typed words against a Grammar
- dispatcher: turns the cursor action into suggestions or a named state
- registry: named resolvers and their match policies
- builtins: resolvers for "_function" actions
- matching: prefix / path match policies
"""

from __future__ import annotations

from .builtins import BUILTINS
from .dispatcher import complete, dispatch, resolve_state
from .interpreter import interpret
from .matching import match_after, match_path, match_prefix
from .models import Dispatch, ParseResult, Redirect
from .registry import ResolverRegistry, matching

__all__ = [
    "BUILTINS",
    "Dispatch",
    "ParseResult",
    "Redirect",
    "ResolverRegistry",
    "complete",
    "dispatch",
    "interpret",
    "match_after",
    "match_path",
    "match_prefix",
    "matching",
    "resolve_state",
]
