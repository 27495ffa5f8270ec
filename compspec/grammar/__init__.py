"""Grammar handling for compspec.

This package provides:
- models: Data structures (Flag, PositionalSlot, ExclusionGroup, CompletionAction, Grammar)
- parsing: Token level parsing (exclusion prefixes, brace expansion, action chains)
- compiler: Token sequence -> Grammar
- render: Grammar -> tokens, and behavioural comparison of grammars
"""

from __future__ import annotations

from .compiler import SpecCompiler, compile_spec
from .models import EMPTY, LITERAL, ActionKind, CompletionAction, ExclusionGroup, Flag, Grammar, PositionalSlot
from .render import grammars_equivalent, render_tokens

__all__ = [
    "EMPTY",
    "LITERAL",
    "ActionKind",
    "CompletionAction",
    "ExclusionGroup",
    "Flag",
    "Grammar",
    "PositionalSlot",
    "SpecCompiler",
    "compile_spec",
    "grammars_equivalent",
    "render_tokens",
]
