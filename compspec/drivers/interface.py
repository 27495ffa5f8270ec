"""Common driver interface.

A driver knows the grammar of one or more commands and resolves the named
states its grammar hands over.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, ClassVar

from ..completions import ResolverRegistry, complete, interpret
from ..completions.registry import extract_resolvers_from_object
from ..config import Configuration
from ..grammar import compile_spec
from ..logging_setup import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..completions import ParseResult
    from ..config_loader import ConfigLoader
    from ..grammar import Grammar
    from ..validation import ConfigItems

__all__ = ["Driver"]


@lru_cache(maxsize=64)
def _compile_cached(tokens: tuple[str, ...]) -> Grammar:
    return compile_spec(tokens)


class Driver:
    """Base class for command drivers.

    Subclasses set `commands` and implement `tokens`. Methods named
    `state_<name>` resolve the "->name" states of the grammar (hyphens in state
    names map to underscores).
    """

    commands: ClassVar[tuple[str, ...]] = ()
    """ Commands completed by this driver """

    config_section: ClassVar[str] = ""
    """ Configuration section read by `load_config` """

    config_schema: ClassVar[ConfigItems | None] = None
    """ Schema of the configuration section """

    fallback_state: ClassVar[str | None] = None
    """ State used when a grammar names a state the driver doesn't resolve """

    def __init__(self, name: str) -> None:
        """Create a driver for the command `name`, with a matching logger."""
        self.name = name
        self.log = get_logger(f"compspec.{name}")
        self.config = Configuration(logger=self.log, schema=self.config_schema)
        self.states = ResolverRegistry(extract_resolvers_from_object(self))

    def load_config(self, loader: ConfigLoader) -> None:
        """Load the configuration section from the loader."""
        if self.config_section:
            self.config = loader.section(self.config_section, self.config_schema)

    def tokens(self, words: Sequence[str]) -> list[str]:
        """Return the grammar tokens, given the words typed so far."""
        raise NotImplementedError

    def build_grammar(self, words: Sequence[str]) -> Grammar:
        """Return the compiled grammar for the words typed so far."""
        return _compile_cached(tuple(self.tokens(words)))

    def resolve(self, words: Sequence[str], cursor: int) -> frozenset[str]:
        """Return the suggestions for the word at `cursor`.

        Args:
            words: The typed words, command name first
            cursor: Index of the word being completed
        """
        return complete(
            self.build_grammar(words),
            words,
            cursor,
            states=self.states,
            fallback_state=self.fallback_state,
        )

    def parse(self, words: Sequence[str], cursor: int) -> ParseResult:
        """Interpret the words without resolving anything."""
        return interpret(self.build_grammar(words), words, cursor)
