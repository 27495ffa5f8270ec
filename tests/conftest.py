"""Generic fixtures."""

import logging

import pytest

from compspec.completions import ResolverRegistry
from compspec.grammar import compile_spec


def pytest_configure():
    """Runs once before all."""
    from compspec.logging_setup import init_logger

    init_logger("/dev/null", force_debug=True)


@pytest.fixture
def test_logger():
    """A logger for objects which need one."""
    return logging.getLogger("compspec.tests")


# Grammar used by most interpreter and dispatcher tests:
# an exclusive pair, a repeatable flag taking one value, a flag with a
# two step chain and a repeating positional slot
SAMPLE_TOKENS = [
    "(--expr|-E){--expr,-E}",
    "*{--attr,-A}:->attr_path",
    "--arg:->function-arg:->empty",
    "--help",
    "--version",
    ":->first",
    ":*->file",
]


@pytest.fixture
def sample_grammar():
    """The compiled SAMPLE_TOKENS."""
    return compile_spec(SAMPLE_TOKENS)


@pytest.fixture
def states():
    """A registry answering a few named states."""
    return ResolverRegistry(
        {
            "attr_path": lambda partial, parse: ["nixpkgs.hello", "nixpkgs.git", "other"],
            "first": lambda partial, parse: ["alpha", "beta"],
            "file": lambda partial, parse: ["default.nix", "shell.nix"],
        }
    )
