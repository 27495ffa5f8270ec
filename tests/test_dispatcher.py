"""Tests for the completion dispatcher."""

import pytest

from compspec.completions import Redirect, ResolverRegistry, complete, dispatch, interpret, match_after, match_path, matching, resolve_state
from compspec.constants import MAX_STATE_HOPS
from compspec.grammar import ActionKind, compile_spec


class TestDispatch:
    """Turning the cursor action into suggestions."""

    def test_literal(self, sample_grammar):
        """Flag names are filtered by the partial word."""
        parse = interpret(sample_grammar, ["tool", "--ver"], 1)
        result = dispatch(sample_grammar, parse)
        assert result.suggestions == {"--version"}
        assert result.state is None

    def test_named_state(self, sample_grammar):
        """Named states are handed back with the parse result."""
        parse = interpret(sample_grammar, ["tool", "--arg", "x", ""], 3)
        result = dispatch(sample_grammar, parse)
        assert result.action.kind == ActionKind.NAMED_STATE
        assert result.state == "empty"
        assert result.parse is parse
        assert result.suggestions == frozenset()

    def test_empty(self):
        """Empty completes nothing."""
        grammar = compile_spec(["--help", ":"])
        parse = interpret(grammar, ["tool", ""], 1)
        assert dispatch(grammar, parse).suggestions == frozenset()

    def test_function(self):
        """Functions come from the given registry, with its match policy."""

        @matching(match_path)
        def _things(partial, parse):
            return ["./alpha", "./beta", ""]

        grammar = compile_spec([":_things"])
        parse = interpret(grammar, ["tool", "alp"], 1)
        result = dispatch(grammar, parse, ResolverRegistry({"_things": _things}))
        assert result.suggestions == {"./alpha"}

    def test_caller_match_policy(self):
        """A policy given by the caller wins over the registered one."""

        @matching(match_path)
        def _pairs(partial, parse):
            return ["nixpkgs", "nixos", "home"]

        grammar = compile_spec([":_pairs"])
        parse = interpret(grammar, ["tool", "name=nix"], 1)
        registry = ResolverRegistry({"_pairs": _pairs})
        assert dispatch(grammar, parse, registry).suggestions == frozenset()
        result = dispatch(grammar, parse, registry, match=match_after("="))
        assert result.suggestions == {"nixpkgs", "nixos"}

    def test_unknown_function(self):
        """An unknown function gives nothing."""
        grammar = compile_spec([":_nothing_here"])
        parse = interpret(grammar, ["tool", ""], 1)
        assert dispatch(grammar, parse, ResolverRegistry()).suggestions == frozenset()

    def test_failing_function(self):
        """A failing resolver gives nothing."""

        def _broken(partial, parse):
            raise OSError("boom")

        grammar = compile_spec([":_broken"])
        parse = interpret(grammar, ["tool", ""], 1)
        assert dispatch(grammar, parse, ResolverRegistry({"_broken": _broken})).suggestions == frozenset()

    def test_function_redirect(self):
        """A function may hand over to a named state."""
        grammar = compile_spec([":_pick"])
        parse = interpret(grammar, ["tool", ""], 1)
        result = dispatch(grammar, parse, ResolverRegistry({"_pick": lambda partial, parse: Redirect("file")}))
        assert result.state == "file"

    def test_builtin_variables(self, monkeypatch):
        """Built-in functions are used by default."""
        monkeypatch.setenv("COMPSPEC_TEST_VARIABLE", "1")
        grammar = compile_spec([":_variables"])
        parse = interpret(grammar, ["tool", "COMPSPEC_TEST_V"], 1)
        assert dispatch(grammar, parse).suggestions == {"COMPSPEC_TEST_VARIABLE"}


class TestResolveState:
    """Named states resolved through a registry."""

    def test_complete(self, sample_grammar, states):
        """complete() runs the whole loop."""
        assert complete(sample_grammar, ["tool", "-A", "nixpkgs."], 2, states) == {"nixpkgs.hello", "nixpkgs.git"}
        assert complete(sample_grammar, ["tool", ""], 1, states) == {"alpha", "beta"}

    def test_no_registry(self, sample_grammar):
        """Without resolvers, named states give nothing."""
        assert complete(sample_grammar, ["tool", ""], 1) == frozenset()

    def test_redirect(self, states):
        """Resolvers may continue with another state."""
        states.register("file-or-expr", lambda partial, parse: Redirect("file"))
        parse = interpret(compile_spec([":->file-or-expr"]), ["tool", ""], 1)
        assert resolve_state("file-or-expr", parse, states) == {"default.nix", "shell.nix"}

    def test_fallback(self, states):
        """Unknown states use the fallback state."""
        parse = interpret(compile_spec([":->unknown"]), ["tool", "s"], 1)
        assert resolve_state("unknown", parse, states) == frozenset()
        assert resolve_state("unknown", parse, states, fallback_state="file") == {"shell.nix"}

    def test_redirect_loop(self, states):
        """Endless redirects are cut."""
        calls = []

        def _loop(partial, parse):
            calls.append(partial)
            return Redirect("loop")

        states.register("loop", _loop)
        parse = interpret(compile_spec([":->loop"]), ["tool", ""], 1)
        assert resolve_state("loop", parse, states) == frozenset()
        assert len(calls) == MAX_STATE_HOPS


class TestRegistry:
    """ResolverRegistry behaviour."""

    def test_normalized_names(self):
        """Hyphens and underscores are the same."""
        registry = ResolverRegistry({"file-or-expr": lambda partial, parse: []})
        assert "file_or_expr" in registry
        assert "file-or-expr" in registry
        assert list(registry) == ["file_or_expr"]
        assert len(registry) == 1

    def test_match_policy(self):
        """The policy comes from the decorator unless given."""
        registry = ResolverRegistry()
        registry.register("a", matching(match_path)(lambda partial, parse: []))
        registry.register("b", lambda partial, parse: [], match=match_path)
        registry.register("c", lambda partial, parse: [])
        assert registry.match_for("a") is match_path
        assert registry.match_for("b") is match_path
        assert registry.match_for("c") is not match_path

    @pytest.mark.parametrize("outcome", [None, (), iter(["x"])])
    def test_call_results(self, sample_grammar, outcome):
        """Results are turned into lists."""
        registry = ResolverRegistry({"s": lambda partial, parse: outcome})
        result = registry.call("s", "", interpret(sample_grammar, ["tool"], 1))
        assert isinstance(result, list)
