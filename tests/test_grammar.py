"""Tests for grammar token parsing and compilation."""

import pytest

from compspec.grammar import EMPTY, LITERAL, ActionKind, CompletionAction, compile_spec
from compspec.grammar.compiler import group_id
from compspec.grammar.parsing import expand_braces, parse_action, parse_action_chain, parse_flag_token, split_exclusion_prefix
from compspec.models import SpecCompileError


class TestParsing:
    """Tests for the token level helpers."""

    def test_split_exclusion_prefix(self):
        """Members are split on "|" and whitespace."""
        assert split_exclusion_prefix("(--a|-b --c)--d") == (["--a", "-b", "--c"], "--d")
        assert split_exclusion_prefix("--d:->x") == (None, "--d:->x")

    def test_split_exclusion_prefix_errors(self):
        """Unterminated and empty groups are rejected."""
        with pytest.raises(SpecCompileError, match="unterminated"):
            split_exclusion_prefix("(--a|--b--c")
        with pytest.raises(SpecCompileError, match="empty"):
            split_exclusion_prefix("()--c")

    def test_expand_braces(self):
        """Brace alternatives keep the common prefix and suffix."""
        assert expand_braces("{--attr,-A}") == ["--attr", "-A"]
        assert expand_braces("--print-{live,dead}") == ["--print-live", "--print-dead"]
        assert expand_braces("--plain") == ["--plain"]

    def test_expand_braces_errors(self):
        """Unbalanced or nested braces are rejected."""
        for text in ("{--a,-b", "--a}", "{--a,{-b,-c}}"):
            with pytest.raises(SpecCompileError):
                expand_braces(text)

    def test_parse_action(self):
        """Every action form maps to its kind."""
        assert parse_action("->file") == CompletionAction.state("file")
        assert parse_action("file") == CompletionAction.state("file")
        assert parse_action("_files") == CompletionAction.function("_files")
        assert parse_action("-") == LITERAL
        assert parse_action("") == EMPTY
        assert parse_action("*->x") == CompletionAction.state("x", repeating=True)

    def test_parse_action_missing_name(self):
        """"->" needs a state name."""
        with pytest.raises(SpecCompileError):
            parse_action("->")

    def test_only_tail_repeats(self):
        """A repeating action must be the last of its chain."""
        assert parse_action_chain("->a:*->b")[-1].repeating
        with pytest.raises(SpecCompileError, match="last action"):
            parse_action_chain("*->a:->b")

    def test_parse_flag_token(self):
        """Star, aliases and action chain are extracted."""
        parsed = parse_flag_token("*{--arg,-a}:->name:->value")
        assert parsed.repeatable
        assert parsed.spellings == ["--arg", "-a"]
        assert [a.name for a in parsed.actions] == ["name", "value"]

    def test_invalid_spellings(self):
        """Spellings must look like flags."""
        for body in ("-", "--", "-{x,}", "*-"):
            with pytest.raises(SpecCompileError):
                parse_flag_token(body)


class TestCompiler:
    """Tests for compile_spec."""

    def test_aliases_share_one_record(self):
        """Brace aliases resolve to the same Flag object."""
        grammar = compile_spec(["*{--attr,-A}:->attr_path"])
        assert grammar.flags["--attr"] is grammar.flags["-A"]
        assert grammar.flags["-A"].actions == (CompletionAction.state("attr_path"),)
        assert grammar.flags["-A"].name == "--attr"

    def test_grouped_aliases(self):
        """An exclusion prefix may be followed by brace aliases."""
        grammar = compile_spec(["(--expr|-E){--expr,-E}", "(--verbose|-v){--verbose,-v}:->level"])
        assert grammar.flags["--expr"] is grammar.flags["-E"]
        assert grammar.groups[grammar.flags["-E"].group].members == ("--expr", "-E")
        assert grammar.flags["-v"].actions == (CompletionAction.state("level"),)
        assert not grammar.groups[grammar.flags["-v"].group].implicit

    def test_implicit_group(self):
        """A non-repeatable flag without group excludes all its aliases."""
        grammar = compile_spec(["{--verbose,-v}"])
        flag = grammar.flags["-v"]
        assert flag.group == group_id(["--verbose", "-v"])
        group = grammar.groups[flag.group]
        assert group.implicit
        assert group.members == ("--verbose", "-v")

    def test_repeatable_has_no_implicit_group(self):
        """A repeatable flag without prefix excludes nothing."""
        grammar = compile_spec(["*-I:->option-INCLUDE"])
        assert grammar.flags["-I"].group is None
        assert grammar.groups == {}

    def test_explicit_group_includes_self(self):
        """Non-repeatable flags always exclude themselves."""
        grammar = compile_spec(["(--to-base16|--to-base32)--flat"])
        members = grammar.groups[grammar.flags["--flat"].group].members
        assert members == ("--to-base16", "--to-base32", "--flat")

    def test_shared_prefix_shares_group(self):
        """Flags declared with the same prefix share the group."""
        grammar = compile_spec(["(--install|--upgrade)--install", "(--install|--upgrade)--upgrade"])
        assert grammar.flags["--install"].group == grammar.flags["--upgrade"].group
        assert len(grammar.groups) == 1

    def test_named_group(self):
        """"+name" collects spellings usable as "(+name)" members."""
        grammar = compile_spec(["+", "boiler", "--help", "--version", "+other", "(+boiler)--quiet"])
        assert grammar.named_groups["boiler"] == ("--help", "--version")
        assert grammar.groups[grammar.flags["--quiet"].group].members == ("--help", "--version", "--quiet")

    def test_unknown_named_group(self):
        """Referring to an undeclared named group fails."""
        with pytest.raises(SpecCompileError, match="unknown named group"):
            compile_spec(["(+nothing)--quiet"])

    def test_trailing_plus(self):
        """A "+" token without its name fails at compile time."""
        with pytest.raises(SpecCompileError, match="missing named group"):
            compile_spec(["--help", "+"])

    def test_positionals(self):
        """Slots keep their order and repeatability."""
        grammar = compile_spec([":->a", ":*->b", ":_files", ":-", ":"])
        assert [slot.repeatable for slot in grammar.positionals] == [False, True, False, False, False]
        kinds = [slot.action.kind for slot in grammar.positionals]
        assert kinds == [ActionKind.NAMED_STATE, ActionKind.NAMED_STATE, ActionKind.FUNCTION, ActionKind.LITERAL, ActionKind.EMPTY]

    def test_repeating_positional_action(self):
        """Repeatable slots are written ":*action", not ":action" with a repeating action."""
        with pytest.raises(SpecCompileError):
            compile_spec([":**->b"])

    def test_redefinition(self):
        """A later definition of a spelling replaces the earlier one."""
        grammar = compile_spec(["*{--attr,-A}:->attr_path", "(--attr|-A){--attr,-A}:->other"])
        flag = grammar.flags["--attr"]
        assert not flag.repeatable
        assert flag.actions == (CompletionAction.state("other"),)
        assert grammar.flags["-A"] is flag

    def test_unused_groups_are_dropped(self):
        """Groups whose flags were all redefined disappear."""
        grammar = compile_spec(["(--a|--b)--a", "--a"])
        assert set(grammar.groups) == {group_id(["--a"])}

    @pytest.mark.parametrize(
        "token",
        ["(--a", "()--a", "{--a,-b", "*-:x", "word", "(--a):->x", "(--a)+name"],
    )
    def test_errors(self, token):
        """Malformed tokens are never silently dropped."""
        with pytest.raises(SpecCompileError) as excinfo:
            compile_spec([token])
        assert excinfo.value.token == token

    def test_error_message(self):
        """The message names the token and the reason."""
        error = SpecCompileError("bad", "expected a flag")
        assert str(error) == "invalid spec token 'bad': expected a flag"
        assert error.reason == "expected a flag"
