import os

import pytest

from compspec.completions import Redirect
from compspec.config_loader import ConfigLoader
from compspec.drivers import driver_classes, get_driver, supported_commands
from compspec.drivers.nix_common import find_operation, words_after
from compspec.drivers.nix_env import OPERATIONS, defexpr_roots
from compspec.drivers.nix_store import NixStore


@pytest.fixture
def nix_eval(mocker):
    """Answers of `nix-instantiate --eval`."""
    return mocker.patch("compspec.drivers.nix_common.run_lines", return_value=['[ "hello" "hello-wayland" "git" ]'])


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("NIX_PATH", "")
    return tmp_path


class TestRegistry:
    """Looking drivers up."""

    def test_supported(self):
        """Every nix tool is supported."""
        commands = supported_commands()
        assert commands == sorted(commands)
        for name in ("nix-build", "nix-env", "nix-shell", "nix-store", "nixos-rebuild", "nixos-option"):
            assert name in commands

    def test_classes(self):
        """Each driver declares the commands it is registered for."""
        for command, driver_class in driver_classes().items():
            assert command in driver_class.commands

    @pytest.mark.parametrize(
        "words",
        [[], ["-i"], ["-q"], ["-u"], ["--set-flag"], ["-qR"], ["--gc"], ["--realise"], ["create"], ["update"], ["-p"]],
    )
    def test_grammars_compile(self, words):
        """Every bundled grammar compiles, whatever was typed."""
        for command, driver_class in driver_classes().items():
            grammar = driver_class(command).build_grammar([command, *words])
            assert grammar.flags or grammar.positionals, command

    def test_grouped_aliases(self, workdir):
        """Aliases declared with an exclusion group complete and exclude each other."""
        driver = get_driver("nix-build")
        assert driver.resolve(["nix-build", "--verb"], 1) == {"--verbose"}
        assert "--verbose" not in driver.resolve(["nix-build", "-v", "--"], 2)

    def test_get_driver(self):
        """Paths to a command are accepted."""
        driver = get_driver("/run/current-system/sw/bin/nix-env")
        assert driver is not None
        assert driver.name == "nix-env"
        assert get_driver("ls") is None

    def test_config(self, tmp_path, test_logger):
        """Drivers read the [nix] section."""
        path = tmp_path / "config.toml"
        path.write_text('[nix]\nchannels = ["my-channel"]\n')
        loader = ConfigLoader(test_logger)
        loader.load(str(path))
        driver = get_driver("nix-build", loader)
        assert driver.resolve(["nix-build", "channel:"], 1) == {"channel:my-channel"}


class TestFlags:
    """Flag suggestions."""

    def test_nix_build(self, workdir):
        """Prefix matching of the long options."""
        assert get_driver("nix-build").resolve(["nix-build", "--ver"], 1) == {"--verbose", "--version"}

    def test_nix_env_install(self, workdir):
        """Options depend on the operation."""
        driver = get_driver("nix-env")
        assert driver.resolve(["nix-env", "-i", "--pre"], 2) == {"--prebuilt-only", "--preserve-installed"}
        assert driver.resolve(["nix-env", "-q", "--a"], 2) == {"--arg", "--argstr", "--attr", "--attr-path", "--available"}

    def test_nix_env_main_operations(self, workdir):
        """A single main operation is allowed."""
        driver = get_driver("nix-env")
        assert "--query" in driver.resolve(["nix-env", "--"], 1)
        assert "--query" not in driver.resolve(["nix-env", "-i", "--"], 2)

    def test_nix_store_query(self, workdir):
        """--include-outputs only goes with --requisites."""
        driver = get_driver("nix-store")
        assert driver.resolve(["nix-store", "-q", "--inc"], 2) == {"--include"}
        assert driver.resolve(["nix-store", "-qR", "--inc"], 2) == {"--include", "--include-outputs"}

    def test_nix_store_tokens(self):
        """Operations without arguments take no paths."""
        store = NixStore("nix-store")
        assert ":*->file" not in store.tokens(["nix-store", "--dump-db"])
        assert ":*->file" in store.tokens(["nix-store", "--delete"])
        assert "--ignore-liveness" in store.tokens(["nix-store", "--delete"])


class TestStates:
    """Named states resolved by the nix drivers."""

    def test_main_command(self, workdir):
        """nixos-rebuild sub-commands."""
        assert get_driver("nixos-rebuild").resolve(["nixos-rebuild", "sw"], 1) == {"switch"}

    def test_channels(self, workdir):
        """Nix files, or channels after "channel:"."""
        result = get_driver("nix-build").resolve(["nix-build", "channel:nixos-un"], 1)
        assert result == {"channel:nixos-unstable", "channel:nixos-unstable-small"}

    def test_nix_files(self, workdir):
        """Files are filtered by extension."""
        (workdir / "default.nix").write_text("{}")
        (workdir / "notes.txt").write_text("")
        (workdir / "pkgs").mkdir()
        assert get_driver("nix-build").resolve(["nix-build", ""], 1) == {"default.nix", "pkgs/"}

    def test_file_or_expr(self, workdir):
        """With --expr the argument is an expression."""
        driver = get_driver("nix-build")
        parse = driver.parse(["nix-build", "-E", ""], 2)
        assert driver.states.call("file-or-expr", "", parse) == Redirect("expr")
        parse = driver.parse(["nix-build", ""], 1)
        assert driver.states.call("file-or-expr", "", parse) == Redirect("option-FILE")

    def test_flag_value(self, workdir):
        """--set-flag takes a name, then a value."""
        driver = get_driver("nix-env")
        assert driver.resolve(["nix-env", "--set-flag", ""], 2) == {"priority", "keep", "active"}
        assert driver.resolve(["nix-env", "--set-flag", "keep", ""], 3) == {"true", "false"}

    def test_installed_packages(self, workdir, mocker):
        """Versions are stripped from `nix-env -q`."""
        mocker.patch("compspec.drivers.nix_env.run_lines", return_value=["hello-2.12.1", "git-2.44.0"])
        assert get_driver("nix-env").resolve(["nix-env", "-e", ""], 2) == {"hello", "git"}

    def test_attr_path_from_defexpr(self, workdir, nix_eval, monkeypatch):
        """nix-env -iA looks attribute paths up in ~/.nix-defexpr."""
        defexpr = workdir / "defexpr"
        (defexpr / "nixpkgs").mkdir(parents=True)
        (defexpr / "nixpkgs" / "default.nix").write_text("{}")
        monkeypatch.setattr("compspec.drivers.nix_env.DEFEXPR", defexpr)

        result = get_driver("nix-env").resolve(["nix-env", "-iA", "nixpkgs.hel"], 2)

        assert result == {"nixpkgs.hello", "nixpkgs.hello-wayland"}
        expression = nix_eval.call_args.kwargs["input"]
        assert f"nixpkgs = import {defexpr / 'nixpkgs'};" in expression
        assert 'names = [ "nixpkgs" ]' in expression

    def test_no_expression(self, workdir, nix_eval, monkeypatch):
        """Nothing to evaluate, nothing to run."""
        monkeypatch.setattr("compspec.drivers.nix_env.DEFEXPR", workdir / "missing")
        assert get_driver("nix-env").resolve(["nix-env", "-iA", "nixpkgs.hel"], 2) == frozenset()
        nix_eval.assert_not_called()

    def test_shell_packages(self, workdir, nix_eval):
        """nix-shell -p completes nixpkgs attributes."""
        assert get_driver("nix-shell").resolve(["nix-shell", "-p", "hel"], 2) == {"hello", "hello-wayland"}
        assert "import <nixpkgs>" in nix_eval.call_args.kwargs["input"]

    def test_function_args(self, workdir, mocker):
        """Arguments already given are not suggested again."""
        (workdir / "default.nix").write_text("{ lib, pkgs }: {}")
        nix_eval = mocker.patch("compspec.drivers.nix_common.run_lines", return_value=['[ "lib" "pkgs" ]'])
        driver = get_driver("nix-build")
        assert driver.resolve(["nix-build", "--arg", ""], 2) == {"lib", "pkgs"}
        assert driver.resolve(["nix-build", "--arg", "lib", "{}", "--arg", ""], 5) == {"pkgs"}
        assert os.path.realpath(workdir / "default.nix") in nix_eval.call_args.kwargs["input"]

    def test_function_arguments_set(self, workdir):
        """--arg values are expressions, --argstr values strings."""
        driver = get_driver("nix-build")
        parse = driver.parse(["nix-build", "--arg", "x", "1", "--argstr", "y", "z", ""], 7)
        assert driver.function_arguments(parse) == '{x = 1;y = "z";}'

    def test_include(self, workdir, monkeypatch):
        """-I offers the names of NIX_PATH."""
        monkeypatch.setenv("NIX_PATH", "nixpkgs=/nix/var/nix/profiles/per-user/root/channels/nixos:/etc/nixos")
        assert get_driver("nix-build").resolve(["nix-build", "-I", "nix"], 2) == {"nixpkgs="}

    def test_nix_path_uses_includes(self, workdir, nix_eval):
        """-I entries come first in the NIX_PATH of evaluations."""
        get_driver("nix-shell").resolve(["nix-shell", "-I", "nixpkgs=/src/nixpkgs", "-p", "hel"], 4)
        assert nix_eval.call_args.kwargs["env"]["NIX_PATH"] == "nixpkgs=/src/nixpkgs"

    def test_container(self, workdir, mocker):
        """nixos-container sub-commands, then container names."""
        mocker.patch("compspec.drivers.nixos.run_lines", return_value=["web", "db"])
        driver = get_driver("nixos-container")
        assert driver.resolve(["nixos-container", "st"], 1) == {"start", "status", "stop"}
        assert driver.resolve(["nixos-container", "start", ""], 2) == {"web", "db"}
        assert driver.resolve(["nixos-container", "list", ""], 2) == frozenset()

    def test_unknown_state_falls_back_to_files(self, workdir):
        """States without a resolver complete files."""
        (workdir / "hashes").write_text("")
        assert get_driver("nix-hash").resolve(["nix-hash", "--to-base32", "h"], 2) == {"hashes"}


def test_find_operation():
    assert find_operation(["nix-env", "-f", "x", "-iA"], OPERATIONS) == "install"
    assert find_operation(["nix-env", "--query"], OPERATIONS) == "query"
    assert find_operation(["nix-env", "-f", "x"], OPERATIONS) is None


def test_words_after(workdir):
    parse = get_driver("nix-build").parse(["nix-build", "-I", "a=/a", "--include", "b=/b", ""], 5)
    assert words_after(parse, "-I", "--include") == ["a=/a", "b=/b"]


def test_defexpr_roots(tmp_path):
    (tmp_path / "channels" / "nixos").mkdir(parents=True)
    (tmp_path / "channels" / "nixos" / "default.nix").write_text("{}")
    (tmp_path / "local").mkdir()
    (tmp_path / "local" / "default.nix").write_text("{}")
    assert defexpr_roots(tmp_path) == [tmp_path / "local", tmp_path / "channels" / "nixos"]
