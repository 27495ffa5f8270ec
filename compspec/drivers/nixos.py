"""Drivers for the nixos-* tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..process import run_lines
from .nix_common import BOILERPLATE, COMMON_NIXOS_REBUILD, SEARCH_PATH_ARGS, NixDriver

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..completions import ParseResult

__all__ = [
    "DRIVERS",
    "NixosBuildVms",
    "NixosContainer",
    "NixosGenerateConfig",
    "NixosInstall",
    "NixosOption",
    "NixosRebuild",
    "NixosVersion",
]

# Options of the NixOS configuration, hiding the internal ones starting with "_"
NIXOS_OPTIONS_EXPR = """
with import <nixpkgs/lib>;
filterAttrsRecursive
  (k: _: substring 0 1 k != "_")
  (evalModules { modules = import <nixpkgs/nixos/modules/module-list.nix>; }).options
"""


class NixosRebuild(NixDriver):
    """nixos-rebuild."""

    commands = ("nixos-rebuild",)
    main_commands = (
        "switch",
        "boot",
        "test",
        "build",
        "dry-build",
        "dry-activate",
        "edit",
        "build-vm",
        "build-vm-with-bootloader",
    )

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            *BOILERPLATE,
            *COMMON_NIXOS_REBUILD,
            "*--option:->nixoption:->nixoptionvalue",
            "--upgrade",
            "--install-grub",
            "--no-build-nix",
            "--fast",
            "--rollback",
            "(--profile-name|-p){--profile-name,-p}:->profile-name",
            ":->main_command",
        ]


class NixosInstall(NixDriver):
    """nixos-install."""

    commands = ("nixos-install",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [*BOILERPLATE, SEARCH_PATH_ARGS, "--root:->directory", "--show-trace", "--chroot"]


class NixosGenerateConfig(NixDriver):
    """nixos-generate-config."""

    commands = ("nixos-generate-config",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            *BOILERPLATE,
            "--no-filesystems",
            "--show-hardware-config",
            "--force",
            "--root:->directory",
            "--dir:->directory",
        ]


class NixosVersion(NixDriver):
    """nixos-version."""

    commands = ("nixos-version",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [*BOILERPLATE, "(-*){--hash,--revision}"]


class NixosContainer(NixDriver):
    """nixos-container, its options depending on the sub-command."""

    commands = ("nixos-container",)
    main_commands = (
        "list",
        "create",
        "destroy",
        "start",
        "stop",
        "status",
        "update",
        "login",
        "root-login",
        "run",
        "show-ip",
        "show-host-key",
    )

    def tokens(self, words: Sequence[str]) -> list[str]:
        name = ":->container"
        config = "--config:->container_config"
        options: list[str] = []
        for word in words[1:]:
            if word == "create":
                options = [
                    name,
                    config,
                    "--config-file:->file",
                    "--system-path:->file",
                    "--ensure-unique-name",
                    "--auto-start",
                ]
                break
            if word == "update":
                options = [name, config]
                break
            if word in ("run", "destroy", "start", "stop", "status", "login", "root-login", "show-ip", "show-host-key"):
                options = [name]
                break
        return ["--help", ":->main_command", *options]

    def state_container(self, _partial: str, _parse: ParseResult) -> Iterable[str]:
        return run_lines(["nixos-container", "list"])


class NixosBuildVms(NixDriver):
    """nixos-build-vms."""

    commands = ("nixos-build-vms",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return ["--show-trace", "--no-out-link", ":->nix_file", "--help"]


class NixosOption(NixDriver):
    """nixos-option, completing option paths of the NixOS configuration."""

    commands = ("nixos-option",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [*BOILERPLATE, SEARCH_PATH_ARGS, "--xml", ":->nixos_options"]

    def state_nixos_options(self, partial: str, parse: ParseResult) -> Iterable[str]:
        return self.attr_paths(NIXOS_OPTIONS_EXPR, partial, parse)


DRIVERS = (
    NixosRebuild,
    NixosInstall,
    NixosGenerateConfig,
    NixosVersion,
    NixosContainer,
    NixosBuildVms,
    NixosOption,
)
