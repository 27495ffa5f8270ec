"""Drivers for the nix-* tools with a fixed grammar."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..completions import Redirect
from ..process import run_lines
from .nix_common import BOILERPLATE, COMMON_OPTS, DRY_RUN, NEW_OPTS, NixDriver

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..completions import ParseResult

__all__ = [
    "DRIVERS",
    "NixBuild",
    "NixChannel",
    "NixCollectGarbage",
    "NixCopyClosure",
    "NixHash",
    "NixInstallPackage",
    "NixInstantiate",
    "NixPrefetchUrl",
    "NixPush",
    "NixShell",
]


class NixBuild(NixDriver):
    """nix-build."""

    commands = ("nix-build",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            ":*->file-or-expr",
            *COMMON_OPTS,
            *BOILERPLATE,
            "--drv-link:->empty",
            "--add-drv-link",
            "(--expr|-E){--expr,-E}",
            "--no-out-link",
            "{--out-link,-o}:->empty",
        ]


class NixShell(NixDriver):
    """nix-shell, completing packages with -p and files otherwise."""

    commands = ("nix-shell",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            ":*->package_attr_path",
            *COMMON_OPTS,
            "+",
            "boiler",
            *BOILERPLATE,
            "--command:->option-COMMAND",
            "--exclude:->regex",
            "--pure",
            # only one -A
            "(--attr|-A){--attr,-A}:->attr_path",
            "(--packages|-p|--expr|-E){--expr,-E}",
            "(--packages|-p|--expr|-E){--packages,-p}",
        ]

    def state_package_attr_path(self, partial: str, parse: ParseResult) -> Iterable[str] | Redirect:
        if parse.seen("--packages", "-p"):
            return self.attr_paths("import <nixpkgs>", partial, parse)
        return Redirect("file-or-expr")


class NixInstantiate(NixDriver):
    """nix-instantiate."""

    commands = ("nix-instantiate",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            *BOILERPLATE,
            "(--expr|-E){--expr,-E}",
            *COMMON_OPTS,
            "--xml",
            "--json",
            "--add-root:->gc-root",
            "--indirect",
            "--parse",
            "--eval",
            "(-*)--find-file:*->nix-path-file",
            "--strict",
            "--read-write-mode",
            ":*->file-or-expr",
        ]


class NixChannel(NixDriver):
    """nix-channel."""

    commands = ("nix-channel",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            *BOILERPLATE,
            *NEW_OPTS,
            "(-*)--add:->url:->channel_name",
            "(-*)--remove:->nix_channels",
            "(-*)--list",
            "(-*)--update:->nix_channels",
            "(-*)--rollback",
        ]

    def state_nix_channels(self, _partial: str, _parse: ParseResult) -> Iterable[str]:
        """Names of the subscribed channels."""
        return [line.split()[0] for line in run_lines(["nix-channel", "--list"])]


class NixCopyClosure(NixDriver):
    """nix-copy-closure."""

    commands = ("nix-copy-closure",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            *BOILERPLATE,
            *NEW_OPTS,
            "(--from)--to",
            "(--to)--from",
            "--sign",
            "--gzip",
            "--include-outputs",
            "(--use-substitutes -s){--use-substitutes,-s}",
            ":_user_at_host",
            ":*->file",
        ]


class NixCollectGarbage(NixDriver):
    """nix-collect-garbage."""

    commands = ("nix-collect-garbage",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            *BOILERPLATE,
            *NEW_OPTS,
            "(--delete-old|-d){--delete-old,-d}",
            "--delete-older-than:->empty",
            DRY_RUN,
        ]


class NixHash(NixDriver):
    """nix-hash."""

    commands = ("nix-hash",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        conversions = "--to-base16|--to-base32"
        return [
            *BOILERPLATE,
            *NEW_OPTS,
            "(-*)--to-base16:->hash",
            "(-*)--to-base32:->hash",
            f"({conversions})--flat",
            f"({conversions})--base32",
            f"({conversions})--truncate",
            f"({conversions})--type:->option-TYPE",
            ":*->file",
        ]


class NixInstallPackage(NixDriver):
    """nix-install-package."""

    commands = ("nix-install-package",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            *BOILERPLATE,
            "--non-interactive",
            "(--profile|-p){--profile,-p}:->nix_profile",
            "--set",
            "--url:->url",
            ":->file",
        ]

    state_nix_profile = NixDriver.state_profile


class NixPrefetchUrl(NixDriver):
    """nix-prefetch-url."""

    commands = ("nix-prefetch-url",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            "--type:->option-TYPE",
            ":->option-FILE",
            ":->empty",
            "*{--attr,-A}:->attr_path",
            "--unpack",
            "--name:->store-name",
            "--print-path",
        ]


class NixPush(NixDriver):
    """nix-push."""

    commands = ("nix-push",)

    def tokens(self, words: Sequence[str]) -> list[str]:
        return [
            *BOILERPLATE,
            "--dest:->directory",
            "(--none)--bzip2",
            "(--bzip2)--none",
            "--force",
            "--link",
            "(--manifest-path)--manifest",
            "(--manifest)--manifest-path:->file",
            "--url-prefix:->url",
            ":*->file",
        ]


DRIVERS = (
    NixBuild,
    NixShell,
    NixInstantiate,
    NixChannel,
    NixCopyClosure,
    NixCollectGarbage,
    NixHash,
    NixInstallPackage,
    NixPrefetchUrl,
    NixPush,
)
