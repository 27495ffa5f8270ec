"""Nix search path helpers.

Nix downloads any URL it finds in NIX_PATH, which would block the shell
while completing. URLs are therefore looked up in the local tarball cache
and dropped when they aren't there.
"""

from __future__ import annotations

import hashlib
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING

from ..constants import CACHE_HOME

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = [
    "CHANNEL_PREFIX",
    "DEFAULT_CACHE_DIR",
    "NIX_BASE32_ALPHABET",
    "build_nix_path",
    "channel_url",
    "nix_base32",
    "resolve_url",
    "split_nix_path",
    "tarball_cache_key",
]

NIX_BASE32_ALPHABET = "0123456789abcdfghijklmnpqrsvwxyz"

CHANNEL_PREFIX = "channel:"

DEFAULT_CACHE_DIR = CACHE_HOME / "nix" / "tarballs"

# ":" separates entries, but not the one in "https://"
_ENTRY_SEPARATOR = re.compile(r":(?!//)")


def nix_base32(digest: bytes) -> str:
    """Encode bytes the way nix prints hashes in base32."""
    length = (len(digest) * 8 - 1) // 5 + 1
    chars = []
    for n in range(length - 1, -1, -1):
        bit = n * 5
        i, j = divmod(bit, 8)
        value = digest[i] >> j
        if i + 1 < len(digest):
            value |= digest[i + 1] << (8 - j)
        chars.append(NIX_BASE32_ALPHABET[value & 0x1F])
    return "".join(chars)


def tarball_cache_key(url: str) -> str:
    """Return the name nix uses for the cache entry of `url`."""
    name = url.rsplit("/", 1)[-1]
    return nix_base32(hashlib.sha256(f"{name}\0{url}".encode()).digest())


def resolve_url(url: str, cache_dir: Path | None = None) -> str | None:
    """Return the unpacked cache directory of `url`, or None if not cached."""
    cache = cache_dir or DEFAULT_CACHE_DIR
    link = cache / f"{tarball_cache_key(url)}-file"
    if not link.exists():
        return None
    try:
        target = os.readlink(link)
    except OSError:
        return None
    return str(cache / f"{os.path.basename(target)}-unpacked")


def channel_url(entry: str) -> str:
    """Expand "channel:name" to the channel tarball URL."""
    if entry.startswith(CHANNEL_PREFIX):
        return f"https://nixos.org/channels/{entry[len(CHANNEL_PREFIX) :]}/nixexprs.tar.xz"
    return entry


def split_nix_path(value: str) -> list[str]:
    """Split a NIX_PATH value into its entries, keeping "channel:name" whole."""
    entries: list[str] = []
    glue = False
    for piece in _ENTRY_SEPARATOR.split(value):
        if glue:
            entries[-1] += ":" + piece
        else:
            entries.append(piece)
        glue = piece == "channel" or piece.endswith("=channel")
    return [entry for entry in entries if entry]


def _localize(entry: str, cache_dir: Path | None) -> str | None:
    name, sep, location = entry.partition("=")
    if not sep:
        name, location = "", entry
    location = channel_url(location)
    if location.startswith(("https://", "http://")):
        cached = resolve_url(location, cache_dir)
        if cached is None:
            return None
        location = cached
    return f"{name}{sep}{location}"


def build_nix_path(includes: Iterable[str], nix_path: str = "", cache_dir: Path | None = None) -> str:
    """Build a NIX_PATH from -I/--include values followed by the current NIX_PATH.

    "channel:" entries are expanded, URLs replaced by their cache directory and
    dropped when not cached.
    """
    entries = [entry for include in includes for entry in split_nix_path(include)]
    entries.extend(split_nix_path(nix_path))
    localized = (_localize(entry, cache_dir) for entry in entries)
    return ":".join(entry for entry in localized if entry)
