"""Built-in resolvers, used by "_function" actions.

They only look at local state (filesystem, environment, user database) and
return an empty list when nothing can be read.
"""

from __future__ import annotations

import os
import pwd
from pathlib import Path
from typing import TYPE_CHECKING

from .matching import match_path
from .registry import ResolverRegistry, matching

if TYPE_CHECKING:
    from .models import ParseResult

__all__ = ["BUILTINS", "known_hosts", "list_commands", "list_paths"]

KNOWN_HOSTS_FILES = ("~/.ssh/known_hosts", "/etc/ssh/ssh_known_hosts")


def list_paths(partial: str, directories_only: bool = False, extensions: tuple[str, ...] = ()) -> list[str]:
    """List filesystem entries completing `partial`.

    Directories get a trailing "/". Hidden entries are only listed when the
    partial name starts with a dot.

    Args:
        partial: The partial path, e.g. "~/src/pro"
        directories_only: Skip files
        extensions: Only keep files with one of these suffixes (directories are always kept)

    Returns:
        Matching paths, written the way the user started them
    """
    directory, sep, stem = partial.rpartition("/")
    prefix = directory + sep
    search = Path(os.path.expanduser(prefix or "."))
    results: list[str] = []
    try:
        entries = list(search.iterdir())
    except OSError:
        return results
    for entry in entries:
        name = entry.name
        if not name.startswith(stem) or (name.startswith(".") and not stem.startswith(".")):
            continue
        try:
            is_dir = entry.is_dir()
        except OSError:
            continue
        if is_dir:
            results.append(f"{prefix}{name}/")
        elif not directories_only and (not extensions or name.endswith(extensions)):
            results.append(prefix + name)
    return results


def list_commands(partial: str) -> list[str]:
    """List executables from $PATH starting with `partial`."""
    commands: set[str] = set()
    for folder in os.environ.get("PATH", "").split(os.pathsep):
        try:
            entries = list(Path(folder).iterdir())
        except OSError:
            continue
        for entry in entries:
            if entry.name.startswith(partial) and os.access(entry, os.X_OK) and not entry.is_dir():
                commands.add(entry.name)
    return sorted(commands)


def known_hosts(files: tuple[str, ...] = KNOWN_HOSTS_FILES) -> list[str]:
    """Read host names from ssh known_hosts files, skipping hashed entries."""
    hosts: set[str] = set()
    for filename in files:
        path = Path(filename).expanduser()
        try:
            lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError:
            continue
        for line in lines:
            if not line.strip() or line.startswith(("#", "|", "@")):
                continue
            for host in line.split()[0].split(","):
                if host.startswith("["):
                    host = host[1:].split("]", 1)[0]
                hosts.add(host)
    return sorted(hosts)


@matching(match_path)
def _files(partial: str, _parse: ParseResult) -> list[str]:
    return list_paths(partial)


def _commands(partial: str, _parse: ParseResult) -> list[str]:
    return list_commands(partial)


def _known_hosts(_partial: str, _parse: ParseResult) -> list[str]:
    return known_hosts()


def _user_at_host(partial: str, _parse: ParseResult) -> list[str]:
    """Complete "user@host": user names first, then hosts."""
    if "@" in partial:
        user = partial.split("@", 1)[0]
        return [f"{user}@{host}" for host in known_hosts()]
    return [f"{entry.pw_name}@" for entry in pwd.getpwall()]


def _variables(_partial: str, _parse: ParseResult) -> list[str]:
    return list(os.environ)


BUILTINS = ResolverRegistry(
    {
        "_files": _files,
        "_commands": _commands,
        "_known_hosts": _known_hosts,
        "_user_at_host": _user_at_host,
        "_variables": _variables,
    }
)
