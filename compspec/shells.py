"""Shell hooks calling `compspec complete` for every supported command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import SUPPORTED_SHELLS

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = ["bash_hook", "hook", "zsh_hook"]


def bash_hook(commands: Iterable[str], executable: str = "compspec") -> str:
    """Generate the bash completion hook.

    Args:
        commands: Commands to register the completion function for
        executable: How to call compspec from the shell

    Returns:
        The bash script content
    """
    cmd_list = " ".join(sorted(commands))

    return f"""# Bash completion hook for compspec
# Generated by: compspec init bash

_compspec_complete() {{
    local _cur _cword
    local -a _words
    if declare -F _get_comp_words_by_ref > /dev/null; then
        _get_comp_words_by_ref -n =: -c _cur -i _cword -w _words
    else
        _words=("${{COMP_WORDS[@]}}")
        _cword=$COMP_CWORD
        _cur="${{COMP_WORDS[COMP_CWORD]}}"
    fi

    local IFS=$'\\n'
    COMPREPLY=($({executable} complete --cword "$_cword" -- "${{_words[@]}}" 2> /dev/null))

    # the shell only replaces the text after the last "=" or ":"
    local _prefix="${{_cur%"${{_cur##*[=:]}}"}}"
    if [[ "$_prefix" ]]; then
        COMPREPLY=("${{COMPREPLY[@]#"$_prefix"}}")
    fi

    if [[ ${{#COMPREPLY[@]}} -eq 1 && "${{COMPREPLY[0]}}" == *[/=:] && -n "${{BASH_VERSION-}}" ]]; then
        compopt -o nospace
    fi
}}

complete -F _compspec_complete {cmd_list}
"""


def zsh_hook(commands: Iterable[str], executable: str = "compspec") -> str:
    """Generate the zsh hook, the bash one running through bashcompinit."""
    return f"""# Zsh completion hook for compspec
# Generated by: compspec init zsh

autoload -U +X bashcompinit && bashcompinit

{bash_hook(commands, executable)}"""


def hook(shell: str, commands: Iterable[str], executable: str = "compspec") -> str:
    """Generate the hook for `shell`.

    Raises:
        ValueError: If the shell isn't supported
    """
    if shell == "bash":
        return bash_hook(commands, executable)
    if shell == "zsh":
        return zsh_hook(commands, executable)
    msg = f"unsupported shell {shell!r}, expected one of {', '.join(SUPPORTED_SHELLS)}"
    raise ValueError(msg)
