"""Substitution of invocation arguments into script command templates."""
from __future__ import annotations

from typing import List, Sequence
import re
import shlex


_CATCH_ALL_MARKER = "$@"


def _positional_pattern(index: int) -> re.Pattern[str]:
    # $1 must not match the start of $10
    return re.compile(rf"\${index}(?!\d)")


def split_extra_args(extra_args: str | Sequence[str] | None) -> List[str]:
    """Tokenise invocation arguments.

    A raw string is split on whitespace. A sequence is taken as already
    tokenised, and each token is shell-quoted so it survives the shell intact.
    """

    if extra_args is None:
        return []
    if isinstance(extra_args, str):
        return extra_args.split()
    return [shlex.quote(token) for token in extra_args]


def build_command_line(template: str, extra_args: str | Sequence[str] | None = None) -> str:
    """Return ``template`` with ``$1``..``$N`` and ``$@`` replaced by ``extra_args``.

    Positional markers take tokens from the front of the list, missing ones
    become empty strings. ``$@`` takes whatever is left. Tokens nobody
    consumed are appended to the end of the command line.
    """

    tokens = split_extra_args(extra_args)
    command = template

    index = 1
    while True:
        pattern = _positional_pattern(index)
        if not pattern.search(command):
            break
        value = tokens.pop(0) if tokens else ""
        command = pattern.sub(lambda _match: value, command)
        index += 1

    if _CATCH_ALL_MARKER in command:
        command = command.replace(_CATCH_ALL_MARKER, " ".join(tokens))
        tokens = []

    if tokens:
        command = f"{command} {' '.join(tokens)}"
    return command


__all__ = ["build_command_line", "split_extra_args"]
