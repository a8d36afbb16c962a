"""Flattening of script alias chains into directly executable commands."""
from __future__ import annotations

from typing import Dict, Protocol, Set

from .project_config import AliasScript, LiteralScript, ScriptValue


class ScriptSource(Protocol):
    def get_script(self, name: str) -> ScriptValue | None:
        ...


def expand_script(
    name: str,
    config: ScriptSource,
    visited: Set[str] | None = None,
    commands: Dict[str, str] | None = None,
) -> Dict[str, str]:
    """Return ``{script name: command}`` for every literal script ``name`` leads to.

    Alias names never appear in the result. ``visited`` holds every name already
    expanded in this call tree, which makes alias cycles terminate. Missing,
    malformed and empty scripts contribute nothing.
    """

    visited = set() if visited is None else visited
    commands = {} if commands is None else commands

    if name in visited:
        return commands
    visited.add(name)

    value = config.get_script(name)
    if isinstance(value, LiteralScript):
        if value.command.strip():
            commands[name] = value.command
    elif isinstance(value, AliasScript):
        for child in value.names:
            expand_script(child, config, visited, commands)
    return commands


__all__ = ["ScriptSource", "expand_script"]
