"""Run plan nodes produced by the resolver and consumed by the executor."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, List, Mapping, Sequence


def script_key(path: str, script: str) -> str:
    """Key identifying one script of one project, shared by resolution and execution."""
    return f"{path}@{script}"


@dataclass(frozen=True, init=False)
class RunConfiguration:
    """One project's contribution to a script invocation plus its resolved dependencies."""

    name: str
    group: str | None
    command_list: Mapping[str, str]
    dependencies: tuple["RunConfiguration", ...]

    def __init__(
        self,
        name: str,
        group: str | None,
        command_list: Mapping[str, str],
        dependencies: Sequence["RunConfiguration"] = (),
    ) -> None:
        commands = {}
        for script, command in command_list.items():
            if not isinstance(script, str) or not script:
                raise ValueError("Run configuration command names must be non-empty strings")
            if not command:
                raise ValueError(
                    f"Run configuration command '{script}' of project '{name}' is empty, the configuration is incorrect"
                )
            commands[script] = command
        for dependency in dependencies:
            if not isinstance(dependency, RunConfiguration):
                raise TypeError("Run configuration dependencies must be RunConfiguration instances")

        object.__setattr__(self, "name", name)
        object.__setattr__(self, "group", group)
        object.__setattr__(self, "command_list", MappingProxyType(commands))
        object.__setattr__(self, "dependencies", tuple(dependencies))

    def has_dependencies(self) -> bool:
        return bool(self.dependencies)

    def walk(self) -> Iterator["RunConfiguration"]:
        """Yield dependencies before the node itself, depth first."""
        for dependency in self.dependencies:
            yield from dependency.walk()
        yield self

    def describe(self, indent: int = 0) -> List[str]:
        group = f" [{self.group}]" if self.group else ""
        scripts = ", ".join(self.command_list) or "-"
        lines = [f"{'  ' * indent}{self.name}{group}: {scripts}"]
        for dependency in self.dependencies:
            lines.extend(dependency.describe(indent + 1))
        return lines


__all__ = ["RunConfiguration", "script_key"]
