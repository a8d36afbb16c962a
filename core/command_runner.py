"""Utilities for executing shell commands with optional dry-run support."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping
import os
import subprocess


DEFAULT_SHELL = "/bin/sh"


class CommandRunner:
    """Abstract command runner interface."""

    def passthrough(
        self,
        command_line: str,
        *,
        env: Mapping[str, str] | None = None,
        note: str | None = None,
    ) -> int:
        """Run ``command_line`` through the shell attached to the terminal and return its exit code."""
        raise NotImplementedError


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    def __init__(self, shell: str = DEFAULT_SHELL) -> None:
        self.shell = shell

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None) -> Dict[str, str] | None:
        if env is None:
            return None
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def passthrough(
        self,
        command_line: str,
        *,
        env: Mapping[str, str] | None = None,
        note: str | None = None,
    ) -> int:
        # stdio is inherited so the child talks to the invoking terminal directly
        process = subprocess.run(
            [self.shell, "-c", command_line],
            env=self._merge_environment(env),
            check=False,
        )
        return process.returncode


@dataclass(slots=True)
class RecordedCommand:
    command_line: str
    env: Dict[str, str]
    note: str | None


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them."""

    def __init__(self, returncode: int = 0) -> None:
        self.commands: List[RecordedCommand] = []
        self.returncode = returncode

    def passthrough(
        self,
        command_line: str,
        *,
        env: Mapping[str, str] | None = None,
        note: str | None = None,
    ) -> int:
        self.commands.append(
            RecordedCommand(
                command_line=command_line,
                env=dict(env) if env else {},
                note=note,
            )
        )
        return self.returncode

    def iter_commands(self) -> Iterable[RecordedCommand]:
        return iter(self.commands)

    def command_lines(self) -> List[str]:
        return [record.command_line for record in self.commands]

    def iter_formatted(self) -> Iterable[str]:
        """Yield ``[dry-run] <note> <command>`` lines, env overrides shown as ``KEY=value`` prefixes."""
        for record in self.commands:
            parts: List[str] = ["[dry-run]"]
            if record.note:
                parts.append(record.note)
            parts.extend(f"{key}={value}" for key, value in sorted(record.env.items()))
            parts.append(record.command_line)
            yield " ".join(parts)


__all__ = [
    "CommandRunner",
    "DEFAULT_SHELL",
    "RecordedCommand",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
]
