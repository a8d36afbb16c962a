"""Execution of run plans, dependencies first, each script at most once per batch."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Set
import shlex

from core.command_runner import CommandRunner
from core.console import DiagnosticsSink

from .catalogue import ProjectCatalogue
from .command_line import build_command_line
from .errors import DevrunError, ProjectScriptInvalidError
from .project_config import ProjectScriptConfig
from .run_configuration import RunConfiguration, script_key


@dataclass
class ExecutionStack:
    """``path@script`` keys already executed in the current batch."""

    keys: List[str] = field(default_factory=list)
    _claimed: Set[str] = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._claimed.update(self.keys)

    def __contains__(self, key: object) -> bool:
        return key in self._claimed

    def push(self, key: str) -> None:
        if key not in self._claimed:
            self._claimed.add(key)
            self.keys.append(key)


class RunPlanExecutor:
    def __init__(self, catalogue: ProjectCatalogue, runner: CommandRunner, console: DiagnosticsSink) -> None:
        self.catalogue = catalogue
        self.runner = runner
        self.console = console
        self.stack = ExecutionStack()

    def reset(self) -> None:
        """Start a new batch; scripts executed before may run again."""
        self.stack = ExecutionStack()

    def locate(self, node: RunConfiguration) -> ProjectScriptConfig:
        """Find the live script configuration of the project ``node`` was resolved from."""
        try:
            project = self.catalogue.find_project(node.name, node.group)
            return self.catalogue.get_script_config(project)
        except DevrunError as exc:
            script = ", ".join(node.command_list) or "-"
            raise ProjectScriptInvalidError(node.group, node.name, script, f"{type(exc).__name__}: {exc}") from exc

    def run(self, node: RunConfiguration, extra_args: str | Sequence[str] | None = None) -> bool:
        """Run ``node`` after its dependencies and return whether everything succeeded.

        A node whose project can no longer be located is reported and skipped;
        its siblings and parents still run.
        """

        ok = True
        for dependency in node.dependencies:
            ok = self.run(dependency, extra_args) and ok

        try:
            config = self.locate(node)
        except ProjectScriptInvalidError as exc:
            self.console.error(str(exc))
            return False

        for script, template in node.command_list.items():
            key = script_key(config.get_path(), script)
            if key in self.stack:
                self.console.debug(f"Script already ran in this batch: {key}")
                continue
            self.stack.push(key)
            self.console.debug(f"Stack(push = {key}): {len(self.stack.keys)} entries")

            command_line = build_command_line(template, extra_args)
            group_text = f", group: {node.group}" if node.group else ""
            self.console.info(f"Run Script: script: {script}, project: {node.name}{group_text}")
            returncode = self.runner.passthrough(
                f"cd {shlex.quote(config.get_path())} && {command_line}",
                note=f"{node.name}@{script}",
            )
            if returncode != 0:
                self.console.error(f"Script '{script}' of project '{node.name}' exited with code {returncode}")
                ok = False
        return ok

    def run_all(self, forest: Sequence[RunConfiguration], extra_args: str | Sequence[str] | None = None) -> bool:
        """Run every root of ``forest`` as one batch."""
        self.reset()
        ok = True
        for node in forest:
            ok = self.run(node, extra_args) and ok
        return ok


__all__ = ["ExecutionStack", "RunPlanExecutor"]
