"""Resolution of a script request into a forest of run configurations."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Set, Tuple

from core.console import DiagnosticsSink

from .aliases import expand_script
from .catalogue import Project, ProjectCatalogue
from .run_configuration import RunConfiguration, script_key


@dataclass
class ResolutionStack:
    """``path@script`` keys already claimed by one resolution request."""

    keys: List[str] = field(default_factory=list)
    _claimed: Set[str] = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._claimed.update(self.keys)

    def __contains__(self, key: object) -> bool:
        return key in self._claimed

    def __len__(self) -> int:
        return len(self.keys)

    def push(self, key: str) -> None:
        if key not in self._claimed:
            self._claimed.add(key)
            self.keys.append(key)


class DependencyResolver:
    """Walk the project and dependency graph for a script and build the run plan."""

    def __init__(self, catalogue: ProjectCatalogue, console: DiagnosticsSink, *, follow_dependencies: bool = True) -> None:
        self.catalogue = catalogue
        self.console = console
        self.follow_dependencies = follow_dependencies

    def resolve(
        self,
        script: str,
        projects: Iterable[Project],
        stack: ResolutionStack | None = None,
    ) -> Tuple[List[RunConfiguration], ResolutionStack]:
        """Resolve ``script`` for each of ``projects`` in order.

        Every ``(project, script)`` pair becomes at most one node across the whole
        request: a key already in ``stack`` is skipped. Errors locating a
        dependency project propagate so no partial plan is ever returned.
        """

        stack = ResolutionStack() if stack is None else stack
        forest: List[RunConfiguration] = []

        for project in projects:
            key = script_key(project.path, script)
            if key in stack:
                self.console.debug(f"Already resolved: {key}")
                continue
            stack.push(key)
            self.console.debug(f"Resolving: {key}")

            config = self.catalogue.get_script_config(project)
            commands = expand_script(script, config)

            dependencies: List[RunConfiguration] = []
            if self.follow_dependencies:
                for declaration in config.get_dependencies():
                    targets = self._dependency_scripts(declaration.targets, script, commands)
                    if not targets:
                        continue
                    dependency_group = declaration.group or project.primary_group
                    dependency_projects = self.catalogue.find_dependency_projects(declaration.project, dependency_group)
                    self.console.debug(
                        f"Dependencies({declaration.project}@{dependency_group or '-'}): [{', '.join(targets)}]"
                    )
                    for target in targets:
                        subtree, stack = self.resolve(target, dependency_projects, stack)
                        dependencies.extend(subtree)

            forest.append(
                RunConfiguration(
                    name=project.name,
                    group=project.primary_group,
                    command_list=commands,
                    dependencies=dependencies,
                )
            )

        return forest, stack

    @staticmethod
    def _dependency_scripts(
        targets: Callable[[str], Tuple[str, ...]], script: str, commands: Iterable[str]
    ) -> List[str]:
        # the requested name first, so an alias can be mapped as a whole
        names: List[str] = []
        for name in [script, *commands]:
            for target in targets(name):
                if target not in names:
                    names.append(target)
        return names


__all__ = ["DependencyResolver", "ResolutionStack"]
