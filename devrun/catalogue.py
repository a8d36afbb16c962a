"""Catalogue of registered projects and their group memberships."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping
import json

import yaml

from core.config_loader import load_config_file, normalize_string_list

from .errors import (
    ConfigError,
    DevrunError,
    ProjectExistsError,
    ProjectFoundMultipleError,
    ProjectFoundWrongGroupError,
    ProjectNotFoundError,
)
from .project_config import PROJECT_TYPES, ProjectScriptConfig, detect_project_type


def canonical_path(path: Path | str) -> str:
    return str(Path(path).expanduser().resolve())


@dataclass(frozen=True, slots=True)
class Project:
    path: str
    name: str
    groups: tuple[str, ...] = ()
    type: str = "none"
    vcs: str | None = None
    remote: str = "origin"

    @property
    def primary_group(self) -> str | None:
        return self.groups[0] if self.groups else None

    def in_group(self, group: str | None) -> bool:
        return group is None or group in self.groups

    @classmethod
    def from_mapping(cls, path: str, data: Mapping[str, Any]) -> "Project":
        if not isinstance(data, Mapping):
            raise ConfigError(f"Catalogue entry '{path}' must be a table")
        entry_path = str(data.get("path") or path)
        name = data.get("name") or Path(entry_path).name
        try:
            groups = normalize_string_list(data.get("groups", data.get("group")), field_name="groups")
        except TypeError as exc:
            raise ConfigError(f"Catalogue entry '{path}': {exc}") from exc
        project_type = str(data.get("type") or "none")
        if project_type not in PROJECT_TYPES:
            raise ConfigError(f"Catalogue entry '{path}' has unknown type '{project_type}'")
        vcs = data.get("vcs")
        return cls(
            path=entry_path,
            name=str(name),
            groups=tuple(groups),
            type=project_type,
            vcs=str(vcs) if vcs else None,
            remote=str(data.get("remote") or "origin"),
        )

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "groups": list(self.groups),
            "type": self.type,
            "vcs": self.vcs,
            "remote": self.remote,
        }


@dataclass
class ProjectCatalogue:
    """Ordered set of projects keyed by canonical path, optionally persisted as JSON."""

    projects: Dict[str, Project] = field(default_factory=dict)
    path: Path | None = None
    _configs: Dict[str, ProjectScriptConfig] = field(default_factory=dict, repr=False)

    @classmethod
    def from_projects(cls, projects: Iterable[Project], *, path: Path | None = None) -> "ProjectCatalogue":
        return cls(projects={project.path: project for project in projects}, path=path)

    @classmethod
    def load(cls, path: Path) -> "ProjectCatalogue":
        """Read the catalogue stored at ``path``; a missing file is an empty catalogue."""

        if not path.exists():
            return cls(path=path)
        try:
            data = load_config_file(path)
        except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
            raise ConfigError(f"Could not read project catalogue '{path}': {exc}") from exc

        entries = data.get("projects") or {}
        if not isinstance(entries, Mapping):
            raise ConfigError(f"'projects' in '{path}' must be a table keyed by project path")
        projects = [Project.from_mapping(str(key), value) for key, value in entries.items()]
        return cls.from_projects(projects, path=path)

    def save(self) -> None:
        if self.path is None:
            raise DevrunError("The project catalogue has no file to be written to")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"projects": {key: project.to_mapping() for key, project in self.projects.items()}}
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
            handle.write("\n")

    # --- Queries ---

    def list_projects(
        self,
        *,
        name: str | None = None,
        path: Path | str | None = None,
        group: str | None = None,
    ) -> List[Project]:
        wanted_path = canonical_path(path) if path else None
        return [
            project
            for project in self.projects.values()
            if (name is None or project.name == name)
            and (wanted_path is None or project.path == wanted_path)
            and project.in_group(group)
        ]

    def list_groups(self) -> List[str]:
        groups: List[str] = []
        for project in self.projects.values():
            for group in project.groups:
                if group not in groups:
                    groups.append(group)
        return groups

    def find_project(self, name: str, group: str | None = None, *, path: Path | str | None = None) -> Project:
        """Return the single project called ``name``, narrowed by ``group`` and ``path`` when given."""

        matches = self.list_projects(name=name, path=path)
        if not matches:
            raise ProjectNotFoundError(name, detail=self._available())
        if group is not None:
            matches = [project for project in matches if project.in_group(group)]
            if not matches:
                raise ProjectNotFoundError(name, group)
        if len(matches) > 1:
            raise ProjectFoundMultipleError(name, [project.path for project in matches])
        return matches[0]

    def find_dependency_projects(self, name: str, group: str | None = None) -> List[Project]:
        """Return the projects a dependency declaration on ``name`` refers to.

        ``group`` only disambiguates; a name registered once is used whatever its groups.
        """

        matches = self.list_projects(name=name)
        if not matches:
            raise ProjectNotFoundError(name, detail=self._available())
        if len(matches) == 1:
            return matches
        in_group = [project for project in matches if project.in_group(group)] if group else []
        if not in_group:
            raise ProjectFoundMultipleError(name, [project.path for project in matches])
        return in_group

    def select_projects(self, project: str | None, group: str | None) -> List[Project]:
        """Pick the projects a ``run`` request targets."""

        if project is None:
            if group is None:
                raise DevrunError("A project name or a group is required")
            return self.list_projects(group=group)

        matches = self.list_projects(name=project)
        if not matches:
            raise ProjectNotFoundError(project, detail=self._available())
        if group is None:
            if len(matches) > 1:
                raise ProjectFoundMultipleError(project, [entry.path for entry in matches])
            return matches

        in_group = [entry for entry in matches if entry.in_group(group)]
        if not in_group:
            raise ProjectFoundWrongGroupError(project, group)
        if len(in_group) > 1:
            raise ProjectFoundMultipleError(project, [entry.path for entry in in_group])
        return in_group

    def get_script_config(self, project: Project) -> ProjectScriptConfig:
        config = self._configs.get(project.path)
        if config is None:
            config = ProjectScriptConfig.from_project(
                project.name,
                project.path,
                project.type,
                group=project.primary_group,
            )
            self._configs[project.path] = config
        return config

    # --- Mutators ---

    def add_project(
        self,
        path: Path | str,
        name: str | None = None,
        project_type: str | None = None,
        groups: Iterable[str] | str | None = None,
        vcs: str | None = None,
        remote: str = "origin",
    ) -> Project:
        root = Path(path).expanduser()
        if not root.is_dir():
            raise DevrunError(f"The path '{path}' does not exist or is not a directory")
        key = canonical_path(root)
        name = name or Path(key).name
        project_type = project_type or detect_project_type(Path(key))
        if project_type not in PROJECT_TYPES:
            allowed = ", ".join(PROJECT_TYPES)
            raise ConfigError(f"Unknown project type '{project_type}' (allowed: {allowed})")
        group_list = tuple(normalize_string_list(groups, field_name="groups"))

        if key in self.projects:
            raise ProjectExistsError(name, key, "the path is already registered")
        for existing in self.list_projects(name=name):
            if not group_list:
                raise ProjectExistsError(name, key, "duplicate project names cannot have empty groups")
            if set(existing.groups) & set(group_list):
                raise ProjectExistsError(name, key, f"duplicate project names cannot share groups with {existing.path}")

        project = Project(path=key, name=name, groups=group_list, type=project_type, vcs=vcs, remote=remote)
        self.projects[key] = project
        return project

    def remove_project(self, name: str, *, path: Path | str | None = None) -> Project:
        project = self.find_project(name, path=path)
        del self.projects[project.path]
        self._configs.pop(project.path, None)
        return project

    def add_group(self, name: str, group: str, *, path: Path | str | None = None) -> Project:
        project = self.find_project(name, path=path)
        if group in project.groups:
            return project
        return self._replace(project, groups=(*project.groups, group))

    def remove_group(self, name: str, group: str, *, path: Path | str | None = None) -> Project:
        project = self.find_project(name, path=path)
        return self._replace(project, groups=tuple(entry for entry in project.groups if entry != group))

    def set_type(self, name: str, project_type: str, *, group: str | None = None, path: Path | str | None = None) -> Project:
        if project_type not in PROJECT_TYPES:
            allowed = ", ".join(PROJECT_TYPES)
            raise ConfigError(f"Unknown project type '{project_type}' (allowed: {allowed})")
        project = self.find_project(name, group, path=path)
        return self._replace(project, type=project_type)

    def _replace(self, project: Project, **changes: Any) -> Project:
        updated = replace(project, **changes)
        self.projects[project.path] = updated
        self._configs.pop(project.path, None)
        return updated

    def _available(self) -> str:
        names = sorted({project.name for project in self.projects.values()})
        return f"Available projects: {', '.join(names) or '<none>'}"


__all__ = ["Project", "ProjectCatalogue", "canonical_path"]
