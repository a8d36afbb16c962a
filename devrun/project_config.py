"""Per-project script and dependency configuration read from project descriptors."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Union

import yaml

from core.config_loader import find_config_file, get_section, load_config_file

from .errors import ConfigError


DESCRIPTOR_STEM = "devrun"
SECTION_KEY = "devrun"

PROJECT_TYPES = ("devrun", "pyproject", "node", "composer", "none")
"""Known project types, each naming where a project keeps its script configuration."""


@dataclass(frozen=True, slots=True)
class LiteralScript:
    """A script whose value is a shell command template."""

    command: str


@dataclass(frozen=True, slots=True)
class AliasScript:
    """A script whose value is an ordered list of other script names."""

    names: tuple[str, ...]


ScriptValue = Union[LiteralScript, AliasScript]


@dataclass(frozen=True, slots=True)
class Disabled:
    """The dependency does not run anything for this script."""


@dataclass(frozen=True, slots=True)
class SameName:
    """The dependency runs its own script with the same name."""


@dataclass(frozen=True, slots=True)
class Renamed:
    """The dependency runs the listed scripts instead."""

    scripts: tuple[str, ...]


Propagation = Union[Disabled, SameName, Renamed]


def parse_script_value(value: Any) -> ScriptValue | None:
    """Decode a raw descriptor value; anything but a string or a list of strings is ``None``."""

    if isinstance(value, str):
        return LiteralScript(value)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        if all(isinstance(item, str) for item in value):
            return AliasScript(tuple(value))
    return None


def _parse_propagation(value: Any) -> Propagation:
    if value is True:
        return SameName()
    if isinstance(value, str) and value.strip():
        return Renamed((value.strip(),))
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        names = tuple(item.strip() for item in value if isinstance(item, str) and item.strip())
        if names:
            return Renamed(names)
    # false, empty values and anything unrecognised block the script
    return Disabled()


@dataclass(frozen=True, slots=True)
class DependencyDeclaration:
    """One entry of a project's ``dependencies`` table."""

    project: str
    group: str | None = None
    scripts: Mapping[str, Propagation] = field(default_factory=dict)
    default: Propagation = field(default_factory=Disabled)

    @classmethod
    def from_value(cls, project: str, value: Any) -> "DependencyDeclaration | None":
        """Build a declaration from its raw descriptor value, or ``None`` when it is unusable.

        Only scripts the ``scripts`` key maps propagate; without it the declaration runs nothing.
        """

        if value is None or value is True:
            return cls(project=project)
        if not isinstance(value, Mapping):
            return None

        group = value.get("group")
        group = str(group) if isinstance(group, str) and group.strip() else None

        if "scripts" not in value:
            return cls(project=project, group=group)

        raw = value["scripts"]
        if raw is True:
            return cls(project=project, group=group, default=SameName())
        if raw is False:
            return cls(project=project, group=group)
        if isinstance(raw, Mapping):
            scripts = {str(key): _parse_propagation(item) for key, item in raw.items()}
            return cls(project=project, group=group, scripts=scripts)
        if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
            # shorthand: listed scripts run under their own name, the rest are blocked
            scripts = {str(item): SameName() for item in raw if isinstance(item, str)}
            return cls(project=project, group=group, scripts=scripts)
        return None

    def propagation(self, script: str) -> Propagation:
        return self.scripts.get(script, self.default)

    def targets(self, script: str) -> tuple[str, ...]:
        """Script names the dependency project must run when ``script`` runs here."""

        propagation = self.propagation(script)
        if isinstance(propagation, SameName):
            return (script,)
        if isinstance(propagation, Renamed):
            return propagation.scripts
        return ()


def _parse_dependencies(raw: Any, *, source: str) -> List[DependencyDeclaration]:
    declarations: List[DependencyDeclaration] = []
    if raw is None:
        return declarations

    if isinstance(raw, Mapping):
        entries = [(str(name), value) for name, value in raw.items()]
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        entries = []
        for item in raw:
            if isinstance(item, str) and item.strip():
                entries.append((item.strip(), None))
            elif isinstance(item, Mapping) and (item.get("project") or item.get("name")):
                entries.append((str(item.get("project") or item.get("name")), item))
            else:
                raise ConfigError(f"{source}: dependency entries must be project names or tables with a 'project' key")
    else:
        raise ConfigError(f"{source}: 'dependencies' must be a table or an array")

    for name, value in entries:
        declaration = DependencyDeclaration.from_value(name, value)
        if declaration is not None:
            declarations.append(declaration)
    return declarations


class ProjectScriptConfig:
    """Scripts and dependency declarations of a single project."""

    def __init__(
        self,
        project: str,
        path: Path | str,
        data: Mapping[str, Any] | None = None,
        *,
        group: str | None = None,
        source: str | None = None,
    ) -> None:
        self.project = project
        self.path = str(path)
        self.group = group
        self.source = source or self.path
        data = data or {}

        scripts = data.get("scripts") or {}
        if not isinstance(scripts, Mapping):
            raise ConfigError(f"{self.source}: 'scripts' must be a table")
        self._scripts: Dict[str, Any] = {str(key): value for key, value in scripts.items()}
        self._dependencies = _parse_dependencies(data.get("dependencies"), source=self.source)

    @classmethod
    def from_project(cls, project: str, path: Path | str, project_type: str, *, group: str | None = None) -> "ProjectScriptConfig":
        """Read the descriptor that ``project_type`` designates inside ``path``."""

        root = Path(path)
        if not root.is_dir():
            raise ConfigError(f"The project directory for '{project}' was not found: {root}")

        descriptor = descriptor_path(root, project_type)
        if descriptor is None or not descriptor.is_file():
            return cls(project, root, {}, group=group)

        try:
            data = load_config_file(descriptor)
        except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
            raise ConfigError(f"Could not read '{descriptor}': {exc}") from exc

        if project_type != "devrun":
            key = f"tool.{SECTION_KEY}" if project_type == "pyproject" else SECTION_KEY
            data = get_section(data, key)
        return cls(project, root, data, group=group, source=str(descriptor))

    def get_path(self) -> str:
        return self.path

    def get_group(self) -> str | None:
        return self.group

    def list_scripts(self) -> Dict[str, ScriptValue]:
        scripts: Dict[str, ScriptValue] = {}
        for name, raw in self._scripts.items():
            value = parse_script_value(raw)
            if value is not None:
                scripts[name] = value
        return scripts

    def get_script(self, name: str) -> ScriptValue | None:
        return parse_script_value(self._scripts.get(name))

    def get_dependencies(self, script: str | None = None) -> List[DependencyDeclaration]:
        """Return dependency declarations, only those propagating ``script`` when it is given."""

        if script is None:
            return list(self._dependencies)
        return [declaration for declaration in self._dependencies if declaration.targets(script)]


def descriptor_path(root: Path, project_type: str) -> Path | None:
    if project_type not in PROJECT_TYPES:
        allowed = ", ".join(PROJECT_TYPES)
        raise ConfigError(f"Unknown project type '{project_type}' (allowed: {allowed})")
    if project_type == "devrun":
        try:
            return find_config_file(root, DESCRIPTOR_STEM)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
    if project_type == "pyproject":
        return root / "pyproject.toml"
    if project_type == "node":
        return root / "package.json"
    if project_type == "composer":
        return root / "composer.json"
    return None


def detect_project_type(root: Path) -> str:
    """Guess where ``root`` keeps its script configuration."""

    if descriptor_path(root, "devrun") is not None:
        return "devrun"

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            if get_section(load_config_file(pyproject), f"tool.{SECTION_KEY}"):
                return "pyproject"
        except (OSError, ValueError, TypeError):
            pass

    if (root / "composer.json").is_file():
        return "composer"
    if (root / "package.json").is_file():
        return "node"
    return "none"


__all__ = [
    "AliasScript",
    "DependencyDeclaration",
    "Disabled",
    "LiteralScript",
    "PROJECT_TYPES",
    "ProjectScriptConfig",
    "Propagation",
    "Renamed",
    "SameName",
    "ScriptValue",
    "descriptor_path",
    "detect_project_type",
    "parse_script_value",
]
