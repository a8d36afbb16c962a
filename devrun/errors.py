"""Exception types raised by the project catalogue and script engine."""
from __future__ import annotations


class DevrunError(Exception):
    """Base class for every error reported to the user by devrun."""


class ConfigError(DevrunError, ValueError):
    """Raised when a settings file, catalogue or project descriptor cannot be decoded."""


class ProjectNotFoundError(DevrunError, KeyError):
    """Raised when no catalogue entry matches a project lookup."""

    def __init__(self, project: str, group: str | None = None, *, detail: str | None = None):
        self.project = project
        self.group = group
        message = f"Project '{project}' not found"
        if group:
            message = f"{message} in group '{group}'"
        if detail:
            message = f"{message}. {detail}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class ProjectFoundMultipleError(DevrunError, LookupError):
    """Raised when a project name matches several catalogue entries and nothing disambiguates them."""

    def __init__(self, project: str, paths: list[str] | None = None):
        self.project = project
        self.paths = list(paths or [])
        message = f"Project '{project}' is registered more than once, give a group or path to select one"
        if self.paths:
            message = f"{message} (candidates: {', '.join(self.paths)})"
        super().__init__(message)


class ProjectFoundWrongGroupError(DevrunError, LookupError):
    """Raised when a project exists but is not a member of the requested group."""

    def __init__(self, project: str, group: str):
        self.project = project
        self.group = group
        super().__init__(f"Project '{project}' is not a member of group '{group}'")


class ProjectExistsError(DevrunError, ValueError):
    def __init__(self, project: str, path: str, reason: str):
        self.project = project
        self.path = path
        super().__init__(f"Project '{project}' ({path}) cannot be added: {reason}")


class ProjectScriptInvalidError(DevrunError):
    """Raised when a run plan node cannot be matched back to an executable project script."""

    def __init__(self, group: str | None, project: str, script: str, reason: str | None = None):
        self.group = group
        self.project = project
        self.script = script
        message = f"No runnable script '{script}' for project '{project}'"
        if group:
            message = f"{message} in group '{group}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


__all__ = [
    "ConfigError",
    "DevrunError",
    "ProjectExistsError",
    "ProjectFoundMultipleError",
    "ProjectFoundWrongGroupError",
    "ProjectNotFoundError",
    "ProjectScriptInvalidError",
]
