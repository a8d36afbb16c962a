"""Global settings loaded from the devrun home directory."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
import os

import yaml

from core.command_runner import DEFAULT_SHELL
from core.config_loader import find_config_file, load_config_file

from .errors import ConfigError


HOME_ENV = "DEVRUN_HOME"
DEFAULT_HOME = Path("~/.config/devrun")
CATALOGUE_FILENAME = "projects.json"


def resolve_home(environ: Mapping[str, str] | None = None) -> Path:
    environ = os.environ if environ is None else environ
    value = environ.get(HOME_ENV)
    return Path(value).expanduser() if value else DEFAULT_HOME.expanduser()


@dataclass(slots=True)
class GlobalConfig:
    home: Path
    log_level: str = "info"
    catalogue: Path | None = None
    shell: str = DEFAULT_SHELL

    @property
    def catalogue_path(self) -> Path:
        return self.catalogue or self.home / CATALOGUE_FILENAME

    @classmethod
    def from_mapping(cls, home: Path, data: Mapping[str, Any]) -> "GlobalConfig":
        global_section = data.get("global", {}) if isinstance(data, Mapping) else {}
        if not isinstance(global_section, Mapping):
            raise ConfigError("[global] must be a table")
        catalogue = global_section.get("catalogue")
        catalogue_path: Path | None = None
        if catalogue:
            catalogue_path = Path(str(catalogue)).expanduser()
            if not catalogue_path.is_absolute():
                catalogue_path = home / catalogue_path
        return cls(
            home=home,
            log_level=str(global_section.get("log_level", "info")).lower(),
            catalogue=catalogue_path,
            shell=str(global_section.get("shell") or DEFAULT_SHELL),
        )

    @classmethod
    def load(cls, home: Path | None = None) -> "GlobalConfig":
        """Read ``config.<toml|json|yaml>`` from ``home``; defaults apply when it is absent."""

        home = home or resolve_home()
        try:
            path = find_config_file(home, "config")
            data = load_config_file(path) if path is not None else {}
        except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
            raise ConfigError(f"Could not read settings from '{home}': {exc}") from exc
        return cls.from_mapping(home, data)


__all__ = ["GlobalConfig", "HOME_ENV", "resolve_home"]
