"""Shared helpers for locating and loading configuration mappings."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

import json
import tomllib

import yaml


ConfigLoader = Callable[[Any], Mapping[str, Any]]


FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``.

    Empty YAML documents decode to an empty mapping.
    """

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS)) or "<none>"
        raise ValueError(
            f"Unsupported configuration file extension: {suffix}. Supported: {supported}"
        )

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    with path.open(mode, **kwargs) as handle:
        data = loader(handle)

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")

    return data


def collect_config_files(
    directory: Path,
    *,
    suffixes: Iterable[str] | None = None,
    stems: Iterable[str] | None = None,
) -> Dict[str, Path]:
    """Return a mapping of filename stems to configuration files within ``directory``.

    ``stems`` restricts the result to the given file stems. Two files sharing a
    stem in different formats are rejected.
    """

    allowed = {suffix.lower() for suffix in (suffixes or FILE_LOADERS.keys())}
    wanted = set(stems) if stems is not None else None
    files: Dict[str, Path] = {}

    if not directory.is_dir():
        return files

    for path in sorted(directory.iterdir()):
        if not path.is_file():
            continue

        suffix = path.suffix.lower()
        if suffix not in allowed:
            continue

        stem = path.stem
        if wanted is not None and stem not in wanted:
            continue
        if stem in files:
            other = files[stem]
            raise ValueError(
                f"Multiple configuration files found for '{stem}': '{other.name}' and '{path.name}'. "
                "Only one format per configuration entry is allowed."
            )

        files[stem] = path

    return files


def find_config_file(directory: Path, stem: str) -> Path | None:
    """Return the single ``<stem>.<suffix>`` file in ``directory`` or ``None``."""

    return collect_config_files(directory, stems=[stem]).get(stem)


def get_section(data: Mapping[str, Any], dotted_key: str) -> Mapping[str, Any]:
    """Return the nested mapping at ``dotted_key`` (e.g. ``tool.devrun``), or an empty mapping."""

    current: Any = data
    for part in dotted_key.split("."):
        if not isinstance(current, Mapping):
            return {}
        current = current.get(part)
    return current if isinstance(current, Mapping) else {}


def normalize_string_list(value: Any, *, field_name: str | None = None) -> List[str]:
    """Coerce ``value`` into a list of trimmed, de-duplicated strings.

    A plain string is split on commas so ``"a,b"`` and ``["a", "b"]`` agree.
    """

    if value is None:
        return []

    if isinstance(value, (str, bytes)):
        raw_items: Sequence[Any] = str(value).split(",")
    elif isinstance(value, Sequence):
        raw_items = value
    else:
        label = f"{field_name} " if field_name else ""
        raise TypeError(f"{label}must be a string or sequence of strings")

    items: List[str] = []
    for item in raw_items:
        if not isinstance(item, (str, bytes)):
            label = f"{field_name} " if field_name else ""
            raise TypeError(f"{label}entries must be strings")
        text = str(item).strip()
        if text and text not in items:
            items.append(text)
    return items


__all__ = [
    "ConfigLoader",
    "FILE_LOADERS",
    "collect_config_files",
    "find_config_file",
    "get_section",
    "load_config_file",
    "normalize_string_list",
]
