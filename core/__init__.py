"""Shared core utilities for command execution, configuration and diagnostics."""

from .command_runner import (
    CommandRunner,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)
from .config_loader import (
    ConfigLoader,
    FILE_LOADERS,
    collect_config_files,
    find_config_file,
    get_section,
    load_config_file,
    normalize_string_list,
)
from .console import Console, DiagnosticsSink
from .git_api import GitRepository, GitRepositoryError, detect_remote_url

__all__ = [
    "CommandRunner",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "ConfigLoader",
    "FILE_LOADERS",
    "collect_config_files",
    "find_config_file",
    "get_section",
    "load_config_file",
    "normalize_string_list",
    "Console",
    "DiagnosticsSink",
    "GitRepository",
    "GitRepositoryError",
    "detect_remote_url",
]
