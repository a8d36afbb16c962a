"""Project catalogue and dependency-aware script runner."""

from .aliases import expand_script
from .catalogue import Project, ProjectCatalogue
from .cli import main
from .command_line import build_command_line
from .executor import ExecutionStack, RunPlanExecutor
from .resolver import DependencyResolver, ResolutionStack
from .run_configuration import RunConfiguration, script_key

__all__ = [
    "DependencyResolver",
    "ExecutionStack",
    "Project",
    "ProjectCatalogue",
    "ResolutionStack",
    "RunConfiguration",
    "RunPlanExecutor",
    "build_command_line",
    "expand_script",
    "main",
    "script_key",
]
