"""Command line interface for the devrun tool."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List, Sequence
import sys

from core.command_runner import RecordingCommandRunner, SubprocessCommandRunner
from core.console import Console
from core.git_api import GitRepositoryError, detect_remote_url

from .catalogue import ProjectCatalogue
from .errors import ConfigError, DevrunError
from .executor import RunPlanExecutor
from .project_config import PROJECT_TYPES, AliasScript
from .resolver import DependencyResolver
from .settings import GlobalConfig


def _split_extra_args(argv: Sequence[str]) -> tuple[List[str], List[str]]:
    """Separate the arguments after ``--``, which are forwarded to the scripts."""
    args = list(argv)
    if "--" not in args:
        return args, []
    index = args.index("--")
    return args[:index], args[index + 1 :]


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="devrun", description="Run project scripts with their cross-project dependencies")
    parser.add_argument("--home", help="Settings directory (defaults to $DEVRUN_HOME or ~/.config/devrun)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a script on a project or on every project of a group")
    run_parser.add_argument("script", help="Script name to run")
    run_parser.add_argument("project", nargs="?", help="Project name; omit to target every project in --group")
    run_parser.add_argument("-g", "--group", help="Group the project belongs to")
    run_parser.add_argument("--no-deps", action="store_true", help="Do not run the scripts of dependency projects")
    run_parser.add_argument("--dry-run", action="store_true", help="Print commands without executing them")
    run_parser.add_argument("--show-plan", action="store_true", help="Display the resolved run plan before running it")
    run_parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug output")

    scripts_parser = subparsers.add_parser("scripts", help="List the scripts every project declares")
    scripts_parser.add_argument("project", nargs="?", help="Only list scripts of this project")
    scripts_parser.add_argument("-g", "--group", help="Only list projects of this group")

    project_parser = subparsers.add_parser("project", help="Manage the project catalogue")
    project_commands = project_parser.add_subparsers(dest="project_command", required=True)

    project_commands.add_parser("list", help="List registered projects")

    add_parser = project_commands.add_parser("add", help="Register a project that exists on disk")
    add_parser.add_argument("path", nargs="?", default=".", help="Project directory (defaults to the current directory)")
    add_parser.add_argument("--name", help="Project name (defaults to the directory name)")
    add_parser.add_argument("--type", choices=PROJECT_TYPES, help="Where the project keeps its scripts (auto-detected)")
    add_parser.add_argument("-g", "--group", action="append", default=[], help="Group(s) to add the project to (comma-separated)")
    add_parser.add_argument("--vcs", help="Repository URL (read from the Git remote when omitted)")
    add_parser.add_argument("--remote", default="origin", help="Git remote name used to detect the repository URL")

    remove_parser = project_commands.add_parser("remove", help="Unregister a project")
    remove_parser.add_argument("name")
    remove_parser.add_argument("--path", help="Project path, when several projects share the name")

    for command, help_text in (("add-group", "Add a project to a group"), ("remove-group", "Remove a project from a group")):
        group_parser = project_commands.add_parser(command, help=help_text)
        group_parser.add_argument("name")
        group_parser.add_argument("group")
        group_parser.add_argument("--path", help="Project path, when several projects share the name")

    type_parser = project_commands.add_parser("set-type", help="Change where a project keeps its scripts")
    type_parser.add_argument("name")
    type_parser.add_argument("type", choices=PROJECT_TYPES)
    type_parser.add_argument("-g", "--group", help="Group of the project, when several projects share the name")
    type_parser.add_argument("--path", help="Project path, when several projects share the name")

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    argv, extra_args = _split_extra_args(list(sys.argv[1:] if argv is None else argv))
    args = _parse_arguments(argv)

    try:
        settings = GlobalConfig.load(Path(args.home).expanduser() if args.home else None)
        if args.command == "run":
            return _handle_run(args, settings, extra_args)
        if args.command == "scripts":
            return _handle_scripts(args, settings)
        if args.command == "project":
            return _handle_project(args, settings)
    except DevrunError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    raise ValueError(f"Unknown command: {args.command}")


def _make_console(settings: GlobalConfig, *, verbose: bool = False, dry_run: bool = False) -> Console:
    level = "debug" if verbose else settings.log_level
    try:
        return Console(level, dry_run=dry_run)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _handle_run(args: Namespace, settings: GlobalConfig, extra_args: List[str]) -> int:
    console = _make_console(settings, verbose=args.verbose, dry_run=args.dry_run)
    catalogue = ProjectCatalogue.load(settings.catalogue_path)

    projects = catalogue.select_projects(args.project, args.group)
    if not projects:
        print(f"No projects found in group '{args.group}'")
        return 1

    # resolution errors abort here, before anything has run
    resolver = DependencyResolver(catalogue, console, follow_dependencies=not args.no_deps)
    forest, _ = resolver.resolve(args.script, projects)

    if args.show_plan:
        print("Run plan:")
        for node in forest:
            for line in node.describe(indent=1):
                print(line)

    if not any(node.command_list for root in forest for node in root.walk()):
        targets = args.project or f"group '{args.group}'"
        print(f"No script '{args.script}' found for {targets}")
        return 1

    runner: SubprocessCommandRunner | RecordingCommandRunner
    if args.dry_run:
        console.dry("Recording commands instead of running them")
        runner = RecordingCommandRunner()
    else:
        runner = SubprocessCommandRunner(shell=settings.shell)

    executor = RunPlanExecutor(catalogue, runner, console)
    ok = executor.run_all(forest, extra_args)

    if args.dry_run and isinstance(runner, RecordingCommandRunner):
        for line in runner.iter_formatted():
            print(line)
    return 0 if ok else 1


def _handle_scripts(args: Namespace, settings: GlobalConfig) -> int:
    catalogue = ProjectCatalogue.load(settings.catalogue_path)
    rows: List[dict[str, str]] = []
    has_sequence = False

    for project in catalogue.list_projects(name=args.project, group=args.group):
        try:
            config = catalogue.get_script_config(project)
        except ConfigError as exc:
            print(f"Warning: {exc}")
            continue
        for script, value in config.list_scripts().items():
            if isinstance(value, AliasScript):
                has_sequence = True
                command = f"* sequence({', '.join(value.names)})"
            else:
                command = value.command
            rows.append(
                {
                    "Project": project.name,
                    "Group": ", ".join(project.groups) or "-",
                    "Script": script,
                    "Command": command,
                }
            )

    if not rows:
        print("No scripts found")
        return 0

    _print_table(["Project", "Group", "Script", "Command"], rows)
    if has_sequence:
        print()
        print("* A sequence is a list of script names which are run in order")
    return 0


def _handle_project(args: Namespace, settings: GlobalConfig) -> int:
    catalogue = ProjectCatalogue.load(settings.catalogue_path)
    command = args.project_command

    if command == "list":
        return _list_projects(catalogue)

    if command == "add":
        vcs = args.vcs
        if vcs is None:
            try:
                vcs = detect_remote_url(args.path, args.remote)
            except GitRepositoryError:
                print("No git repository was found, nor one was given through the command line")
        project = catalogue.add_project(
            args.path,
            name=args.name,
            project_type=args.type,
            groups=",".join(args.group),
            vcs=vcs,
            remote=args.remote,
        )
        catalogue.save()
        print(f"The project '{project.name}' with type '{project.type}' was added with the path '{project.path}'")
        return 0

    if command == "remove":
        project = catalogue.remove_project(args.name, path=args.path)
        catalogue.save()
        print(f"The project '{project.name}' was removed")
        return 0

    if command == "add-group":
        catalogue.add_group(args.name, args.group, path=args.path)
        catalogue.save()
        print(f"Group '{args.group}' was added to project '{args.name}'")
        return _list_projects(catalogue)

    if command == "remove-group":
        catalogue.remove_group(args.name, args.group, path=args.path)
        catalogue.save()
        print(f"Group '{args.group}' was removed from project '{args.name}'")
        return _list_projects(catalogue)

    if command == "set-type":
        catalogue.set_type(args.name, args.type, group=args.group, path=args.path)
        catalogue.save()
        print(f"Project '{args.name}' type was changed to '{args.type}'")
        return 0

    raise ValueError(f"Unknown project command: {command}")


def _list_projects(catalogue: ProjectCatalogue) -> int:
    projects = catalogue.list_projects()
    if not projects:
        print("There are no projects")
        return 0

    rows = [
        {
            "Project": project.name,
            "Group": ", ".join(project.groups) or "-",
            "Path": project.path,
            "Type": project.type,
            "Repository Url": project.vcs or "-",
            "Remote": project.remote,
        }
        for project in projects
    ]
    _print_table(["Project", "Group", "Path", "Type", "Repository Url", "Remote"], rows)
    groups = catalogue.list_groups()
    if groups:
        print()
        print(f"Groups: {', '.join(groups)}")
    return 0


def _print_table(headers: List[str], rows: List[dict[str, str]]) -> None:
    widths = {header: len(header) for header in headers}
    for row in rows:
        for header in headers:
            widths[header] = max(widths[header], len(row.get(header, "")))

    def _format(row: dict[str, str]) -> str:
        return "  ".join(row.get(header, "").ljust(widths[header]) for header in headers).rstrip()

    print(_format({header: header for header in headers}))
    print("  ".join("-" * widths[header] for header in headers))
    for row in rows:
        print(_format(row))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
