from __future__ import annotations

from pathlib import Path
import shlex
import tempfile
import textwrap
import unittest
from unittest.mock import MagicMock

from core.command_runner import RecordingCommandRunner
from devrun.catalogue import ProjectCatalogue
from devrun.errors import ProjectNotFoundError, ProjectScriptInvalidError
from devrun.executor import ExecutionStack, RunPlanExecutor
from devrun.run_configuration import RunConfiguration


class RunPlanExecutorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.catalogue = ProjectCatalogue()
        self.runner = RecordingCommandRunner()
        self.console = MagicMock()
        self.executor = RunPlanExecutor(self.catalogue, self.runner, self.console)
        self.paths = {}
        for name, groups in (("api", ["acme"]), ("db", ["acme"]), ("cache", [])):
            path = self.root / name
            path.mkdir()
            (path / "devrun.toml").write_text(
                textwrap.dedent(
                    f"""
                    [scripts]
                    start = "{name}-start"
                    """
                )
            )
            self.paths[name] = self.catalogue.add_project(path, groups=groups).path

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _line(self, name: str, command: str) -> str:
        return f"cd {shlex.quote(self.paths[name])} && {command}"

    def test_dependencies_run_before_the_node(self) -> None:
        cache = RunConfiguration("cache", None, {"start": "cache-start"})
        db = RunConfiguration("db", "acme", {"start": "db-start"}, [cache])
        api = RunConfiguration("api", "acme", {"start": "api-start", "migrate": "api-migrate"}, [db])

        self.assertTrue(self.executor.run(api))
        self.assertEqual(
            self.runner.command_lines(),
            [
                self._line("cache", "cache-start"),
                self._line("db", "db-start"),
                self._line("api", "api-start"),
                self._line("api", "api-migrate"),
            ],
        )

    def test_rerun_without_reset_is_suppressed(self) -> None:
        node = RunConfiguration("api", "acme", {"start": "api-start"})
        self.executor.run(node)
        self.executor.run(RunConfiguration("api", "acme", {"start": "something else"}))
        self.assertEqual(self.runner.command_lines(), [self._line("api", "api-start")])

        self.executor.reset()
        self.executor.run(node)
        self.assertEqual(len(self.runner.command_lines()), 2)

    def test_shared_script_across_roots_runs_once(self) -> None:
        db = RunConfiguration("db", "acme", {"start": "db-start"})
        api = RunConfiguration("api", "acme", {"start": "api-start"}, [db])
        cache = RunConfiguration("cache", None, {"start": "cache-start"}, [db])

        self.assertTrue(self.executor.run_all([api, cache]))
        self.assertEqual(
            self.runner.command_lines(),
            [
                self._line("db", "db-start"),
                self._line("api", "api-start"),
                self._line("cache", "cache-start"),
            ],
        )

    def test_extra_arguments_are_substituted(self) -> None:
        node = RunConfiguration("api", "acme", {"deploy": "deploy $1 --env=$2"})
        self.executor.run(node, "staging full")
        self.assertEqual(self.runner.command_lines(), [self._line("api", "deploy staging --env=full")])

    def test_unknown_project_only_fails_its_own_node(self) -> None:
        ghost = RunConfiguration("ghost", None, {"start": "ghost-start"})
        api = RunConfiguration("api", "acme", {"start": "api-start"}, [ghost])

        self.assertFalse(self.executor.run(api))
        self.assertEqual(self.runner.command_lines(), [self._line("api", "api-start")])
        self.console.error.assert_called_once()
        message = self.console.error.call_args[0][0]
        self.assertIn("No runnable script 'start' for project 'ghost'", message)
        self.assertIn("ProjectNotFoundError", message)

    def test_locate_raises_project_script_invalid(self) -> None:
        ghost = RunConfiguration("ghost", "acme", {"start": "ghost-start"})
        with self.assertRaises(ProjectScriptInvalidError) as ctx:
            self.executor.locate(ghost)
        self.assertEqual(ctx.exception.project, "ghost")
        self.assertEqual(ctx.exception.group, "acme")
        self.assertIsInstance(ctx.exception.__cause__, ProjectNotFoundError)
        self.assertEqual(self.executor.locate(RunConfiguration("db", "acme", {"start": "x"})).get_path(), self.paths["db"])

    def test_execution_stack_keeps_order_without_duplicates(self) -> None:
        stack = ExecutionStack()
        for key in ("/a@start", "/b@start", "/a@start"):
            stack.push(key)
        self.assertEqual(stack.keys, ["/a@start", "/b@start"])
        self.assertIn("/b@start", stack)
        self.assertNotIn("/c@start", stack)

    def test_missing_project_directory_is_reported(self) -> None:
        (self.root / "cache" / "devrun.toml").unlink()
        (self.root / "cache").rmdir()
        node = RunConfiguration("cache", None, {"start": "cache-start"})
        self.assertFalse(self.executor.run(node))
        self.assertEqual(self.runner.command_lines(), [])

    def test_failing_command_is_reported_and_the_rest_still_runs(self) -> None:
        runner = RecordingCommandRunner(returncode=2)
        executor = RunPlanExecutor(self.catalogue, runner, self.console)
        node = RunConfiguration("api", "acme", {"start": "api-start", "migrate": "api-migrate"})

        self.assertFalse(executor.run(node))
        self.assertEqual(len(runner.command_lines()), 2)
        self.assertEqual(self.console.error.call_count, 2)

    def test_commands_are_tagged_for_dry_run_output(self) -> None:
        self.executor.run(RunConfiguration("db", "acme", {"start": "db-start"}))
        (line,) = list(self.runner.iter_formatted())
        self.assertEqual(line, f"[dry-run] db@start {self._line('db', 'db-start')}")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
