from __future__ import annotations

from pathlib import Path
import json
import tempfile
import textwrap
import unittest

from devrun.errors import ConfigError
from devrun.project_config import (
    AliasScript,
    Disabled,
    LiteralScript,
    ProjectScriptConfig,
    Renamed,
    SameName,
    detect_project_type,
)


class ProjectDescriptorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_reads_toml_descriptor(self) -> None:
        (self.root / "devrun.toml").write_text(
            textwrap.dedent(
                """
                [scripts]
                start = "docker compose up -d $@"
                up = ["build", "start"]
                build = "make"
                """
            )
        )
        config = ProjectScriptConfig.from_project("api", self.root, "devrun", group="acme")
        self.assertEqual(config.get_script("start"), LiteralScript("docker compose up -d $@"))
        self.assertEqual(config.get_script("up"), AliasScript(("build", "start")))
        self.assertIsNone(config.get_script("missing"))
        self.assertEqual(config.get_path(), str(self.root))
        self.assertEqual(config.get_group(), "acme")

    def test_reads_yaml_descriptor(self) -> None:
        (self.root / "devrun.yaml").write_text(
            textwrap.dedent(
                """
                scripts:
                  test: pytest -q
                """
            )
        )
        config = ProjectScriptConfig.from_project("api", self.root, "devrun")
        self.assertEqual(config.get_script("test"), LiteralScript("pytest -q"))

    def test_conflicting_descriptor_formats_raise(self) -> None:
        (self.root / "devrun.toml").write_text("[scripts]\n")
        (self.root / "devrun.json").write_text("{}")
        with self.assertRaises(ConfigError):
            ProjectScriptConfig.from_project("api", self.root, "devrun")

    def test_node_projects_read_the_package_json_section(self) -> None:
        (self.root / "package.json").write_text(
            json.dumps({"name": "web", "devrun": {"scripts": {"start": "npm start"}}})
        )
        config = ProjectScriptConfig.from_project("web", self.root, "node")
        self.assertEqual(config.get_script("start"), LiteralScript("npm start"))

    def test_pyproject_projects_read_the_tool_table(self) -> None:
        (self.root / "pyproject.toml").write_text(
            textwrap.dedent(
                """
                [project]
                name = "svc"

                [tool.devrun.scripts]
                test = "pytest"
                """
            )
        )
        config = ProjectScriptConfig.from_project("svc", self.root, "pyproject")
        self.assertEqual(config.get_script("test"), LiteralScript("pytest"))

    def test_missing_descriptor_means_no_scripts(self) -> None:
        config = ProjectScriptConfig.from_project("bare", self.root, "devrun")
        self.assertEqual(config.list_scripts(), {})
        self.assertEqual(config.get_dependencies(), [])

    def test_missing_project_directory_raises(self) -> None:
        with self.assertRaises(ConfigError):
            ProjectScriptConfig.from_project("gone", self.root / "gone", "devrun")

    def test_invalid_descriptor_raises_config_error(self) -> None:
        (self.root / "devrun.json").write_text("{not json")
        with self.assertRaises(ConfigError):
            ProjectScriptConfig.from_project("api", self.root, "devrun")

    def test_list_scripts_skips_malformed_values(self) -> None:
        config = ProjectScriptConfig("api", self.root, {"scripts": {"ok": "true", "bad": {"x": 1}, "num": 3}})
        self.assertEqual(list(config.list_scripts()), ["ok"])


class DependencyDeclarationTests(unittest.TestCase):
    def _dependencies(self, raw) -> ProjectScriptConfig:
        return ProjectScriptConfig("api", "/src/api", {"dependencies": raw})

    def test_missing_scripts_key_propagates_nothing(self) -> None:
        config = self._dependencies({"database": {"group": "acme"}, "cache": None})
        database, cache = config.get_dependencies()
        self.assertEqual(database.project, "database")
        self.assertEqual(database.group, "acme")
        self.assertEqual(database.targets("start"), ())
        self.assertEqual(cache.targets("destroy"), ())
        self.assertEqual(config.get_dependencies("start"), [])

    def test_boolean_scripts_values(self) -> None:
        config = self._dependencies({"on": {"scripts": True}, "off": {"scripts": False}})
        on, off = config.get_dependencies()
        self.assertEqual(on.propagation("start"), SameName())
        self.assertEqual(off.propagation("start"), Disabled())
        self.assertEqual([d.project for d in config.get_dependencies("start")], ["on"])

    def test_script_mapping_variants(self) -> None:
        config = self._dependencies(
            {
                "backend": {
                    "group": "acme",
                    "scripts": {"start": True, "stop": "halt", "test": False, "up": ["build", "start"], "bad": 7},
                }
            }
        )
        (declaration,) = config.get_dependencies()
        self.assertEqual(declaration.group, "acme")
        self.assertEqual(declaration.targets("start"), ("start",))
        self.assertEqual(declaration.propagation("stop"), Renamed(("halt",)))
        self.assertEqual(declaration.targets("up"), ("build", "start"))
        self.assertEqual(declaration.targets("test"), ())
        self.assertEqual(declaration.targets("bad"), ())
        # scripts the mapping does not mention are not propagated
        self.assertEqual(declaration.targets("deploy"), ())

    def test_script_list_shorthand(self) -> None:
        config = self._dependencies({"cache": {"scripts": ["start", "stop"]}})
        (declaration,) = config.get_dependencies()
        self.assertEqual(declaration.targets("stop"), ("stop",))
        self.assertEqual(declaration.targets("test"), ())

    def test_array_form(self) -> None:
        config = self._dependencies(["database", {"project": "cache", "scripts": {"start": "boot"}}])
        database, cache = config.get_dependencies()
        self.assertEqual(database.targets("start"), ())
        self.assertEqual(cache.project, "cache")
        self.assertEqual(cache.targets("start"), ("boot",))

    def test_unusable_entries_are_ignored(self) -> None:
        config = self._dependencies({"weird": 12, "cache": {"scripts": "start"}})
        self.assertEqual(config.get_dependencies(), [])

    def test_dependencies_of_the_wrong_shape_raise(self) -> None:
        with self.assertRaises(ConfigError):
            self._dependencies("database")


class DetectProjectTypeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_devrun_descriptor_wins(self) -> None:
        (self.root / "devrun.toml").write_text("")
        (self.root / "package.json").write_text("{}")
        self.assertEqual(detect_project_type(self.root), "devrun")

    def test_pyproject_needs_the_tool_table(self) -> None:
        (self.root / "pyproject.toml").write_text("[project]\nname = 'x'\n")
        self.assertEqual(detect_project_type(self.root), "none")
        (self.root / "pyproject.toml").write_text("[tool.devrun.scripts]\ntest = 'pytest'\n")
        self.assertEqual(detect_project_type(self.root), "pyproject")

    def test_composer_before_node(self) -> None:
        (self.root / "package.json").write_text("{}")
        self.assertEqual(detect_project_type(self.root), "node")
        (self.root / "composer.json").write_text("{}")
        self.assertEqual(detect_project_type(self.root), "composer")

    def test_nothing_detected(self) -> None:
        self.assertEqual(detect_project_type(self.root), "none")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
