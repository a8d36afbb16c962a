from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest

from core.config_loader import (
    collect_config_files,
    find_config_file,
    get_section,
    load_config_file,
    normalize_string_list,
)


class ConfigurationLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_supports_every_format(self) -> None:
        (self.root / "a.toml").write_text('[global]\nlog_level = "debug"\n')
        (self.root / "b.json").write_text('{"global": {"log_level": "error"}}')
        (self.root / "c.yaml").write_text(
            textwrap.dedent(
                """
                global:
                    log_level: none
                """
            ).strip()
        )

        self.assertEqual(load_config_file(self.root / "a.toml")["global"]["log_level"], "debug")
        self.assertEqual(load_config_file(self.root / "b.json")["global"]["log_level"], "error")
        self.assertEqual(load_config_file(self.root / "c.yaml")["global"]["log_level"], "none")

    def test_empty_yaml_is_an_empty_mapping(self) -> None:
        (self.root / "empty.yml").write_text("")
        self.assertEqual(load_config_file(self.root / "empty.yml"), {})

    def test_non_mapping_root_is_rejected(self) -> None:
        (self.root / "list.json").write_text("[1, 2]")
        with self.assertRaises(TypeError):
            load_config_file(self.root / "list.json")

    def test_unsupported_extension(self) -> None:
        (self.root / "config.ini").write_text("[global]\n")
        with self.assertRaises(ValueError):
            load_config_file(self.root / "config.ini")

    def test_conflicting_config_stems_raise(self) -> None:
        (self.root / "config.toml").write_text("[global]\n")
        (self.root / "config.json").write_text("{}")
        with self.assertRaises(ValueError):
            find_config_file(self.root, "config")

    def test_collect_filters_by_stem(self) -> None:
        (self.root / "config.toml").write_text("[global]\n")
        (self.root / "projects.json").write_text("{}")
        (self.root / "notes.txt").write_text("ignored")

        self.assertEqual(sorted(collect_config_files(self.root)), ["config", "projects"])
        self.assertEqual(find_config_file(self.root, "config"), self.root / "config.toml")
        self.assertIsNone(find_config_file(self.root, "devrun"))
        self.assertEqual(collect_config_files(self.root / "missing"), {})

    def test_get_section(self) -> None:
        data = {"tool": {"devrun": {"scripts": {"test": "pytest"}}, "other": 1}}
        self.assertEqual(get_section(data, "tool.devrun"), {"scripts": {"test": "pytest"}})
        self.assertEqual(get_section(data, "tool.other"), {})
        self.assertEqual(get_section(data, "tool.missing.deeper"), {})

    def test_normalize_string_list(self) -> None:
        self.assertEqual(normalize_string_list("acme, tools,,acme"), ["acme", "tools"])
        self.assertEqual(normalize_string_list(["acme", " beta "]), ["acme", "beta"])
        self.assertEqual(normalize_string_list(None), [])
        with self.assertRaises(TypeError):
            normalize_string_list(3, field_name="groups")
        with self.assertRaises(TypeError):
            normalize_string_list(["acme", 3])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
