"""
Tests for `marinade.config`.
"""

import os.path
import pathlib
import unittest

from tempfile import TemporaryDirectory

from marinade.benchmark import BenchmarkManager, bench
from marinade.config import (
    Config,
    config_from_mapping,
    read_config,
    resolve_function,
)
from marinade.template import ConfigurationError
from marinade.template.extension_map import DataCallback, InstanceKeys


class TestConfig(unittest.TestCase):
    """
    Tests for `Config`.
    """

    def test_defaults(self):
        """
        Test the state of an empty configuration.
        """
        config = Config()
        self.assertEqual(0, len(config.extension_map))
        self.assertEqual({}, config.global_functions)
        self.assertEqual({}, config.dirs)
        self.assertIs(bench, config.benchmark_manager)

    def test_add_extension(self):
        """
        Test that extensions are added to the extension map.
        """
        config = Config()
        entry = config.add_extension("txt", get_data=True)
        self.assertIs(entry, config.extension_map["TXT"])
        self.assertEqual(InstanceKeys(("data",)), entry.get_data)

    def test_add_global_function(self):
        """
        Test that only callables can be added as global functions.
        """
        config = Config()
        config.add_global_function("upper", str.upper)
        self.assertEqual({"upper": str.upper}, config.global_functions)
        with self.assertRaises(TypeError):
            config.add_global_function("value", 1)


class TestResolveFunction(unittest.TestCase):
    """
    Tests for `resolve_function`.
    """

    def test_resolve(self):
        """
        Test that functions are resolved by their qualified name.
        """
        self.assertIs(os.path.basename, resolve_function("os.path.basename"))

    def test_errors(self):
        """
        Test the errors raised for names that cannot be resolved.
        """
        with self.assertRaises(ValueError):
            resolve_function("basename")
        with self.assertRaises(ModuleNotFoundError):
            resolve_function("marinade.does_not_exist.function")
        with self.assertRaises(AttributeError):
            resolve_function("os.path.does_not_exist")
        with self.assertRaises(TypeError):
            resolve_function("os.sep")
        with self.assertRaises(TypeError):
            resolve_function(1)


class TestConfigFromMapping(unittest.TestCase):
    """
    Tests for `config_from_mapping` and `read_config`.
    """

    def test_config_from_mapping(self):
        """
        Test that functions given by name are resolved.
        """
        manager = BenchmarkManager()
        config = config_from_mapping(
            {
                "dirs": {"input": "site"},
                "global_functions": {"basename": "os.path.basename"},
                "extensions": [
                    {
                        "key": "txt",
                        "get_data": "os.path.basename",
                        "compile": "os.path.join",
                        "compile_options": {
                            "get_cache_key": "os.path.join",
                            "permalink": "raw",
                        },
                    },
                    {"key": "md", "get_data": ["a", "b"]},
                ],
            },
            benchmark_manager=manager,
        )
        self.assertIs(manager, config.benchmark_manager)
        self.assertEqual({"input": "site"}, config.dirs)
        self.assertEqual(
            {"basename": os.path.basename}, config.global_functions
        )
        entry = config.extension_map["txt"]
        self.assertEqual(DataCallback(os.path.basename), entry.get_data)
        self.assertIs(os.path.join, entry.compile)
        self.assertIs(os.path.join, entry.compile_options.get_cache_key)
        self.assertEqual("raw", entry.compile_options.permalink)
        self.assertEqual(
            InstanceKeys(("a", "b")), config.extension_map["md"].get_data
        )

    def test_invalid(self):
        """
        Test that configurations with the wrong structure are rejected.
        """
        for mapping in (
            {"dirs": ["site"]},
            {"global_functions": ["os.path.basename"]},
            {"extensions": {"key": "txt"}},
            {"extensions": ["txt"]},
            {"extensions": [{"get_data": True}]},
        ):
            with self.assertRaises(ConfigurationError):
                config_from_mapping(mapping)

    def test_read_config(self):
        """
        Test that the configuration is read from a YAML file.
        """
        with TemporaryDirectory() as tmpdir:
            config_file = pathlib.Path(tmpdir) / "marinade.yaml"
            config_file.write_text(
                """
logging_level: DEBUG
extensions:
  - key: txt
    read: false
    output_file_extension: css
""",
                encoding="utf-8",
            )
            config = read_config(str(config_file))
            self.assertEqual("DEBUG", config.options["logging_level"])
            entry = config.extension_map["txt"]
            self.assertFalse(entry.read)
            self.assertEqual("css", entry.output_file_extension)
            config_file.write_text("", encoding="utf-8")
            config = read_config(str(config_file))
            self.assertEqual(0, len(config.extension_map))
            config_file.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaises(ConfigurationError):
                read_config(str(config_file))
