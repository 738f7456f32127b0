"""
Tests for `marinade.template.extension_map`.
"""

import unittest

from marinade.template import ConfigurationError
from marinade.template.extension_map import (
    UNSET,
    CompileOptions,
    DataCallback,
    ExtensionEntry,
    ExtensionMap,
    InstanceKeys,
    InvalidGetData,
    NoData,
    resolve_get_data,
)


class TestResolveGetData(unittest.TestCase):
    """
    Tests for `resolve_get_data`.
    """

    def test_variants(self):
        """
        Test that each kind of value results in the right plan.
        """
        self.assertEqual(NoData(), resolve_get_data(None))
        self.assertEqual(NoData(), resolve_get_data(UNSET))
        self.assertEqual(InstanceKeys(("data",)), resolve_get_data(True))
        self.assertEqual(
            InstanceKeys(("a", "b")), resolve_get_data(["a", "b", "a"])
        )
        self.assertEqual(InstanceKeys(("a",)), resolve_get_data(("a",)))
        self.assertEqual(DataCallback(len), resolve_get_data(len))

    def test_invalid(self):
        """
        Test that unusable values are kept as `InvalidGetData`.
        """
        for value in (False, [], "data", {"a": 1}, 1):
            self.assertEqual(InvalidGetData(value), resolve_get_data(value))


class TestExtensionEntry(unittest.TestCase):
    """
    Tests for `ExtensionEntry`.
    """

    def test_defaults(self):
        """
        Test the defaults of an entry that only has a key.
        """
        entry = ExtensionEntry.from_mapping({"key": "txt"})
        self.assertEqual("txt", entry.key)
        self.assertEqual("txt", entry.extension)
        self.assertTrue(entry.read)
        self.assertIsNone(entry.init)
        self.assertEqual(NoData(), entry.get_data)
        self.assertIsNone(entry.compile)
        self.assertIsNone(entry.output_file_extension)
        self.assertEqual(CompileOptions(), entry.compile_options)
        self.assertIs(UNSET, entry.compile_options.permalink)
        self.assertIs(UNSET, entry.compile_options.get_cache_key)

    def test_extension(self):
        """
        Test that a leading dot is removed from the extension.
        """
        entry = ExtensionEntry.from_mapping(
            {"key": "py", "extension": ".page.py"}
        )
        self.assertEqual("page.py", entry.extension)

    def test_missing_key(self):
        """
        Test that a key is required.
        """
        for options in ({}, {"key": ""}, {"key": 1}):
            with self.assertRaises(ConfigurationError):
                ExtensionEntry.from_mapping(options)

    def test_unknown_option(self):
        """
        Test that misspelled options are reported.
        """
        with self.assertRaises(ConfigurationError) as context:
            ExtensionEntry.from_mapping({"key": "txt", "getData": True})
        self.assertIn("getData", str(context.exception))
        with self.assertRaises(ConfigurationError):
            ExtensionEntry.from_mapping(
                {"key": "txt", "compile_options": {"caching": True}}
            )

    def test_not_callable(self):
        """
        Test that function options are checked when registering.
        """
        for option in ("init", "get_instance_from_input_path", "compile"):
            with self.assertRaises(ConfigurationError) as context:
                ExtensionEntry.from_mapping({"key": "txt", option: "x"})
            self.assertIn(option, str(context.exception))

    def test_compile_options(self):
        """
        Test that the compile options are converted.
        """
        entry = ExtensionEntry.from_mapping(
            {
                "key": "txt",
                "compile_options": {"cache": True, "permalink": "raw"},
            }
        )
        self.assertEqual(
            CompileOptions(cache=True, permalink="raw"), entry.compile_options
        )
        with self.assertRaises(ConfigurationError):
            ExtensionEntry.from_mapping(
                {"key": "txt", "compile_options": {"cache": "yes"}}
            )
        with self.assertRaises(ConfigurationError):
            ExtensionEntry.from_mapping({"key": "txt", "compile_options": []})

    def test_compile_options_none(self):
        """
        Test that ``get_cache_key`` and ``permalink`` count as specified when
        they are ``None``.
        """
        entry = ExtensionEntry.from_mapping({"key": "txt"})
        self.assertIs(UNSET, entry.compile_options.get_cache_key)
        self.assertIs(UNSET, entry.compile_options.permalink)
        entry = ExtensionEntry.from_mapping(
            {
                "key": "txt",
                "compile_options": {
                    "cache": None,
                    "get_cache_key": None,
                    "permalink": None,
                },
            }
        )
        self.assertIsNone(entry.compile_options.cache)
        self.assertIsNone(entry.compile_options.get_cache_key)
        self.assertIsNone(entry.compile_options.permalink)


class TestExtensionMap(unittest.TestCase):
    """
    Tests for `ExtensionMap`.
    """

    def test_lookup(self):
        """
        Test that lookups ignore case.
        """
        extension_map = ExtensionMap()
        entry = extension_map.add({"key": "Txt"})
        self.assertIn("txt", extension_map)
        self.assertIn("TXT", extension_map)
        self.assertNotIn("md", extension_map)
        self.assertNotIn(None, extension_map)
        self.assertIs(entry, extension_map["tXt"])
        self.assertIs(entry, extension_map.get("txt"))
        self.assertIsNone(extension_map.get("md"))
        with self.assertRaises(KeyError):
            extension_map["md"]  # pylint: disable=pointless-statement
        self.assertEqual(1, len(extension_map))

    def test_replace(self):
        """
        Test that adding an entry with an existing key replaces the old one
        and moves it to the end.
        """
        extension_map = ExtensionMap()
        extension_map.add({"key": "txt"})
        extension_map.add({"key": "md"})
        with self.assertLogs(
            "marinade.template.extension_map", level="WARNING"
        ):
            entry = extension_map.add({"key": "TXT", "read": False})
        self.assertIs(entry, extension_map["txt"])
        self.assertEqual(["md", "TXT"], [e.key for e in extension_map])

    def test_find_by_extension(self):
        """
        Test that entries can be found by their file extension.
        """
        extension_map = ExtensionMap()
        txt_entry = extension_map.add({"key": "txt"})
        extension_map.add({"key": "py", "extension": "page.py"})
        py_entry = extension_map.add({"key": "py2", "extension": "page.py"})
        self.assertIs(txt_entry, extension_map.find_by_extension(".TXT"))
        self.assertIs(py_entry, extension_map.find_by_extension("page.py"))
        self.assertIsNone(extension_map.find_by_extension("md"))
