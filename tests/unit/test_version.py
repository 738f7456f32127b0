"""
Tests for `marinade.version`.
"""

import unittest

from marinade.version import PRE_RELEASE, VERSION, VERSION_STRING


class TestVersion(unittest.TestCase):
    """
    Tests for the `marinade.version` module.
    """

    def test_version_string(self):
        """
        Test that the version string is built from the version tuple and the
        pre-release suffix.
        """
        self.assertTrue(VERSION_STRING.startswith("0.9.0"))
        self.assertEqual(
            ".".join(map(str, VERSION)) + PRE_RELEASE, VERSION_STRING
        )
        self.assertTrue(all(isinstance(part, int) for part in VERSION))
