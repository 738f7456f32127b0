"""
Tests for `marinade.utils.instance_data`.
"""

import unittest

from marinade.utils.instance_data import (
    InvalidDataFormatError,
    get_instance_data,
)


class TestGetInstanceData(unittest.IsolatedAsyncioTestCase):
    """
    Tests for `get_instance_data`.
    """

    async def test_missing(self):
        """
        Test that ``None`` is returned if there is no data for the key.
        """
        self.assertIsNone(await get_instance_data(None, "a.py"))
        self.assertIsNone(await get_instance_data(object(), "a.py"))
        self.assertIsNone(await get_instance_data({}, "a.py", "other"))

    async def test_attribute(self):
        """
        Test that attributes and mapping items are used as data.
        """

        class Instance:
            """
            Instance with a data attribute.
            """

            data = {"a": 1}

        self.assertEqual({"a": 1}, await get_instance_data(Instance(), "a.py"))
        self.assertEqual(
            {"b": 2}, await get_instance_data({"data": {"b": 2}}, "a.py")
        )

    async def test_callable(self):
        """
        Test that callables are called with the mixins.
        """
        calls = []

        def data(mixins):
            calls.append(mixins)
            return {"a": mixins["one"]()}

        mixins = {"one": lambda: 1}
        self.assertEqual(
            {"a": 1},
            await get_instance_data({"data": data}, "a.py", mixins=mixins),
        )
        self.assertEqual(mixins, calls[0])
        self.assertIsNot(mixins, calls[0])

        def data_without_mixins(mixins):
            calls.append(mixins)
            return {"count": len(mixins)}

        # Without mixins, the callable gets an empty mapping.
        self.assertEqual(
            {"count": 0},
            await get_instance_data({"data": data_without_mixins}, "a.py"),
        )
        self.assertEqual({}, calls[1])

    async def test_coroutine_function(self):
        """
        Test that the result of a coroutine function is awaited.
        """

        class Instance:
            """
            Instance with an asynchronous data method.
            """

            async def data(self, mixins):
                return {"a": 1}

        self.assertEqual({"a": 1}, await get_instance_data(Instance(), "a.py"))

    async def test_object_required(self):
        """
        Test that a mapping is only required if requested.
        """
        instance = {"data": "text", "other": "text"}
        with self.assertRaises(InvalidDataFormatError) as context:
            await get_instance_data(instance, "a.py")
        self.assertIn("a.py", str(context.exception))
        self.assertIsInstance(context.exception, TypeError)
        self.assertEqual(
            "text",
            await get_instance_data(
                instance, "a.py", "other", is_object_required=False
            ),
        )
