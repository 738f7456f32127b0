"""
Extraction of data from template instances.

Custom template engines that use ``get_data`` with a list of keys (or
``True``) create an instance for each input file. Each of the requested keys
is then looked up on that instance by `get_instance_data`.
"""

import collections.abc
import inspect
import typing


class InvalidDataFormatError(TypeError):
    """
    Error raised when an instance provides data that is not a mapping, even
    though a mapping is required.
    """


_MISSING = object()


def _lookup(instance: typing.Any, key: str) -> typing.Any:
    if isinstance(instance, collections.abc.Mapping):
        return instance.get(key, _MISSING)
    return getattr(instance, key, _MISSING)


async def get_instance_data(
    instance: typing.Any,
    input_path: str,
    key: str = "data",
    mixins: typing.Optional[typing.Mapping[str, typing.Callable]] = None,
    is_object_required: bool = True,
) -> typing.Any:
    """
    Return the data that ``instance`` provides for ``key``.

    The value is looked up as an attribute of the instance (or as an item, if
    the instance is a mapping). If it is callable, it is called with the
    ``mixins`` mapping as its only argument and the return value is used. If
    that return value is awaitable, it is awaited.

    :param instance:
        object from which the data is extracted. May be ``None``.
    :param input_path:
        path of the input file for which the instance has been created. It is
        only used in error messages.
    :param key:
        name of the attribute that provides the data.
    :param mixins:
        helper functions passed to the callable providing the data.
    :param is_object_required:
        if ``True``, the data must be a mapping. Otherwise, an
        `InvalidDataFormatError` is raised.
    :return:
        data provided by the instance or ``None`` if the instance does not
        provide anything for ``key``.
    """
    if instance is None:
        return None
    value = _lookup(instance, key)
    if value is _MISSING:
        return None
    if callable(value):
        value = value(dict(mixins) if mixins else {})
        if inspect.isawaitable(value):
            value = await value
    elif inspect.isawaitable(value):
        value = await value
    if (
        is_object_required
        and value is not None
        and not isinstance(value, collections.abc.Mapping)
    ):
        raise InvalidDataFormatError(
            f"Invalid data format returned from {input_path}: "
            f"{type(value).__name__} (key {key!r})"
        )
    return value
