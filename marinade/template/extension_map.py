"""
Registry of custom template engine entries.

Each call to `marinade.config.Config.add_extension` results in an
`ExtensionEntry` that is stored in the `ExtensionMap` of the configuration.
The `~marinade.template.custom.CustomEngine` adapts such an entry to the
`~marinade.template.TemplateEngine` interface.

An entry is built from a mapping (or from keyword arguments) with the
following options. Only ``key`` is required.

:``key``:
    Name of the engine (a ``str``). Lookups ignore case.

:``extension``:
    File extension (without the leading dot) of the input files that are
    handled by this engine. Defaults to the ``key``.

:``read``:
    Whether the contents of an input file are read and passed to ``compile``
    (a ``bool``, default ``True``).

:``init``:
    Callable that is called once, before the first data extraction or
    compilation, as ``init(config, benchmark)``. It may be a coroutine
    function.

:``get_data``:
    Either ``True`` (extract the ``data`` key from the instance), a list of
    keys to extract from the instance, or a callable that is called with the
    input path and returns the data directly.

:``get_instance_from_input_path``:
    Callable that is called with the input path and returns the instance from
    which data is extracted. It may be a coroutine function. This option is
    required when ``get_data`` is not a callable.

:``compile``:
    Callable that is called as ``compile(template_string, input_path,
    config)``. If it returns a callable, that callable is used as the render
    function. Otherwise, the returned value is used as the rendered output.

:``compile_options``:
    Mapping with the optional keys ``cache`` (a ``bool``), ``get_cache_key``
    (a callable that is called with the template string and the input path)
    and ``permalink`` (``False``, ``"raw"``, or any other value that is
    handed back by
    `~marinade.template.custom.CustomEngine.permalink_needs_compilation`).

:``output_file_extension``:
    File extension used for the output of this engine.

A value of ``None`` is treated like an option that is not specified. The
only exceptions are ``get_cache_key`` and ``permalink`` inside
``compile_options``: they count as specified whenever they are present, so
that an empty ``get_cache_key`` is reported instead of being ignored.
"""

import collections.abc
import dataclasses
import logging

from typing import Any, Callable, Iterator, Mapping, Optional, Tuple, Union

from marinade.template import ConfigurationError

# Logger used by this module.
logger = logging.getLogger(__name__)


class _Unset:
    """
    Marker for an option that has not been specified.
    """

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNSET"


#: Value of `CompileOptions` attributes that have not been specified.
UNSET = _Unset()


@dataclasses.dataclass(frozen=True)
class NoData:
    """
    The entry does not provide data for input files.
    """


@dataclasses.dataclass(frozen=True)
class DataCallback:
    """
    The entry provides data through a function of the input path.
    """

    function: Callable[[str], Any]


@dataclasses.dataclass(frozen=True)
class InstanceKeys:
    """
    The entry provides data through the listed keys of an instance.
    """

    keys: Tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class InvalidGetData:
    """
    The ``get_data`` option has a value that cannot be used.

    This is only reported when data is requested, so that entries that never
    handle a file do not break the configuration.
    """

    value: Any


GetDataPlan = Union[NoData, DataCallback, InstanceKeys, InvalidGetData]


def resolve_get_data(value: Any) -> GetDataPlan:
    """
    Turn the value of the ``get_data`` option into a `GetDataPlan`.
    """
    if value is None or value is UNSET:
        return NoData()
    if callable(value):
        return DataCallback(value)
    if value is True:
        return InstanceKeys(("data",))
    if isinstance(value, collections.abc.Iterable) and not isinstance(
        value, (bytes, str, collections.abc.Mapping)
    ):
        # dict.fromkeys removes duplicates, preserving the order.
        keys = tuple(dict.fromkeys(value))
        if keys:
            return InstanceKeys(keys)
    return InvalidGetData(value)


@dataclasses.dataclass(frozen=True)
class CompileOptions:
    """
    Options of an entry that affect compilation.
    """

    cache: Optional[bool] = None
    get_cache_key: Any = UNSET
    permalink: Any = UNSET

    @classmethod
    def from_mapping(
        cls, key: str, options: Optional[Mapping[str, Any]]
    ) -> "CompileOptions":
        """
        Create the compile options from a mapping.

        :param key:
            key of the entry, used in error messages.
        :param options:
            mapping with the options or ``None``.
        :return:
            compile options.
        """
        if options is None:
            return cls()
        if isinstance(options, CompileOptions):
            return options
        if not isinstance(options, collections.abc.Mapping):
            raise ConfigurationError(
                f"compile_options must be a mapping in add_extension for the "
                f"{key} type, not a {type(options).__name__}."
            )
        unknown = set(options) - {"cache", "get_cache_key", "permalink"}
        if unknown:
            raise ConfigurationError(
                f"Unknown compile_options {', '.join(sorted(unknown))} in "
                f"add_extension for the {key} type."
            )
        cache = options.get("cache", None)
        if cache is not None and not isinstance(cache, bool):
            raise ConfigurationError(
                f"compile_options.cache must be a bool in add_extension for "
                f"the {key} type."
            )
        # Unlike the other options, these are used as soon as they are
        # present, even if their value is None.
        return cls(
            cache=cache,
            get_cache_key=options.get("get_cache_key", UNSET),
            permalink=options.get("permalink", UNSET),
        )


@dataclasses.dataclass(frozen=True)
class ExtensionEntry:
    """
    Configuration of one custom template engine.

    Instances should be created through `from_mapping`, which validates the
    options. Please refer to the `module documentation
    <marinade.template.extension_map>` for the meaning of each option.
    """

    key: str
    extension: str
    read: bool = True
    init: Optional[Callable[..., Any]] = None
    get_data: GetDataPlan = NoData()
    get_instance_from_input_path: Optional[Callable[[str], Any]] = None
    compile: Optional[Callable[..., Any]] = None
    compile_options: CompileOptions = CompileOptions()
    output_file_extension: Optional[str] = None

    _OPTIONS = (
        "key",
        "extension",
        "read",
        "init",
        "get_data",
        "get_instance_from_input_path",
        "compile",
        "compile_options",
        "output_file_extension",
    )

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "ExtensionEntry":
        """
        Create an entry from a mapping of options.

        Raises a `~marinade.template.ConfigurationError` if the options are
        invalid.
        """
        key = options.get("key", None)
        if not isinstance(key, str) or not key:
            raise ConfigurationError(
                "Each extension needs a key (a non-empty str), but got "
                f"{key!r}."
            )
        unknown = set(options) - set(cls._OPTIONS)
        if unknown:
            raise ConfigurationError(
                f"Unknown options {', '.join(sorted(unknown))} in "
                f"add_extension for the {key} type."
            )
        for callback_name in (
            "init",
            "get_instance_from_input_path",
            "compile",
        ):
            callback = options.get(callback_name, None)
            if callback is not None and not callable(callback):
                raise ConfigurationError(
                    f"{callback_name} must be a function in add_extension for "
                    f"the {key} type."
                )
        extension = options.get("extension", None) or key
        read = options.get("read", None)
        return cls(
            key=key,
            extension=extension.lstrip("."),
            read=True if read is None else bool(read),
            init=options.get("init", None),
            get_data=resolve_get_data(options.get("get_data", None)),
            get_instance_from_input_path=options.get(
                "get_instance_from_input_path", None
            ),
            compile=options.get("compile", None),
            compile_options=CompileOptions.from_mapping(
                key, options.get("compile_options", None)
            ),
            output_file_extension=options.get("output_file_extension", None),
        )


class ExtensionMap(collections.abc.Collection):
    """
    Ordered collection of `ExtensionEntry` objects, indexed by their key.

    Keys are compared ignoring case. Adding an entry with a key that is
    already registered replaces the old entry.
    """

    def __init__(self):
        self._entries: "dict[str, ExtensionEntry]" = {}

    def add(
        self, entry: Union[ExtensionEntry, Mapping[str, Any]]
    ) -> ExtensionEntry:
        """
        Add an entry to this map.

        :param entry:
            entry or mapping of options that is converted to an entry.
        :return:
            entry that has been added.
        """
        if not isinstance(entry, ExtensionEntry):
            entry = ExtensionEntry.from_mapping(entry)
        normalized_key = entry.key.lower()
        if normalized_key in self._entries:
            logger.warning(
                "Extension %r replaces an earlier extension with the same "
                "key.",
                entry.key,
            )
            # The replaced entry should not keep its position.
            del self._entries[normalized_key]
        self._entries[normalized_key] = entry
        return entry

    def find_by_extension(self, extension: str) -> Optional[ExtensionEntry]:
        """
        Return the entry handling the specified file extension or ``None``.

        If more than one entry handles the extension, the one that has been
        added last is returned.
        """
        extension = extension.lstrip(".").lower()
        for entry in reversed(list(self._entries.values())):
            if entry.extension.lower() == extension:
                return entry
        return None

    def get(
        self, name: str, default: Optional[ExtensionEntry] = None
    ) -> Optional[ExtensionEntry]:
        """
        Return the entry for ``name`` (ignoring case) or ``default``.
        """
        return self._entries.get(name.lower(), default)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def __getitem__(self, name: str) -> ExtensionEntry:
        return self._entries[name.lower()]

    def __iter__(self) -> Iterator[ExtensionEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
