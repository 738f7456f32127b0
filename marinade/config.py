"""
Configuration of a site.

A `Config` object can be built programmatically::

    config = Config()
    config.add_global_function("upper", str.upper)
    config.add_extension(
        "txt", compile=lambda template_string, input_path, config: ...)

or read from a YAML file by calling `read_config`. The configuration file has
the following keys (all of them are optional):

:``dirs``:
    Dictionary with the template directories. The keys ``input``,
    ``includes`` and ``layouts`` are recognized.

:``extensions``:
    List of custom template engines. Each item in the list must be a
    dictionary with the options described in
    `marinade.template.extension_map`. Options that expect a function
    (``init``, ``get_data``, ``get_instance_from_input_path``, ``compile``
    and ``compile_options.get_cache_key``) are given as the fully qualified
    name of a Python function (``module.function``).

:``global_functions``:
    Dictionary mapping names to fully qualified names of Python functions.
    These functions are made available to templates and to the data functions
    of custom template engines.

:``logging_config_file`` and ``logging_level``:
    Used by `marinade.cli.render`.

Example::

    dirs:
      input: site
      includes: site/_includes
    global_functions:
      slugify: my_site.filters.slugify
    extensions:
      - key: py
        get_data: true
        get_instance_from_input_path: my_site.engine.load_module
        compile: my_site.engine.compile
        compile_options:
          permalink: raw
"""

import collections.abc
import importlib
import typing

import yaml

from marinade.benchmark import BenchmarkManager, bench
from marinade.template import ConfigurationError
from marinade.template.extension_map import ExtensionEntry, ExtensionMap

_FUNCTION_OPTIONS = (
    "init",
    "get_instance_from_input_path",
    "compile",
)


class Config:
    """
    Configuration shared by all template engines of a site.

    The extension map and the global functions are treated as read-only by the
    template engines. Functions added later are visible to engines created
    earlier, but data functions only ever see a copy.
    """

    def __init__(
        self,
        dirs: typing.Optional[typing.Mapping[str, str]] = None,
        options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        benchmark_manager: typing.Optional[BenchmarkManager] = None,
    ):
        """
        Create an empty configuration.

        :param dirs:
            template directories.
        :param options:
            other options, typically the raw content of the configuration
            file. They are available through the ``options`` attribute.
        :param benchmark_manager:
            manager for the benchmarks recorded by template engines. If
            ``None``, the default manager from `marinade.benchmark` is used.
        """
        self.dirs: typing.Dict[str, str] = dict(dirs or {})
        self.options: typing.Mapping[str, typing.Any] = dict(options or {})
        self.extension_map = ExtensionMap()
        self.global_functions: typing.Dict[str, typing.Callable] = {}
        self.benchmark_manager = (
            bench if benchmark_manager is None else benchmark_manager
        )

    def add_extension(self, key: str, **options: typing.Any) -> ExtensionEntry:
        """
        Register a custom template engine.

        :param key:
            name of the template engine.
        :param options:
            options of the engine. Please refer to
            `marinade.template.extension_map` for a description.
        :return:
            entry that has been registered.
        """
        return self.extension_map.add(
            ExtensionEntry.from_mapping(dict(options, key=key))
        )

    def add_global_function(
        self, name: str, function: typing.Callable
    ) -> None:
        """
        Make a function available to templates and data functions.
        """
        if not callable(function):
            raise TypeError(
                f"Global function {name!r} must be callable, not a "
                f"{type(function).__name__}."
            )
        self.global_functions[name] = function


def resolve_function(name: str) -> typing.Callable:
    """
    Return a function by its fully qualified name.

    If the module cannot be found, a ``ModuleNotFoundError`` is raised. If the
    module is found, but the function does not exist, an ``AttributeError`` is
    raised. If an object by the specified name exists, but it is not a
    ``Callable``, a ``TypeError`` is raised.

    :param name:
        name in the form ``module_name.function_name``.
    :return:
        function for the specified name.
    """
    if not isinstance(name, str):
        raise TypeError(
            f"Function name is a {type(name).__name__} not a str: {name!r}"
        )
    module_name, _, function_name = name.rpartition(".")
    if not module_name:
        raise ValueError(f"Missing module name in function name: {name}")
    function_module = importlib.import_module(module_name)
    function = getattr(function_module, function_name)
    if not callable(function):
        raise TypeError(f"'{type(function).__name__}' object is not callable")
    return function


def _resolve_extension_options(
    options: typing.Mapping[str, typing.Any]
) -> typing.Dict[str, typing.Any]:
    if not isinstance(options, collections.abc.Mapping):
        raise ConfigurationError(
            "Each item in extensions must be a dictionary, but got "
            f"{options!r}."
        )
    resolved = dict(options)
    for option in _FUNCTION_OPTIONS:
        if isinstance(resolved.get(option, None), str):
            resolved[option] = resolve_function(resolved[option])
    # get_data may also be true or a list of keys, so only a str is a name.
    if isinstance(resolved.get("get_data", None), str):
        resolved["get_data"] = resolve_function(resolved["get_data"])
    compile_options = resolved.get("compile_options", None)
    if isinstance(compile_options, collections.abc.Mapping) and isinstance(
        compile_options.get("get_cache_key", None), str
    ):
        compile_options = dict(compile_options)
        compile_options["get_cache_key"] = resolve_function(
            compile_options["get_cache_key"]
        )
        resolved["compile_options"] = compile_options
    return resolved


def config_from_mapping(
    mapping: typing.Mapping[str, typing.Any],
    benchmark_manager: typing.Optional[BenchmarkManager] = None,
) -> Config:
    """
    Create a configuration from a mapping, typically the parsed content of a
    YAML file.

    :param mapping:
        configuration data. Please refer to the
        `module documentation <marinade.config>` for the supported keys.
    :param benchmark_manager:
        passed on to `Config`.
    :return:
        configuration.
    """
    dirs = mapping.get("dirs", None) or {}
    if not isinstance(dirs, collections.abc.Mapping):
        raise ConfigurationError(
            f"dirs must be a dictionary, not a {type(dirs).__name__}."
        )
    config = Config(
        dirs=dirs, options=mapping, benchmark_manager=benchmark_manager
    )
    global_functions = mapping.get("global_functions", None) or {}
    if not isinstance(global_functions, collections.abc.Mapping):
        raise ConfigurationError(
            "global_functions must be a dictionary, not a "
            f"{type(global_functions).__name__}."
        )
    for name, function in global_functions.items():
        if isinstance(function, str):
            function = resolve_function(function)
        config.add_global_function(name, function)
    extensions = mapping.get("extensions", None) or []
    if not isinstance(extensions, collections.abc.Sequence) or isinstance(
        extensions, str
    ):
        raise ConfigurationError(
            f"extensions must be a list, not a {type(extensions).__name__}."
        )
    for options in extensions:
        config.extension_map.add(
            ExtensionEntry.from_mapping(_resolve_extension_options(options))
        )
    return config


def read_config(
    config_file: str,
    benchmark_manager: typing.Optional[BenchmarkManager] = None,
) -> Config:
    """
    Read the configuration from a YAML file.

    If the configuration file cannot be read (because it does not exist,
    permissions are insufficient, or it is not a valid YAML file), an exception
    is raised.

    :param config_file:
        path to the configuration file.
    :param benchmark_manager:
        passed on to `Config`.
    :return:
        configuration read from the file.
    """
    with open(config_file, mode="r", encoding="utf-8") as file:
        mapping = yaml.safe_load(file)
    if mapping is None:
        mapping = {}
    if not isinstance(mapping, collections.abc.Mapping):
        raise ConfigurationError(
            f"The configuration file {config_file} must contain a dictionary."
        )
    return config_from_mapping(mapping, benchmark_manager=benchmark_manager)
