"""
Template engines defined through the configuration.

The `CustomEngine` provided by this module adapts an
`~marinade.template.extension_map.ExtensionEntry` to the
`~marinade.template.TemplateEngine` interface. Such an entry is registered by
calling `~marinade.config.Config.add_extension` or through the ``extensions``
list of the configuration file.

The preferred way of creating an instance of this engine is by calling
`~marinade.template.get_template_engine` with the key of the entry as the name,
not by creating an instance of `CustomEngine` directly.

Initialization
--------------

If the entry specifies an ``init`` function, that function is called before
the first call to `~CustomEngine.get_extra_data_from_file` or
`~CustomEngine.compile` finishes. It is called as ``init(config, benchmark)``,
where ``benchmark`` is the ``Aggregate`` `~marinade.benchmark.BenchmarkGroup`.
It is called at most once, even when several coroutines need the engine at the
same time. If it raises an exception, the engine stays unusable and every
later call raises the same exception.

Default renderer
----------------

The code driving the rendering process can set a default engine by calling
`~CustomEngine.set_default_engine`. If the entry does not specify a
``compile`` function, templates are compiled by the default engine instead.
If it does and that function returns a render function, the render function
can still delegate to the default engine: if it accepts a keyword argument
called ``default_renderer``, the default renderer (or ``None`` if there is no
default engine) is passed in that argument.
"""

import asyncio
import collections.abc
import inspect
import logging

from typing import Any, Callable, Mapping, Optional

from marinade.template import ConfigurationError, TemplateEngine
from marinade.template.extension_map import (
    UNSET,
    DataCallback,
    ExtensionEntry,
    InstanceKeys,
    NoData,
)
from marinade.utils.instance_data import get_instance_data

# Logger used by this module.
logger = logging.getLogger(__name__)


def _accepts_default_renderer(function: Callable) -> bool:
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        # Some built-in callables do not provide a signature. They certainly do
        # not know about the default renderer.
        return False
    for parameter in signature.parameters.values():
        if parameter.kind == inspect.Parameter.VAR_KEYWORD:
            return True
        if parameter.name == "default_renderer" and parameter.kind in (
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            inspect.Parameter.KEYWORD_ONLY,
        ):
            return True
    return False


class CustomRenderFunction:
    """
    Render function returned by `CustomEngine.compile`.

    It wraps the function returned by the entry's ``compile`` function and
    makes the default renderer available to it.
    """

    def __init__(
        self,
        function: Callable[..., Any],
        default_renderer: Optional[Callable[[Mapping[str, Any]], Any]],
    ):
        self.function = function
        #: Coroutine function rendering through the default engine or ``None``.
        self.default_renderer = default_renderer
        self._pass_default_renderer = _accepts_default_renderer(function)

    async def __call__(self, data: Mapping[str, Any]) -> Any:
        if self._pass_default_renderer:
            result = self.function(
                data, default_renderer=self.default_renderer
            )
        else:
            result = self.function(data)
        if inspect.isawaitable(result):
            result = await result
        return result


class CustomEngine(TemplateEngine):
    """
    Template engine forwarding to the functions of an extension entry.

    For information about the options of an entry, please refer to the
    documentation of `marinade.template.extension_map`.
    """

    def __init__(self, name, dirs, config):
        """
        Create the engine for the extension entry with the key ``name``.

        Raises a `~marinade.template.ConfigurationError` if the configuration
        does not have such an entry.
        """
        super().__init__(name, dirs, config)
        self.entry = self._get_extension_map_entry()
        self._needs_init = self.entry.init is not None
        self._initing: Optional[asyncio.Future] = None
        self._default_engine: Optional[TemplateEngine] = None
        self._bench = config.benchmark_manager.get("Aggregate")
        if self.entry.compile_options.cache is not None:
            self.cacheable = self.entry.compile_options.cache

    def _get_extension_map_entry(self) -> ExtensionEntry:
        entry = self.config.extension_map.get(self.name)
        if entry is None:
            raise ConfigurationError(
                f"Could not find a custom extension for {self.name}. Did you "
                "add it to your config file?"
            )
        return entry

    @property
    def default_template_file_extension(self) -> Optional[str]:
        return self.entry.output_file_extension

    @property
    def needs_init(self) -> bool:
        """``True`` until the ``init`` function has finished successfully."""
        return self._needs_init

    def set_default_engine(self, default_engine: TemplateEngine) -> None:
        """
        Set the engine that is used when the entry does not specify a
        ``compile`` function.
        """
        self._default_engine = default_engine

    def needs_to_read_file_contents(self) -> bool:
        return self.entry.read

    async def _call_init(self) -> None:
        logger.debug("Initializing template engine %s.", self.name)
        result = self.entry.init(self.config, self._bench)
        if inspect.isawaitable(result):
            await result

    async def _running_init(self) -> None:
        # If we are called from several places, all of them wait for the first
        # initialization to finish before continuing.
        if not self._needs_init:
            return
        init_bench = self._bench.get(f"Engine ({self.name}) Init")
        init_bench.before()
        try:
            if self._initing is None:
                self._initing = asyncio.ensure_future(self._call_init())
            # A caller that is cancelled must not cancel the shared
            # initialization.
            await asyncio.shield(self._initing)
            self._needs_init = False
        finally:
            init_bench.after()

    async def get_extra_data_from_file(
        self, input_path: str
    ) -> Optional[Mapping[str, Any]]:
        """
        Return the data that the entry provides for the input file.

        Returns ``None`` if the entry does not specify ``get_data``.
        """
        await self._running_init()
        plan = self.entry.get_data
        if isinstance(plan, NoData):
            return None
        data_bench = self._bench.get(
            f"Engine ({self.name}) Get Data From File"
        )
        data_bench.before()
        try:
            if isinstance(plan, DataCallback):
                data = plan.function(input_path)
                if inspect.isawaitable(data):
                    data = await data
                return data
            return await self._get_data_from_instance(input_path)
        finally:
            data_bench.after()

    async def _get_data_from_instance(self, input_path: str) -> Any:
        get_instance = self.entry.get_instance_from_input_path
        if get_instance is None:
            raise ConfigurationError(
                "get_instance_from_input_path callback missing from "
                f"{self.name} template engine plugin."
            )
        plan = self.entry.get_data
        if not isinstance(plan, InstanceKeys):
            raise ConfigurationError(
                "get_data must be an array of keys or `true` in your "
                f"add_extension configuration for the {self.name} template "
                f"engine, not {plan.value!r}."
            )
        keys = plan.keys
        # The helpers are copied so that a data function that modifies them
        # does not affect the configuration (and the other templates).
        mixins = dict(self.config.global_functions)
        instance = get_instance(input_path)
        if inspect.isawaitable(instance):
            instance = await instance
        # An instance can override the keys from the entry.
        if isinstance(instance, collections.abc.Mapping):
            data_key = instance.get("marinade_data_key", None)
        else:
            data_key = getattr(instance, "marinade_data_key", None)
        if data_key is not None and data_key != "":
            if isinstance(data_key, str):
                keys = (data_key,)
            else:
                keys = tuple(dict.fromkeys(data_key))
        results = await asyncio.gather(
            *(
                get_instance_data(
                    instance,
                    input_path,
                    key,
                    mixins=mixins,
                    is_object_required=(key == "data"),
                )
                for key in keys
            )
        )
        data = {}
        for key, result in zip(keys, results):
            if isinstance(result, collections.abc.Mapping):
                data.update(result)
            elif result is not None:
                logger.debug(
                    "Ignoring %s returned for key %r of %s, because it is not "
                    "a mapping.",
                    type(result).__name__,
                    key,
                    input_path,
                )
        return data

    def _make_default_renderer(self, template_string, input_path, args):
        default_engine = self._default_engine
        if default_engine is None:
            return None

        async def default_renderer(data):
            render = await default_engine.compile(
                template_string, input_path, *args
            )
            return await render(data)

        return default_renderer

    async def compile(self, template_string, input_path, *args):
        """
        Compile the template with the entry's ``compile`` function.

        Falls back to the default engine if the entry does not specify a
        ``compile`` function. Returns ``None`` if there is neither. If the
        ``compile`` function does not return a callable, its return value is
        returned as-is (it is the rendered output).
        """
        await self._running_init()
        default_renderer = self._make_default_renderer(
            template_string, input_path, args
        )
        if self.entry.compile is None:
            return default_renderer
        compiled = self.entry.compile(template_string, input_path, self.config)
        if inspect.isawaitable(compiled):
            compiled = await compiled
        if callable(compiled):
            return CustomRenderFunction(compiled, default_renderer)
        return compiled

    def get_compile_cache_key(self, template_string, input_path):
        get_cache_key = self.entry.compile_options.get_cache_key
        if get_cache_key is UNSET:
            return super().get_compile_cache_key(template_string, input_path)
        if not callable(get_cache_key):
            raise ConfigurationError(
                "`compile_options.get_cache_key` must be a function in "
                f"add_extension for the {self.name} type"
            )
        return get_cache_key(template_string, input_path)

    def permalink_needs_compilation(self, template_string):
        permalink = self.entry.compile_options.permalink
        if permalink is UNSET:
            return True
        if permalink is False or permalink == "raw":
            return False
        return permalink
