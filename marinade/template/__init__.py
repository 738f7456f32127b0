"""
Template engines for various template languages.

Template engines compile template strings into render functions, which then
turn the data collected for a page into the page's output. They are the
primary way of generating output files from input files.

The `marinade.template.jinja` module provides a template engine using the
powerful Jinja 2 library. An instance of that engine can be retrieved by
calling `get_template_engine` with ``name`` set to ``jinja``.

The `marinade.template.custom` module provides an engine that adapts an entry
registered through `marinade.config.Config.add_extension`. Such engines are
retrieved through `get_template_engine` as well, using the key of the entry
as the name.

All built-in template engine modules have in common that they must specify a
`get_instance` function that takes the engine name, the template directories
and the `~marinade.config.Config` as its parameters. This function must return
an instance of `TemplateEngine`.

Compiling and rendering are coroutines, so that engines that have to wait for
user code can be used from an asyncio event loop.
"""

import abc
import importlib

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional

from marinade.utils.version import aggregate_version

if TYPE_CHECKING:
    from marinade.config import Config

#: Type of the render functions returned by `TemplateEngine.compile`.
RenderFunction = Callable[[Mapping[str, Any]], Awaitable[str]]


class ConfigurationError(ValueError):
    """
    Error raised when a template engine has not been configured correctly.

    The message always names the engine or extension that is affected.
    """


class TemplateEngine(abc.ABC):
    """
    Compiler for template strings.

    Each template engine has to implement the `compile` method. This method
    compiles a template string and returns a render function. The render
    function is a coroutine function that takes the data for the page as its
    only argument and returns the rendered output.

    The other methods are hooks that are used by the code driving the
    rendering process. Their default implementations are suitable for most
    engines.
    """

    #: Whether compiled templates may be reused for identical cache keys.
    cacheable = False

    def __init__(
        self, name: str, dirs: Mapping[str, str], config: "Config"
    ):
        """
        Initialize the template engine.

        :param name:
            name under which this engine has been requested.
        :param dirs:
            template directories. The keys ``input``, ``includes`` and
            ``layouts`` are recognized, but all of them are optional.
        :param config:
            configuration of the site that is being generated.
        """
        self.name = name
        self.dirs = dirs
        self.config = config

    @abc.abstractmethod
    async def compile(
        self, template_string: str, input_path: str, *args: Any
    ) -> Optional[RenderFunction]:
        """
        Compile the template and return a render function.

        :param template_string:
            contents of the template. This is an empty string if
            `needs_to_read_file_contents` returned ``False``.
        :param input_path:
            path of the template file.
        :return:
            render function for the template.
        """
        raise NotImplementedError

    @property
    def default_template_file_extension(self) -> Optional[str]:
        """
        File extension that is used for the output of this engine.
        """
        return "html"

    async def get_extra_data_from_file(
        self, input_path: str
    ) -> Optional[Mapping[str, Any]]:
        """
        Return data that is embedded in the template file itself.

        The default implementation returns ``None``.
        """
        return None

    def get_compile_cache_key(self, template_string: str, input_path: str):
        """
        Return the key under which the compiled template may be cached.

        The default key is derived from the input path and the template string,
        so that two files with the same content do not share a key.
        """
        return aggregate_version([input_path, template_string])

    def needs_to_read_file_contents(self) -> bool:
        """
        Tell whether the contents of the template file should be read and
        passed to `compile`.
        """
        return True

    def permalink_needs_compilation(self, template_string: str) -> Any:
        """
        Tell whether a permalink value has to be compiled with this engine.
        """
        return True


def get_template_engine(
    name: str, dirs: Mapping[str, str], config: "Config"
) -> TemplateEngine:
    """
    Create an instance of the template engine with the specified name.

    If the configuration has an extension entry with a key matching ``name``
    (ignoring case), a `~marinade.template.custom.CustomEngine` is created for
    that entry. Otherwise, the name is resolved to a module.

    :param name:
        name of the template engine. If it does not name a custom extension and
        contains a dot, it is treated as an absolute module name. Otherwise it
        is treated as a name of one of the modules inside the
        `marinade.template` module.
    :param dirs:
        template directories passed on to the engine.
    :param config:
        configuration of the site that is being generated.
    :return:
        newly created template engine.
    """
    if name in config.extension_map:
        # pylint: disable=import-outside-toplevel
        from marinade.template.custom import CustomEngine

        return CustomEngine(name, dirs, config)
    return get_builtin_template_engine(name, dirs, config)


def get_builtin_template_engine(
    name: str, dirs: Mapping[str, str], config: "Config"
) -> TemplateEngine:
    """
    Create an instance of the template engine implemented by a module.

    Unlike `get_template_engine`, this function ignores custom extensions.
    Raises a `ConfigurationError` if the module does not exist.
    """
    module_name = name if "." in name else f"{__name__}.{name}"
    try:
        template_engine_module = importlib.import_module(module_name)
    except ModuleNotFoundError as err:
        if err.name != module_name:
            raise
        raise ConfigurationError(
            f"Unknown template engine {name!r}. Did you add it to your "
            "config file?"
        ) from err
    # Some modules in this package (e.g. custom) are not engine modules.
    if not hasattr(template_engine_module, "get_instance"):
        raise ConfigurationError(
            f"Module {module_name} does not provide a template engine."
        )
    return template_engine_module.get_instance(name, dirs, config)

