"""
Management of the template engines used while generating a site.

The `TemplateEngineManager` creates each template engine once and wires custom
engines to the built-in engine of the same name, so that custom engines that
do not specify a ``compile`` function (or that want to delegate to the
built-in engine) have a default renderer.

It also implements the sequence of calls that renders a single input file
(`~TemplateEngineManager.render_file`).
"""

import logging
import os.path

from typing import Any, Dict, Mapping, Optional

from marinade.config import Config
from marinade.template import (
    ConfigurationError,
    TemplateEngine,
    get_builtin_template_engine,
    get_template_engine,
)

# Logger used by this module.
logger = logging.getLogger(__name__)

#: File extensions handled by the built-in engines, mapped to engine names.
BUILTIN_EXTENSIONS = {
    "j2": "jinja",
    "jinja": "jinja",
    "jinja2": "jinja",
}


class TemplateEngineManager:
    """
    Factory and cache for the template engines of a site.

    Engines are not thread safe, so a manager should only be used from a
    single event loop.
    """

    def __init__(self, config: Config):
        self.config = config
        self._engines: Dict[str, TemplateEngine] = {}

    def get_engine(self, name: str) -> TemplateEngine:
        """
        Return the engine with the specified name, creating it on first use.

        If a custom engine has the same name as a built-in engine, the built-in
        engine becomes its default engine.

        Raises a `~marinade.template.ConfigurationError` if there is no engine
        with that name.
        """
        normalized_name = name.lower()
        try:
            return self._engines[normalized_name]
        except KeyError:
            pass
        engine = get_template_engine(name, self.config.dirs, self.config)
        if name in self.config.extension_map:
            default_engine = self._get_builtin_engine(normalized_name)
            if default_engine is not None:
                logger.debug(
                    "Using %s as the default engine for custom engine %s.",
                    type(default_engine).__name__,
                    name,
                )
                engine.set_default_engine(default_engine)
        self._engines[normalized_name] = engine
        return engine

    def _get_builtin_engine(self, name: str) -> Optional[TemplateEngine]:
        if name not in BUILTIN_EXTENSIONS.values():
            return None
        return get_builtin_template_engine(
            name, self.config.dirs, self.config
        )

    def get_engine_name_for_path(self, input_path: str) -> str:
        """
        Return the name of the engine handling the input file.

        Custom engines take precedence over built-in engines.
        """
        extension = os.path.splitext(input_path)[1].lstrip(".")
        entry = self.config.extension_map.find_by_extension(extension)
        if entry is not None:
            return entry.key
        try:
            return BUILTIN_EXTENSIONS[extension.lower()]
        except KeyError:
            raise ConfigurationError(  # pylint: disable=raise-missing-from
                f"No template engine for {input_path}: the extension "
                f"{extension!r} is not handled by any engine."
            )

    def get_engine_for_path(self, input_path: str) -> TemplateEngine:
        """
        Return the engine handling the input file.
        """
        return self.get_engine(self.get_engine_name_for_path(input_path))

    async def render_file(
        self,
        input_path: str,
        data: Optional[Mapping[str, Any]] = None,
        encoding: str = "utf-8",
    ) -> Any:
        """
        Render a single input file.

        The contents of the file are only read if the engine asks for them.
        The data provided by the file itself is merged into ``data``, taking
        precedence over it.

        :param input_path:
            path of the input file.
        :param data:
            data available to the template.
        :param encoding:
            encoding of the input file.
        :return:
            rendered output.
        """
        engine = self.get_engine_for_path(input_path)
        if engine.needs_to_read_file_contents():
            with open(input_path, mode="r", encoding=encoding) as file:
                template_string = file.read()
        else:
            template_string = ""
        merged_data = dict(data or {})
        extra_data = await engine.get_extra_data_from_file(input_path)
        if extra_data:
            merged_data.update(extra_data)
        render = await engine.compile(template_string, input_path)
        if render is None:
            raise ConfigurationError(
                f"Template engine {engine.name} cannot render {input_path}: "
                "it has neither a compile function nor a default engine."
            )
        if not callable(render):
            # The compile function returned the output.
            return render
        logger.debug("Rendering %s with %s.", input_path, engine.name)
        return await render(merged_data)
