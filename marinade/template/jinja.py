"""
Support for Jinja templates (using the Jinja 2 library).

The `JinjaEngine` provided by this module compiles template strings with the
Jinja 2 library. Besides being used for ``.jinja`` and ``.j2`` files, it is
the default engine of custom template engines registered with the key
``jinja``, so that their render functions can delegate to it.

The preferred way of creating an instance of the Jinja template engine is by
calling the `get_instance` function, not by creating an instance of
`JinjaEngine` directly.

Template syntax
---------------

The Jinja template engine supports the full range of features provided by the
Jinja 2 library. Please refer to the
`Jinja 2 documentation <https://jinja.palletsprojects.com/>`_ to learn more
about how to write Jinja templates.

The global functions of the configuration are added to the globals of the
environment. Templates included through the ``include``, ``import`` and
``extends`` tags are loaded from the ``includes`` directory (if it is
configured).

This template engine also provides a ``raise`` function that can be used to
raise a ``TemplateError`` from within templates.

The environment created by this template engine adds two extensions:

* ``jinja2.ext.do``: This extension provides the ``do`` tag that can be used to
  execute some code  (similar to a ``{{ ... }}`` block) without generating
  output.
* ``jinja2.ext.loopcontrols``: This extension provides the ``break`` and
  ``continue`` tags that can be used for loop control.
"""

import typing

import jinja2
import jinja2.exceptions

from marinade.template import TemplateEngine


class JinjaEngine(TemplateEngine):
    """
    Template engine using the Jinja 2 library.
    """

    #: Jinja templates only depend on their source, so they can be cached.
    cacheable = True

    def __init__(self, name, dirs, config):
        super().__init__(name, dirs, config)
        includes_dir = dirs.get("includes", None)
        if includes_dir is None:
            loader = None
        else:
            loader = jinja2.FileSystemLoader(includes_dir)
        self._environment = jinja2.Environment(
            autoescape=False,
            extensions=["jinja2.ext.do", "jinja2.ext.loopcontrols"],
            keep_trailing_newline=True,
            loader=loader,
        )
        self._environment.globals["raise"] = self._raise_template_error

    async def compile(self, template_string, input_path, *args):
        # Global functions are looked up when compiling, so that functions that
        # have been added after this engine was created are available as well.
        template = self._environment.from_string(
            template_string, globals=dict(self.config.global_functions)
        )

        async def render(data: typing.Mapping[str, typing.Any]) -> str:
            return template.render(**data)

        return render

    @staticmethod
    def _raise_template_error(message):
        raise jinja2.exceptions.TemplateError(message)


def get_instance(name, dirs, config) -> JinjaEngine:
    """
    Create a Jinja template engine.

    :param name:
        name under which the engine has been requested.
    :param dirs:
        template directories.
    :param config:
        configuration of the site.
    :return:
        Jinja template engine.
    """
    return JinjaEngine(name, dirs, config)
