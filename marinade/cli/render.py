"""
Command-line renderer.

If executed as a Python script, this module renders the input files given on
the command line and writes the result to the standard output. The
configuration is read from ``marinade.yaml`` in the current working directory
unless another file is specified through the ``--config-file`` command line
argument.

Please refer to `marinade.config` for the structure of the configuration file.
In addition to the keys described there, this module uses the following keys
(both of them are optional):

:``logging_config_file``:
    Path to a logging configuration file. This file must be in the
    `format <https://docs.python.org/3/library/logging.config.html#logging-config-fileformat>`_
    expected by ``logging.config.fileConfig``. This configuration option cannot
    be used together with the ``logging_level`` option.

:``logging_level``:
    Logging level to be used. Can be one of ``CRITICAL``, ``ERROR``,
    ``WARNING`` (the default), ``INFO``, or ``DEBUG``. This configuration
    option cannot be used together with the ``logging_config_file`` option.
"""

import argparse
import asyncio
import logging
import logging.config
import sys
import typing

import marinade.version

from marinade.benchmark import BenchmarkManager
from marinade.config import Config, read_config
from marinade.template.manager import TemplateEngineManager

# Logger used by this module.
logger = logging.getLogger(__name__)


def main(argv: typing.Optional[typing.Sequence[str]] = None) -> int:
    """
    Run the renderer.

    This function parses the command-line arguments, reads the configuration
    and renders each input file.

    :param argv:
        command-line arguments (without the program name). If ``None``, the
        arguments of the current process are used.
    :return:
        exit status.
    """
    parser = argparse.ArgumentParser(
        description="Render templates with Marinade."
    )
    parser.add_argument(
        "--config-file",
        dest="config_file",
        default="marinade.yaml",
        help="path to the configuration file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Marinade {marinade.version.VERSION_STRING}",
    )
    parser.add_argument(
        "input_paths", metavar="INPUT", nargs="+", help="file to render"
    )
    args = parser.parse_args(argv)
    benchmark_manager = BenchmarkManager()
    config = read_config(args.config_file, benchmark_manager=benchmark_manager)
    configure_logging(config.options)
    try:
        asyncio.run(render_files(config, args.input_paths, sys.stdout))
    finally:
        benchmark_manager.finish()
    return 0


def configure_logging(options: typing.Mapping[str, typing.Any]) -> None:
    """
    Configure the logging according to the ``logging_config_file`` or
    ``logging_level`` option.

    :param options:
        raw configuration options.
    """
    if "logging_config_file" in options:
        if "logging_level" in options:
            raise ValueError(
                "Only one of the logging_config_file and logging_level option "
                "can be used."
            )
        logging.config.fileConfig(
            options["logging_config_file"], disable_existing_loggers=False
        )
    else:
        logging_level = options.get("logging_level", "WARNING")
        if logging_level not in (
            "CRITICAL",
            "DEBUG",
            "ERROR",
            "INFO",
            "WARNING",
        ):
            raise ValueError(
                f'Invalid logging_level "{logging_level}". Must be one of '
                "CRITICAL, DEBUG, ERROR, INFO, WARNING."
            )
        logging.basicConfig(level=getattr(logging, logging_level))


async def render_files(
    config: Config,
    input_paths: typing.Iterable[str],
    output: typing.TextIO,
) -> None:
    """
    Render the input files one after the other and write the results to
    ``output``.
    """
    manager = TemplateEngineManager(config)
    for input_path in input_paths:
        logger.info("Rendering %s.", input_path)
        result = await manager.render_file(input_path)
        output.write(str(result))


if __name__ == "__main__":
    sys.exit(main())
