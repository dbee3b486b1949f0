"""Logging setup for the command-line builder."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "plugin_registry"


def configure_logging(verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Route the package's log records through a rich handler.

    Calling it again replaces the previously installed handler, so repeated
    CLI invocations in one process do not duplicate output.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    level = logging.DEBUG if verbose else logging.INFO

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=verbose,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
