"""Logging setup for the command line."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "monoship"


def verbosity_to_level(verbose: int, quiet: bool = False) -> int:
    """Map -v/-q flags to a logging level.

    Args:
        verbose: Number of times -v was given.
        quiet: Whether -q was given.

    Returns:
        Logging level.
    """
    if quiet:
        return logging.WARNING
    if verbose >= 1:
        return logging.DEBUG
    return logging.INFO


def configure_logging(
    verbose: int = 0,
    *,
    quiet: bool = False,
    console: Console | None = None,
) -> logging.Logger:
    """Install a rich handler on the package logger.

    Calling this more than once replaces the previous handler.

    Args:
        verbose: Number of times -v was given.
        quiet: Only show warnings and errors.
        console: Console to log to (defaults to stderr).

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=verbose >= 2,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(verbosity_to_level(verbose, quiet))
    logger.propagate = False
    return logger
