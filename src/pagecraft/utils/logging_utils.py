"""
Logging utilities: console setup for the CLI.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"


def verbosity_to_level(verbosity: int) -> int:
    """0 -> WARNING, 1 -> INFO, 2+ -> DEBUG."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(verbosity: int = 0, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configure the pagecraft logger for console output.

    Replaces handlers previously installed by this function so repeated
    calls (e.g. in tests) do not duplicate output.

    Args:
        verbosity: Count of -v flags
        stream: Output stream (default: stderr)

    Returns:
        The configured "pagecraft" logger
    """
    logger = logging.getLogger("pagecraft")
    for handler in list(logger.handlers):
        if getattr(handler, "_pagecraft_console", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handler._pagecraft_console = True
    logger.addHandler(handler)
    logger.setLevel(verbosity_to_level(verbosity))
    return logger
