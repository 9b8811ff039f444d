"""Shared utilities (logging setup)."""

from .logging_utils import configure_logging, verbosity_to_level

__all__ = [
    "configure_logging",
    "verbosity_to_level",
]
