"""
Console logging setup.

Every module logs through loguru's shared ``logger``; the CLI calls
``setup_logger`` once to pick the level and format.
"""

from __future__ import annotations

import sys

from loguru import logger

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}


def setup_logger(verbose: bool = False, colorize: bool | None = None) -> None:
    """Replace loguru's default sink with a single stderr sink."""
    logger.remove()
    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)
    logger.add(
        sys.stderr,
        format="<level>{level: <7}</level> | <level>{message}</level>",
        level="DEBUG" if verbose else "INFO",
        colorize=colorize,
    )
