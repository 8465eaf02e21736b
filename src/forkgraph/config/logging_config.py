"""Logging setup for the `forkgraph` logger hierarchy.

Modules log through `logging.getLogger(__name__)` and never configure
handlers themselves. Applications that want forkgraph's records call
setup_logging() once.

Usage:
    from forkgraph.config import setup_logging

    setup_logging()  # level from FORKGRAPH_LOG_LEVEL
"""

from __future__ import annotations

import logging
import sys

from forkgraph.config.settings import ForkGraphSettings, get_settings

LOGGER_NAME = "forkgraph"
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def setup_logging(settings: ForkGraphSettings | None = None) -> logging.Logger:
    """Configure the `forkgraph` logger from settings.

    Replaces handlers previously installed by this function, so calling it
    again only changes the level and keeps a single handler.

    Args:
        settings: Settings to read the level from. Defaults to get_settings().

    Returns:
        The configured `forkgraph` logger.
    """
    settings = settings if settings is not None else get_settings()
    level = getattr(logging, settings.log_level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        if getattr(handler, "_forkgraph_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._forkgraph_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
