"""Configuration module using Pydantic Settings.

Provides typed configuration with environment variable support.

Usage:
    from forkgraph.config import get_settings, setup_logging

    settings = get_settings()
    setup_logging(settings)
"""

from forkgraph.config.logging_config import setup_logging
from forkgraph.config.settings import ForkGraphSettings, get_settings, reset_settings

__all__ = [
    "ForkGraphSettings",
    "get_settings",
    "reset_settings",
    "setup_logging",
]
