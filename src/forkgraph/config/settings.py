"""Configuration settings using Pydantic Settings.

Provides typed configuration with environment variable support.

Usage:
    from forkgraph.config import ForkGraphSettings, get_settings

    # Load from environment variables (FORKGRAPH_*)
    settings = get_settings()

    # Or override with explicit values
    settings = ForkGraphSettings(strict_merge_lineage=True)
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ForkGraphSettings(BaseSettings):  # type: ignore[misc]
    """Process-wide behaviour switches.

    Attributes:
        generate_primary_identifiers: Give new entities a generated primary
            identifier when none is provided.
        strict_merge_lineage: Raise instead of cloning when a nested fork does
            not derive from the value it is merged into.
        log_level: Level applied to the `forkgraph` logger by setup_logging().

    Environment Variables:
        FORKGRAPH_GENERATE_PRIMARY_IDENTIFIERS
        FORKGRAPH_STRICT_MERGE_LINEAGE
        FORKGRAPH_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="FORKGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    generate_primary_identifiers: bool = True
    strict_merge_lineage: bool = False
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)} (got {value!r})")
        return level


@lru_cache(maxsize=1)
def get_settings() -> ForkGraphSettings:
    """Access the process-wide settings, loading them on first use.

    Returns:
        The cached ForkGraphSettings instance.
    """
    return ForkGraphSettings()


def reset_settings() -> None:
    """Forget the cached settings so the next access reloads them."""
    get_settings.cache_clear()
