"""Runtime settings for inctree, read from the environment or a `.env` file."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

type LogLevel = Literal[
    "TRACE",
    "DEBUG",
    "SPLIT",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
]

type LogFormat = Literal["short", "full"]


class TreeSettings(BaseSettings):
    """Settings for serialization and logging.

    Every field can be overridden with an `INCTREE_`-prefixed environment
    variable, e.g. `INCTREE_THRESHOLD_FORMAT=.6f`.

    Attributes:
        threshold_format (str | None): Format spec applied to split thresholds
            when saving a tree. `None` writes `repr(threshold)`, which
            round-trips exactly.
        log_level (LogLevel): Default minimum level for `enable_logging()`.
        log_format (LogFormat): Default line format for `enable_logging()`.
    """

    model_config = SettingsConfigDict(
        env_prefix="INCTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    threshold_format: str | None = Field(
        default=None,
        description="Format spec for split thresholds when saving, e.g. '.6f'. None writes repr().",
    )
    log_level: LogLevel = Field(default="INFO", description="Default minimum level for enable_logging().")
    log_format: LogFormat = Field(default="short", description="Default log line format for enable_logging().")


@lru_cache(maxsize=1)
def get_settings() -> TreeSettings:
    """Return the process-wide settings, loaded once.

    Call `get_settings.cache_clear()` after changing the environment to reload.

    Returns:
        TreeSettings: The cached settings instance.
    """
    return TreeSettings()
