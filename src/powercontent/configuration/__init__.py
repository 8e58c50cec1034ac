"""Configuration module for PowerContent.

Configuration is a single pydantic-settings model with validation and
automatic binding to ``POWERCONTENT_*`` environment variables and to a
``.env`` file in the working directory.

Usage examples:
    >>> from powercontent.configuration import PowerContentConfig
    >>>
    >>> # Load from environment variables and .env
    >>> config = PowerContentConfig.from_env()
    >>>
    >>> # Explicit values win over the environment
    >>> config = PowerContentConfig.from_env(cache_dir="/tmp/pc")

Environment variable binding:
    ```bash
    export POWERCONTENT_CACHE_DIR=/var/cache/powercontent
    export POWERCONTENT_FETCH_TIMEOUT_SECONDS=30
    export POWERCONTENT_LOG_LEVEL=DEBUG
    export POWERCONTENT_SITE=site.json
    ```

Configuration testing:
    >>> from powercontent.configuration import create_test_config
    >>>
    >>> test_config = create_test_config(cache_dir=tmp_path)
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import ContentDefaults
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "POWERCONTENT_"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class PowerContentConfig(BaseSettings):
    """Runtime settings for the content facade and its collaborators."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cache_dir: Path = Field(
        default=Path(ContentDefaults.CACHE_DIR),
        description="Directory where remote images are downloaded before ingestion",
    )
    fetch_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Total timeout for HTTP image downloads; unset means no timeout",
    )
    user_agent: str = Field(default=ContentDefaults.USER_AGENT, min_length=1)
    debug_source: str = Field(
        default=ContentDefaults.DEBUG_SOURCE,
        min_length=1,
        description="Logger name used when messages are routed to logging",
    )
    log_level: str = Field(default="INFO")
    site: Optional[Path] = Field(
        default=None,
        description="JSON snapshot used by the in-memory host",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls, **overrides: Any) -> "PowerContentConfig":
        """Build a configuration from the environment and ``.env``.

        Keyword overrides that are not None win over the environment.

        Raises:
            ConfigurationError: If a bound value fails validation.
        """
        values = {k: v for k, v in overrides.items() if v is not None}
        try:
            return cls(**values)
        except ValidationError as e:
            logger.error(f"Invalid PowerContent configuration: {e}")
            raise ConfigurationError(
                "Invalid PowerContent configuration", metadata={"errors": e.errors()}
            ) from e


def create_test_config(**overrides: Any) -> PowerContentConfig:
    """Create a configuration suitable for tests, ignoring the environment."""
    values: Dict[str, Any] = {
        name: field.default for name, field in PowerContentConfig.model_fields.items()
    }
    values["log_level"] = "DEBUG"
    values.update(overrides)
    return PowerContentConfig(_env_file=None, **values)


__all__ = [
    "ENV_PREFIX",
    "PowerContentConfig",
    "create_test_config",
]
