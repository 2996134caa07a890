"""
kwkhtmltopdf service settings.

Renderer binary, optional render timeout, stdout read size and the
listen address, read from the environment (KWKHTMLTOPDF_BIN, PORT, ...).
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class ServiceSettings(BaseSettings):
    """
    kwkhtmltopdf service configuration with validation.

    All settings can be overridden via environment variables.
    """

    # === Renderer ===
    kwkhtmltopdf_bin: str = Field(
        default="wkhtmltopdf",
        min_length=1,
        description="Renderer binary name or path (resolved via PATH when bare)"
    )
    kwkhtmltopdf_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Renderer timeout in seconds (unset = wait indefinitely)"
    )
    kwkhtmltopdf_chunk_size: int = Field(
        default=64 * 1024,
        ge=1024,
        le=4 * 1024 * 1024,
        description="Read size for streaming renderer stdout (1 KiB - 4 MiB)"
    )

    # === Server ===
    host: str = Field(default="0.0.0.0", description="Listen address")
    port: int = Field(default=8080, ge=1, le=65535, description="Listen port")
    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known logging level name."""
        v_upper = v.upper()
        if not isinstance(logging.getLevelName(v_upper), int):
            raise ValueError(f"log_level must be a logging level name, got: {v}")
        return v_upper

    class Config:
        env_prefix = ""  # Exact env var names, e.g. KWKHTMLTOPDF_BIN
        case_sensitive = False


@lru_cache()
def get_settings() -> ServiceSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for the process lifetime.
    """
    return ServiceSettings()


def validate_config_on_startup() -> ServiceSettings:
    """
    Load and validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    """
    logger = logging.getLogger(__name__)

    try:
        settings = get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    logger.info(f"Configuration loaded: renderer={settings.kwkhtmltopdf_bin}")
    if settings.kwkhtmltopdf_timeout is not None:
        logger.info(f"  renderer_timeout={settings.kwkhtmltopdf_timeout}s")
    logger.info(f"  chunk_size={settings.kwkhtmltopdf_chunk_size}")
    return settings
