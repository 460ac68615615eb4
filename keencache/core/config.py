"""Configuration management for keencache.

This module provides centralized configuration loading from environment
variables with validation and type safety.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from keencache.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from keencache.cache.models import CacheConfig

logger = logging.getLogger(__name__)

DEFAULT_KEEN_API_URL = "https://api.keen.io/3.0"
DEFAULT_CACHE_TTL = 3600
CONFIG_FILE = "keencache.yaml"


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Keen IO
    keen_project_id: str = Field(default="", description="Keen IO project id")
    keen_read_key: str = Field(default="", description="Keen IO read key")
    keen_api_url: str = Field(
        default=DEFAULT_KEEN_API_URL, description="Keen IO API base URL"
    )
    keen_timeout: float | None = Field(
        default=None, description="Analytics request timeout in seconds", gt=0.0
    )

    # Redis Cache
    redis_url: str | None = Field(
        default=None, description="Redis URL (unset disables result caching)"
    )
    redis_cache_ttl: int = Field(
        default=DEFAULT_CACHE_TTL, description="Default cache TTL in seconds", ge=0
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str | None = Field(
        default=None, description="Log format (json, console)"
    )
    environment: str = Field(
        default="development", description="Environment (development, production)"
    )

    # OpenTelemetry Configuration
    otel_enabled: bool = Field(
        default=False, description="Enable OpenTelemetry instrumentation"
    )
    otel_traces_enabled: bool = Field(
        default=True, description="Enable trace collection"
    )
    otel_metrics_enabled: bool = Field(
        default=True, description="Enable metrics collection"
    )

    @field_validator("keen_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the API base URL so paths can be appended."""
        return v.rstrip("/")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None) -> str | None:
        """Validate Redis URL scheme; empty string means unset."""
        if not v:
            return None
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError(f"redis_url must be a redis:// URL, got: {v[:20]}...")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


def load_cache_config(config_path: Path | None = None) -> "CacheConfig":
    """Load cache configuration from keencache.yaml.

    3-tier fallback chain:
        1. YAML config (keencache.yaml cache section)
        2. Environment variables (via Settings class - redis_url, redis_cache_ttl)
        3. Hardcoded defaults

    Args:
        config_path: YAML file to read (defaults to ./keencache.yaml)

    Returns:
        CacheConfig with redis_url and ttl

    Raises:
        ConfigurationError: the merged values are invalid (e.g. negative ttl)

    Example:
        >>> config = load_cache_config()
        >>> config.ttl
        3600
    """
    # Import here to avoid circular import
    from keencache.cache.models import CacheConfig

    values: dict[str, object] = {
        "redis_url": settings.redis_url,
        "ttl": settings.redis_cache_ttl,
    }

    path = config_path or Path(CONFIG_FILE)

    # Try YAML (overrides Settings class values)
    if path.exists():
        try:
            with open(path) as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load {path}: {e}")
            config = None

        if isinstance(config, dict):
            cache_config = config.get("cache", {})
            if isinstance(cache_config, dict):
                for key in ("redis_url", "ttl"):
                    if key in cache_config:
                        values[key] = cache_config[key]

    try:
        return CacheConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid cache configuration: {e.error_count()} errors",
            details={"path": str(path), "errors": e.errors()},
        ) from e


settings = Settings()
