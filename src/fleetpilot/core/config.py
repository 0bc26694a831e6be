"""
Configuration module for FleetPilot.

This module handles application configuration, settings loading,
environment variable management and keyring lookups for provider keys.
"""

from pathlib import Path
from typing import Optional

import keyring
from loguru import logger
from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

KEYRING_SERVICE = "fleetpilot"
DEMO_API_KEY = "demo_key"


class Settings(BaseSettings):
    """Application settings model with validation."""

    # Provider API keys (fall back to keyring, then to the demo key)
    ipapi_api_key: Optional[str] = Field(default=None, description="ipapi geolocation key")
    openweather_api_key: Optional[str] = Field(default=None, description="OpenWeatherMap key")
    google_ai_api_key: Optional[str] = Field(default=None, description="Google Generative AI key")
    geotab_api_key: Optional[str] = Field(default=None, description="Geotab session id")
    weatherstack_api_key: Optional[str] = Field(default=None, description="WeatherStack access key")
    huggingface_api_key: Optional[str] = Field(default=None, description="HuggingFace inference token")

    # Provider-specific knobs
    geotab_database: str = Field(default="", description="Geotab database name")
    geotab_username: str = Field(default="", description="Geotab user name")
    google_ai_model: str = Field(default="gemini-2.0-flash", description="Gemini model for diagnostics")
    huggingface_model: str = Field(
        default="mistralai/Mistral-7B-Instruct-v0.2",
        description="HuggingFace text-generation model for diagnostics",
    )

    # Request behaviour
    api_timeout: int = Field(default=30, description="API request timeout in seconds")
    api_max_retries: int = Field(
        default=0, description="Extra attempts for transient provider errors (0 = single attempt)"
    )

    # Cache and quota behaviour
    cache_max_entries: int = Field(default=256, description="Maximum number of cached responses")
    degraded_failure_threshold: int = Field(
        default=10, description="Failures above which a primary provider is considered down"
    )
    usage_status_warning_percent: float = Field(default=70.0, description="Usage percent for 'warning'")
    usage_status_critical_percent: float = Field(default=90.0, description="Usage percent for 'critical'")
    usage_stats_file: Optional[str] = Field(
        default=None, description="Path of the usage stats store (default: ~/.fleetpilot/storage.json)"
    )

    # Logging Settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=False, description="Log to file")
    max_log_size: int = Field(default=10, description="Max log file size in MB")

    model_config = ConfigDict(
        env_file=".env", case_sensitive=False, validate_assignment=True, extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("api_timeout", "api_max_retries", "max_log_size")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must be non-negative")
        return v

    @field_validator("cache_max_entries")
    @classmethod
    def validate_cache_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("cache_max_entries must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_usage_thresholds(self) -> "Settings":
        if self.usage_status_warning_percent >= self.usage_status_critical_percent:
            raise ValueError("usage_status_warning_percent must be below usage_status_critical_percent")
        return self


def get_config_path() -> Path:
    """Get the configuration directory path."""
    return Path.home() / ".fleetpilot"


def ensure_config_dir() -> Path:
    """Ensure the configuration directory exists."""
    config_path = get_config_path()
    config_path.mkdir(parents=True, exist_ok=True)
    return config_path


def mask_api_key(api_key: str, visible_chars: int = 4) -> str:
    """Mask API key for display purposes."""
    if not api_key or len(api_key) <= visible_chars:
        return "*" * len(api_key or "")

    return api_key[:visible_chars] + "*" * (len(api_key) - visible_chars)


def load_api_key(key_name: str) -> Optional[str]:
    """Load a provider API key from the keyring."""
    try:
        return keyring.get_password(KEYRING_SERVICE, key_name)
    except Exception as e:
        logger.warning(f"Failed to load key '{key_name}' from keyring: {e}")
        return None


def resolve_api_key(settings: Settings, key_name: str) -> str:
    """
    Resolve a provider key from settings, then keyring, then the demo key.

    Args:
        settings: Loaded application settings.
        key_name: Settings field name, e.g. "openweather_api_key".

    Returns:
        The API key to use. Never empty.
    """
    value = getattr(settings, key_name, None)
    if value:
        return value
    stored = load_api_key(key_name)
    if stored:
        return stored
    logger.debug(f"No value for '{key_name}', using demo key")
    return DEMO_API_KEY
