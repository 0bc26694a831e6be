"""
Configuration Service for FleetPilot.

This module provides a centralized configuration service that validates
runtime changes and applies log level changes immediately.
"""

import threading
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from ..core.config import Settings


class ConfigService:
    """Centralized configuration service."""

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the ConfigService.

        Args:
            settings: Pre-built settings. When omitted, settings are read
                      from the environment and ``.env`` on first access.
        """
        self._settings: Optional[Settings] = settings
        self._lock = threading.RLock()

    def load_settings(self) -> Settings:
        """Load settings from the environment."""
        with self._lock:
            try:
                self._settings = Settings()
            except ValidationError as e:
                logger.error(f"Failed to load settings: {e}")
                raise
            logger.debug("Settings loaded via config service")
            return self._settings

    def reload(self) -> Settings:
        """Discard current settings and read them again."""
        return self.load_settings()

    def get_settings(self) -> Settings:
        """Get current settings, loading if necessary."""
        with self._lock:
            if self._settings is None:
                return self.load_settings()
            return self._settings

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a specific setting value."""
        with self._lock:
            value = getattr(self.get_settings(), key, None)
            return default if value is None else value

    def set_setting(self, key: str, value: Any) -> bool:
        """
        Set a specific setting value.

        The value is validated by the settings model; invalid values are
        rejected and logged.

        Returns:
            True if the value was applied.
        """
        with self._lock:
            settings = self.get_settings()
            if key not in Settings.model_fields:
                logger.error(f"Unknown setting '{key}'")
                return False
            old_value = getattr(settings, key, None)
            try:
                setattr(settings, key, value)
            except ValidationError as e:
                # model-level validators run after the field is written
                settings.__dict__[key] = old_value
                logger.error(f"Failed to set setting {key}: {e}")
                return False

            new_value = getattr(settings, key)
            if key == "log_level" and old_value != new_value:
                from ..core.logger import setup_logging

                setup_logging(self)
                logger.info(f"Applied new log level: {new_value}")
            return True


# Global config service instance
config_service = ConfigService()
