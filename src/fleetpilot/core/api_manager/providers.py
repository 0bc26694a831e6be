"""
Provider management for the API Manager package.

This module provides:
- The default provider table and build_api_configs()
- ProviderRegistry class for managing provider adapters
"""

from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

import httpx
from loguru import logger

from ..config import Settings, resolve_api_key
from .types import APIConfig, Capability, ProviderTier, RateLimit


class ProviderSpec(NamedTuple):
    """Row of the default provider table."""

    name: str
    base_url: str
    key_setting: str
    priority: ProviderTier
    used_for: tuple
    rate_limit: RateLimit


DEFAULT_PROVIDERS: tuple = (
    # Free tier
    ProviderSpec("ipapi", "https://api.ipapi.com", "ipapi_api_key",
                 ProviderTier.FALLBACK, (Capability.GEOLOCATION,), RateLimit(1000, 30000)),
    ProviderSpec("OpenWeatherMap", "https://api.openweathermap.org", "openweather_api_key",
                 ProviderTier.FALLBACK, (Capability.WEATHER,), RateLimit(1000, 30000)),
    ProviderSpec("GoogleAI", "https://generativelanguage.googleapis.com", "google_ai_api_key",
                 ProviderTier.FALLBACK, (Capability.DIAGNOSTICS,), RateLimit(100, 1500)),
    # Paid tier
    ProviderSpec("Geotab", "https://my.geotab.com/apiv1", "geotab_api_key",
                 ProviderTier.PRIMARY, (Capability.GEOLOCATION,), RateLimit(10000, 300000)),
    ProviderSpec("WeatherStack", "https://api.weatherstack.com", "weatherstack_api_key",
                 ProviderTier.PRIMARY, (Capability.WEATHER,), RateLimit(5000, 150000)),
    ProviderSpec("HuggingFace", "https://api-inference.huggingface.co", "huggingface_api_key",
                 ProviderTier.PRIMARY, (Capability.DIAGNOSTICS,), RateLimit(1000, 30000)),
)


def build_api_configs(settings: Settings) -> List[APIConfig]:
    """
    Build the immutable provider descriptors from settings.

    Args:
        settings: Loaded application settings (used for API keys).

    Returns:
        APIConfig list in table order.
    """
    return [
        APIConfig(
            name=spec.name,
            base_url=spec.base_url,
            api_key=resolve_api_key(settings, spec.key_setting),
            rate_limit=spec.rate_limit,
            priority=spec.priority,
            used_for=spec.used_for,
        )
        for spec in DEFAULT_PROVIDERS
    ]


class ProviderRegistry:
    """
    Registry for managing provider adapters.

    Adapters are created for every configured provider that has a known
    factory. Custom adapters can be registered directly, which is how tests
    and alternative backends plug in.
    """

    def __init__(self, config_service, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize the ProviderRegistry.

        Args:
            config_service: The application's configuration service.
            transport: Optional httpx transport shared by all adapters.
        """
        self._adapters: Dict[str, Any] = {}
        self._config = config_service
        self._transport = transport

    def _factories(self) -> Dict[str, Callable[[APIConfig, float], Any]]:
        # Import here to avoid circular imports
        from ...providers.geotab_adapter import GeotabAdapter
        from ...providers.google_ai_adapter import GoogleAIAdapter
        from ...providers.huggingface_adapter import HuggingFaceAdapter
        from ...providers.ipapi_adapter import IpapiAdapter
        from ...providers.openweather_adapter import OpenWeatherMapAdapter
        from ...providers.weatherstack_adapter import WeatherStackAdapter

        transport = self._transport
        return {
            "ipapi": lambda config, timeout: IpapiAdapter(config, timeout=timeout, transport=transport),
            "OpenWeatherMap": lambda config, timeout: OpenWeatherMapAdapter(config, timeout=timeout, transport=transport),
            "GoogleAI": lambda config, timeout: GoogleAIAdapter(
                config,
                timeout=timeout,
                transport=transport,
                model=self._config.get_setting("google_ai_model") or "gemini-2.0-flash",
            ),
            "Geotab": lambda config, timeout: GeotabAdapter(
                config,
                timeout=timeout,
                transport=transport,
                database=self._config.get_setting("geotab_database") or "",
                username=self._config.get_setting("geotab_username") or "",
            ),
            "WeatherStack": lambda config, timeout: WeatherStackAdapter(config, timeout=timeout, transport=transport),
            "HuggingFace": lambda config, timeout: HuggingFaceAdapter(
                config,
                timeout=timeout,
                transport=transport,
                model=self._config.get_setting("huggingface_model") or "mistralai/Mistral-7B-Instruct-v0.2",
            ),
        }

    def initialize_all(self, configs: Sequence[APIConfig]) -> None:
        """
        Create adapters for all configured providers.

        Providers that are already registered (for example custom adapters)
        are left untouched. Failures are logged and the provider is skipped.

        Args:
            configs: Provider descriptors to create adapters for.
        """
        logger.debug("Initializing all configured API providers.")
        factories = self._factories()
        timeout = self._config.get_setting("api_timeout")

        for config in configs:
            if config.name in self._adapters:
                continue
            factory = factories.get(config.name)
            if factory is None:
                logger.warning(f"No adapter available for provider '{config.name}', it will be skipped.")
                continue
            try:
                self._adapters[config.name] = factory(config, timeout)
                logger.debug(f"{config.name} adapter initialized")
            except Exception as e:
                logger.error(f"Failed to initialize {config.name} provider: {e}")

    def register(self, name: str, adapter: Any) -> None:
        """Register an adapter under a provider name, replacing any existing one."""
        self._adapters[name] = adapter

    def get_adapter(self, name: str) -> Optional[Any]:
        """
        Get the adapter for a specific provider.

        Args:
            name: Provider name.

        Returns:
            The adapter if available, None otherwise.
        """
        return self._adapters.get(name)

    def is_provider_available(self, name: str) -> bool:
        return name in self._adapters

    def has_any_adapters(self) -> bool:
        return bool(self._adapters)

    def clear(self) -> None:
        """Clear all registered providers."""
        self._adapters.clear()

    def get_all_providers(self) -> Dict[str, Any]:
        """Return a copy of the provider name to adapter mapping."""
        return self._adapters.copy()


__all__ = [
    "ProviderSpec",
    "DEFAULT_PROVIDERS",
    "build_api_configs",
    "ProviderRegistry",
]
