"""
API Manager package for FleetPilot.

Provides tiered provider selection, usage-quota tracking, response caching
and primary/fallback switching across geolocation, weather and NLP
diagnostics providers.
"""

from .types import (
    APIConfig,
    Capability,
    DiagnosticsResult,
    LocationResult,
    ProviderTier,
    RateLimit,
    UsageStats,
    WeatherResult,
)
from .errors import APIError, APIErrorType, ProviderError, QuotaExceededError, RetryableAPIError
from .cache import ResponseCache, make_cache_key
from .usage import UsageTracker
from .manager import HybridAPIManager

# Singleton management
_api_manager: HybridAPIManager | None = None
_manager_lock = None


def get_api_manager() -> HybridAPIManager:
    """
    Get the global HybridAPIManager instance.

    This function ensures that a single instance of the manager is used
    throughout the application. It uses a lock to be thread-safe.
    """
    global _api_manager, _manager_lock

    # Import lock and config here to avoid circular imports
    import threading
    from ...services.config_service import config_service

    if _manager_lock is None:
        _manager_lock = threading.RLock()

    with _manager_lock:
        if _api_manager is None:
            _api_manager = HybridAPIManager(config_service)
        return _api_manager


def init_api_manager() -> HybridAPIManager:
    """
    Initialize and return the global HybridAPIManager instance.

    Returns:
        The initialized HybridAPIManager instance.
    """
    manager = get_api_manager()
    if not manager.is_initialized():
        manager.initialize()
    return manager


def reset_api_manager() -> None:
    """Shut down and forget the global instance."""
    global _api_manager
    if _api_manager is not None:
        _api_manager.shutdown()
    _api_manager = None


__all__ = [
    "APIConfig",
    "APIError",
    "APIErrorType",
    "Capability",
    "DiagnosticsResult",
    "HybridAPIManager",
    "LocationResult",
    "ProviderError",
    "ProviderTier",
    "RateLimit",
    "ResponseCache",
    "RetryableAPIError",
    "QuotaExceededError",
    "UsageStats",
    "UsageTracker",
    "WeatherResult",
    "get_api_manager",
    "init_api_manager",
    "reset_api_manager",
    "make_cache_key",
]
