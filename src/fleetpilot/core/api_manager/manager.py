"""
Hybrid API manager for FleetPilot.

This module provides the HybridAPIManager class which coordinates provider
selection, quota tracking, caching and the per-capability fallback chains.
"""

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import httpx
from loguru import logger
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import ensure_config_dir
from ..storage import JsonFileStore, KeyValueStore
from .cache import ResponseCache, make_cache_key
from .errors import (
    APIErrorType,
    ProviderError,
    QuotaExceededError,
    RetryableAPIError,
    classify_error,
    requires_initialization,
)
from .providers import ProviderRegistry, build_api_configs
from .types import (
    APIConfig,
    Capability,
    DiagnosticsResult,
    LocationResult,
    ProviderTier,
    WeatherResult,
)
from .usage import DEFAULT_FAILOVER_SECONDS, UsageTracker

LOCATION_TTL_HOURS = 1.0
WEATHER_TTL_HOURS = 1.0
DIAGNOSTICS_TTL_HOURS = 24.0
DIAGNOSTICS_KEY_CHARS = 100


class HybridAPIManager:
    """
    Tiered multi-provider API client with quotas, caching and fallback.

    All state (provider table, usage counters, cache, adapters) is owned by
    the instance; persistence goes through an injected key-value store.
    """

    def __init__(
        self,
        config_service,
        store: Optional[KeyValueStore] = None,
        configs: Optional[Sequence[APIConfig]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the HybridAPIManager.

        Args:
            config_service: The application's configuration service.
            store: Store for usage counters. Defaults to a JSON file in the
                   configuration directory.
            configs: Provider descriptors. Defaults to the built-in table.
            transport: Optional httpx transport shared by all adapters.
        """
        self.config_service = config_service
        self._lock = threading.RLock()
        self._is_initialized = False

        settings = config_service.get_settings()
        self._configs: List[APIConfig] = list(configs) if configs is not None else build_api_configs(settings)
        self._store = store if store is not None else self._default_store(settings.usage_stats_file)
        self._usage = UsageTracker(self._configs, self._store)
        self._cache = ResponseCache(settings.cache_max_entries)
        self._providers = ProviderRegistry(config_service, transport=transport)

    @staticmethod
    def _default_store(path: Optional[str]) -> JsonFileStore:
        if path:
            return JsonFileStore(Path(path).expanduser())
        return JsonFileStore(ensure_config_dir() / "storage.json")

    def initialize(self) -> bool:
        """
        Initialize adapters and load usage counters.

        Returns:
            True if every configured provider got an adapter, False if some
            were skipped. The manager is usable either way.
        """
        with self._lock:
            if self._is_initialized:
                return True
            self._providers.initialize_all(self._configs)
            self._usage.initialize()
            self._is_initialized = True

            missing = [c.name for c in self._configs if not self._providers.is_provider_available(c.name)]
            if missing:
                logger.warning(f"Hybrid API manager initialized without adapters for: {', '.join(missing)}")
                return False
            logger.info(f"Hybrid API manager initialized with {len(self._configs)} providers")
            return True

    def is_initialized(self) -> bool:
        """Check if the manager is initialized."""
        return self._is_initialized

    def _ensure_initialized(self) -> None:
        if not self._is_initialized:
            self.initialize()

    @property
    def configs(self) -> List[APIConfig]:
        return list(self._configs)

    @property
    def providers(self) -> ProviderRegistry:
        return self._providers

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def usage(self) -> UsageTracker:
        return self._usage

    def _get_config(self, name: str) -> Optional[APIConfig]:
        for config in self._configs:
            if config.name == name:
                return config
        return None

    # ------------------------------------------------------------------
    # Selection and quota
    # ------------------------------------------------------------------

    @requires_initialization
    def get_available_apis(self, capability: Capability) -> List[APIConfig]:
        """
        Return providers able to serve a capability, best first.

        Primary providers come before fallback providers; within a tier,
        providers with fewer recorded failures come first.

        Args:
            capability: The capability to serve.

        Returns:
            Ordered list of provider descriptors.
        """
        candidates = [config for config in self._configs if config.serves(capability)]
        return sorted(
            candidates,
            key=lambda config: (
                0 if config.priority == ProviderTier.PRIMARY else 1,
                self._usage.get_failures(config.name),
            ),
        )

    @requires_initialization
    def can_make_request(self, name: str) -> bool:
        """Check whether a provider still has daily and monthly quota."""
        return self._usage.can_make_request(name)

    @requires_initialization
    def increment_usage(self, name: str, success: bool) -> None:
        """Record one call attempt for a provider."""
        self._usage.increment_usage(name, success)

    @requires_initialization
    def reset_failures(self, name: str) -> None:
        self._usage.reset_failures(name)

    def is_degraded_mode(self) -> bool:
        """
        Report whether any primary provider is unusable.

        A primary provider is unusable when it has no counters, no quota
        left, or more failures than the configured threshold.
        """
        self._ensure_initialized()
        threshold = self.config_service.get_setting("degraded_failure_threshold")
        if threshold is None:
            threshold = 10
        for config in self._configs:
            if config.priority != ProviderTier.PRIMARY:
                continue
            if not self._usage.has_stats(config.name):
                return True
            if not self._usage.can_make_request(config.name, include_pending=False):
                return True
            if self._usage.get_failures(config.name) > threshold:
                return True
        return False

    # ------------------------------------------------------------------
    # Fallback chains
    # ------------------------------------------------------------------

    def _call_provider(self, name: str, adapter: Any, capability: Capability, params: Dict[str, Any]) -> Any:
        """
        Call an adapter, retrying transient errors when retries are configured.

        Every attempt takes its own quota slot and is recorded as one call.

        Raises:
            QuotaExceededError: No slot was left for an attempt.
        """
        max_retries = self.config_service.get_setting("api_max_retries") or 0

        def attempt():
            if not self._usage.acquire(name):
                raise QuotaExceededError(f"{name} has no quota left")
            try:
                result = adapter.fetch(capability, params)
            except ProviderError as e:
                self._usage.increment_usage(name, False, reserved=True)
                if classify_error(e, name).is_transient:
                    raise RetryableAPIError(f"Retryable error from {name}: {e}") from e
                raise
            except Exception:
                self._usage.increment_usage(name, False, reserved=True)
                raise
            self._usage.increment_usage(name, True, reserved=True)
            return result

        retrying = Retrying(
            stop=stop_after_attempt(max_retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(RetryableAPIError),
            reraise=True,
        )
        return retrying(attempt)

    def _run_chain(
        self,
        capability: Capability,
        cache_key: str,
        params: Dict[str, Any],
        ttl_hours: float,
    ) -> Optional[Any]:
        self._ensure_initialized()

        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        for config in self.get_available_apis(capability):
            adapter = self._providers.get_adapter(config.name)
            if adapter is None:
                logger.debug(f"No adapter for {config.name}, skipping")
                continue
            try:
                result = self._call_provider(config.name, adapter, capability, params)
            except QuotaExceededError:
                logger.debug(f"{config.name} quota exhausted, skipping")
                continue
            except Exception as e:
                cause = e.__cause__ if isinstance(e, RetryableAPIError) and e.__cause__ else e
                api_error = classify_error(cause, config.name)
                if api_error.error_type == APIErrorType.AUTHENTICATION:
                    logger.error(
                        f"{config.name} rejected its credentials; check the configured API key. ({api_error.message})"
                    )
                else:
                    logger.warning(
                        f"{config.name} {capability.value} request failed: "
                        f"{api_error.error_type.value} - {api_error.message}"
                    )
                continue

            if isinstance(result, DiagnosticsResult) and result.is_generic:
                logger.debug(f"{config.name} reply was not parseable, not caching generic result")
            else:
                self._cache.set(cache_key, result, ttl_hours)
            logger.debug(f"{capability.value} served by {config.name}")
            return result

        logger.warning(f"All {capability.value} providers exhausted")
        return None

    def get_location(self) -> Optional[LocationResult]:
        """
        Locate the device through the geolocation providers.

        Returns:
            LocationResult, or None when every provider failed or is out of quota.
        """
        return self._run_chain(
            Capability.GEOLOCATION,
            make_cache_key("location", "current"),
            {},
            LOCATION_TTL_HOURS,
        )

    def get_weather_data(self, lat: float, lon: float) -> Optional[WeatherResult]:
        """
        Current weather at a coordinate.

        Args:
            lat: Latitude in degrees.
            lon: Longitude in degrees.

        Returns:
            WeatherResult, or None when every provider failed or is out of quota.
        """
        params = {"lat": lat, "lon": lon}
        return self._run_chain(
            Capability.WEATHER,
            make_cache_key("weather", "current", params),
            params,
            WEATHER_TTL_HOURS,
        )

    def analyze_diagnostics(self, log_text: str) -> Optional[DiagnosticsResult]:
        """
        Ask an NLP provider for the issues in an engine log.

        The cache key uses only the first characters of the log.

        Args:
            log_text: Free-form engine log or fault code list.

        Returns:
            DiagnosticsResult, or None when every provider failed or is out of
            quota. Callers fall back to rule-based analysis on None.
        """
        key = make_cache_key("diagnostics", "analyze", {"logText": log_text[:DIAGNOSTICS_KEY_CHARS]})
        return self._run_chain(Capability.DIAGNOSTICS, key, {"log_text": log_text}, DIAGNOSTICS_TTL_HOURS)

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def get_usage_status(self) -> Dict[str, Any]:
        """
        Quota health per provider plus recommendations.

        Returns:
            Dict with ``apis``, ``total_cost``, ``recommendations`` and
            ``degraded_mode``.
        """
        self._ensure_initialized()
        status = self._usage.get_usage_status(
            warning_percent=self.config_service.get_setting("usage_status_warning_percent") or 70.0,
            critical_percent=self.config_service.get_setting("usage_status_critical_percent") or 90.0,
        )
        status["degraded_mode"] = self.is_degraded_mode()
        return status

    @requires_initialization
    def simulate_failover(self, name: str, duration: float = DEFAULT_FAILOVER_SECONDS) -> bool:
        """
        Push a provider to the back of its tier for ``duration`` seconds.

        Returns:
            True if the provider is known.
        """
        return self._usage.simulate_failover(name, duration) is not None

    def clear_cache(self) -> None:
        """Drop every cached response."""
        self._cache.clear()

    def shutdown(self) -> None:
        """Shutdown the manager and cleanup resources."""
        with self._lock:
            self._usage.cancel_timers()
            self._providers.clear()
            self._cache.clear()
            self._is_initialized = False
            logger.info("Hybrid API manager shutdown")


__all__ = [
    "HybridAPIManager",
    "LOCATION_TTL_HOURS",
    "WEATHER_TTL_HOURS",
    "DIAGNOSTICS_TTL_HOURS",
]
