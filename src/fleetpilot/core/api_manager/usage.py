"""
Usage tracking for the API Manager package.

This module provides the UsageTracker class which records every provider
call, enforces daily and monthly call ceilings and persists the counters
through a key-value store.
"""

import json
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from ..storage import KeyValueStore
from .types import APIConfig, UsageLevel, UsageStats

USAGE_STATS_KEY = "api_usage_stats"
FAILOVER_PENALTY = 100
DEFAULT_FAILOVER_SECONDS = 300.0


class UsageTracker:
    """
    Thread-safe per-provider usage counters.

    Counter updates are serialized by a lock. Callers that are about to hit
    the network reserve a slot with ``acquire`` first; reserved slots count
    against the limits until ``increment_usage`` records the outcome with
    ``reserved=True``, so concurrent callers cannot push a provider past its quota.
    """

    def __init__(self, configs: Sequence[APIConfig], store: KeyValueStore):
        """
        Initialize the UsageTracker.

        Args:
            configs: Provider descriptors whose usage is tracked.
            store: Key-value store the counters are persisted to.
        """
        self._configs: Dict[str, APIConfig] = {config.name: config for config in configs}
        self._store = store
        self._stats: Dict[str, UsageStats] = {}
        self._in_flight: Dict[str, int] = {}
        self._timers: List[threading.Timer] = []
        self._lock = threading.RLock()
        self._is_initialized = False

    def is_initialized(self) -> bool:
        return self._is_initialized

    def initialize(self) -> None:
        """Load stored counters, add missing providers and apply lazy resets."""
        with self._lock:
            if self._is_initialized:
                return
            self._stats = self._load()
            for name in self._configs:
                if name not in self._stats:
                    self._stats[name] = UsageStats()
            self._is_initialized = True
            self.reset_counters_if_needed()

    def _load(self) -> Dict[str, UsageStats]:
        try:
            raw = self._store.get_item(USAGE_STATS_KEY)
        except Exception as e:
            logger.error(f"Failed to read usage stats: {e}")
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Stored usage stats are not valid JSON, starting fresh: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        stats = {}
        for name, entry in data.items():
            if isinstance(entry, dict):
                stats[name] = UsageStats.from_dict(entry)
        logger.debug(f"Loaded usage stats for {len(stats)} providers")
        return stats

    def _save(self) -> None:
        data = {name: stats.to_dict() for name, stats in self._stats.items()}
        try:
            self._store.set_item(USAGE_STATS_KEY, json.dumps(data))
        except Exception as e:
            logger.error(f"Failed to save usage stats: {e}")

    def reset_counters_if_needed(self, now: Optional[datetime] = None) -> None:
        """
        Zero daily counters whose last reset was on an earlier day.

        Monthly counters are zeroed as well when the month has changed.

        Args:
            now: Reference time, defaults to the current local time.
        """
        now = now or datetime.now()
        today = now.date()
        with self._lock:
            for name, stats in self._stats.items():
                last = stats.last_reset
                if last.date() == today:
                    continue
                stats.daily_calls = 0
                if (last.year, last.month) != (now.year, now.month):
                    stats.monthly_calls = 0
                stats.last_reset = now
                logger.debug(f"Reset daily counters for {name}")
            self._save()

    def can_make_request(self, name: str, include_pending: bool = True) -> bool:
        """
        Check whether a provider still has quota.

        Args:
            name: Provider name.
            include_pending: Count reserved but unrecorded slots as used.

        Returns:
            False for unknown providers or exhausted quota, True otherwise.
        """
        with self._lock:
            stats = self._stats.get(name)
            config = self._configs.get(name)
            if stats is None or config is None:
                return False
            pending = self._in_flight.get(name, 0) if include_pending else 0
            return (
                stats.daily_calls + pending < config.rate_limit.daily
                and stats.monthly_calls + pending < config.rate_limit.monthly
            )

    def acquire(self, name: str) -> bool:
        """
        Atomically check quota and reserve one call slot.

        Returns:
            True if a slot was reserved; the caller must then report the
            outcome through increment_usage(name, success, reserved=True)
            or give the slot back with release.
        """
        with self._lock:
            if not self.can_make_request(name):
                return False
            self._in_flight[name] = self._in_flight.get(name, 0) + 1
            return True

    def release(self, name: str) -> None:
        """Give back a reserved slot without recording a call."""
        with self._lock:
            pending = self._in_flight.get(name, 0)
            if pending > 1:
                self._in_flight[name] = pending - 1
            else:
                self._in_flight.pop(name, None)

    def increment_usage(self, name: str, success: bool, reserved: bool = False) -> None:
        """
        Record one call attempt and persist all counters.

        Args:
            name: Provider name. Unknown names are ignored.
            success: Whether the call produced a usable result.
            reserved: The attempt used a slot taken with acquire, which is
                consumed by this call.
        """
        with self._lock:
            if reserved:
                self.release(name)
            stats = self._stats.get(name)
            if stats is None:
                return
            stats.daily_calls += 1
            stats.monthly_calls += 1
            if not success:
                stats.failures += 1
            self._save()

    def get_failures(self, name: str) -> int:
        with self._lock:
            stats = self._stats.get(name)
            return stats.failures if stats else 0

    def reset_failures(self, name: str) -> None:
        """Set a provider's failure tally back to zero."""
        with self._lock:
            stats = self._stats.get(name)
            if stats is None:
                return
            stats.failures = 0
            self._save()

    def get_stats(self, name: str) -> Optional[UsageStats]:
        """Return a copy of a provider's counters, or None if unknown."""
        with self._lock:
            stats = self._stats.get(name)
            if stats is None:
                return None
            return UsageStats(stats.daily_calls, stats.monthly_calls, stats.last_reset, stats.failures)

    def has_stats(self, name: str) -> bool:
        with self._lock:
            return name in self._stats

    def snapshot(self) -> Dict[str, UsageStats]:
        """Return copies of all counters keyed by provider name."""
        with self._lock:
            return {name: self.get_stats(name) for name in self._stats}

    def simulate_failover(
        self, name: str, duration: float = DEFAULT_FAILOVER_SECONDS
    ) -> Optional[threading.Timer]:
        """
        Force a provider to the back of its tier for a while.

        Adds a large failure penalty and schedules the tally to be reset.

        Args:
            name: Provider name.
            duration: Seconds until failures are reset to zero.

        Returns:
            The started timer, or None if the provider is unknown.
        """
        with self._lock:
            stats = self._stats.get(name)
            if stats is None:
                logger.warning(f"Cannot simulate failover for unknown provider '{name}'")
                return None
            stats.failures += FAILOVER_PENALTY
            self._save()

        timer = threading.Timer(duration, self.reset_failures, args=(name,))
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()
        logger.info(f"Simulating failover for {name} for {duration:.0f}s")
        return timer

    def cancel_timers(self) -> None:
        with self._lock:
            for timer in self._timers:
                timer.cancel()
            self._timers.clear()

    def get_usage_status(
        self, warning_percent: float = 70.0, critical_percent: float = 90.0
    ) -> Dict[str, Any]:
        """
        Summarize quota health for every configured provider.

        Args:
            warning_percent: Usage above this percent is reported as warning.
            critical_percent: Usage above this percent is reported as critical.

        Returns:
            Dict with ``apis`` (per-provider usage and status),
            ``total_cost`` and ``recommendations``.
        """
        self.initialize()
        self.reset_counters_if_needed()

        apis = []
        recommendations = []
        with self._lock:
            for name, config in self._configs.items():
                stats = self._stats.get(name) or UsageStats()
                daily_percent = stats.daily_calls / config.rate_limit.daily * 100
                monthly_percent = stats.monthly_calls / config.rate_limit.monthly * 100

                status = UsageLevel.HEALTHY
                if daily_percent > critical_percent or monthly_percent > critical_percent:
                    status = UsageLevel.CRITICAL
                    recommendations.append(f"{name} usage is critical - consider upgrading plan")
                elif daily_percent > warning_percent or monthly_percent > warning_percent:
                    status = UsageLevel.WARNING
                    recommendations.append(f"{name} usage is high - monitor closely")

                apis.append({
                    "name": name,
                    "daily_usage": stats.daily_calls,
                    "daily_limit": config.rate_limit.daily,
                    "monthly_usage": stats.monthly_calls,
                    "monthly_limit": config.rate_limit.monthly,
                    "failures": stats.failures,
                    "status": status.value,
                })

        return {
            "apis": apis,
            "total_cost": 0.0,
            "recommendations": recommendations,
        }


__all__ = [
    "USAGE_STATS_KEY",
    "FAILOVER_PENALTY",
    "DEFAULT_FAILOVER_SECONDS",
    "UsageTracker",
]
