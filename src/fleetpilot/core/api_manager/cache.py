"""
Response cache for the API Manager package.

This module provides the ResponseCache class which memoizes successful
provider responses for a caller-chosen TTL, bounded by an entry cap.
"""

import json
import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Optional

from loguru import logger

from .types import CacheEntry

SECONDS_PER_HOUR = 3600


def make_cache_key(service: str, endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
    """
    Build a deterministic cache key.

    Args:
        service: Logical service name (e.g. "weather").
        endpoint: Endpoint within the service (e.g. "current").
        params: Optional request parameters; serialized with sorted keys.

    Returns:
        Key of the form ``"{service}_{endpoint}_{json}"``.
    """
    param_string = json.dumps(params, sort_keys=True, separators=(",", ":")) if params is not None else ""
    return f"{service}_{endpoint}_{param_string}"


class ResponseCache:
    """
    In-memory TTL cache with a hard entry cap.

    When the cap is reached, expired entries are swept first and then the
    least recently used entry is evicted. Reads refresh recency.
    """

    def __init__(self, max_entries: int = 256):
        """
        Initialize the ResponseCache.

        Args:
            max_entries: Maximum number of entries held at once.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._max_entries = max_entries

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Optional[Any]:
        """
        Get cached data for a key.

        Args:
            key: Cache key from make_cache_key.

        Returns:
            The cached data if present and fresh, None otherwise.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss: {key}")
                return None
            if not entry.is_fresh(time.time()):
                logger.debug(f"Cache stale: {key}")
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            logger.debug(f"Cache hit: {key}")
            return entry.data

    def set(self, key: str, data: Any, ttl_hours: float = 1.0) -> None:
        """
        Store data under a key.

        Args:
            key: Cache key from make_cache_key.
            data: Value to memoize.
            ttl_hours: Time-to-live in hours.
        """
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self._max_entries:
                self._make_room()
            self._entries[key] = CacheEntry(data=data, timestamp=time.time(), ttl=ttl_hours * SECONDS_PER_HOUR)

    def _make_room(self) -> None:
        removed = self.sweep_expired()
        if removed == 0 and self._entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache full, evicted least recently used entry: {evicted}")

    def sweep_expired(self) -> int:
        """
        Drop all stale entries.

        Returns:
            Number of entries removed.
        """
        now = time.time()
        with self._lock:
            stale = [key for key, entry in self._entries.items() if not entry.is_fresh(now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Swept {len(stale)} expired cache entries")
        return len(stale)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = [
    "SECONDS_PER_HOUR",
    "make_cache_key",
    "ResponseCache",
]
