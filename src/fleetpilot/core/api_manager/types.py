"""
Type definitions for the API Manager package.

This module contains core data types used across the API manager:
- Capability / ProviderTier: what a provider serves and how it ranks
- RateLimit / APIConfig: static per-provider descriptors
- UsageStats: per-provider mutable counters
- CacheEntry: a cached provider response
- LocationResult / WeatherResult / DiagnosticsResult: normalized responses
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Capability(str, Enum):
    """Capabilities a provider can serve."""

    GEOLOCATION = "geolocation"
    WEATHER = "weather"
    DIAGNOSTICS = "diagnostics"


class ProviderTier(str, Enum):
    """Provider priority tier. Primary providers are tried first."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class UsageLevel(str, Enum):
    """Quota health reported by the usage status."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class RateLimit:
    """Daily and monthly call ceilings."""

    daily: int
    monthly: int


@dataclass(frozen=True)
class APIConfig:
    """Static descriptor of an external provider."""

    name: str
    base_url: str
    api_key: str
    rate_limit: RateLimit
    priority: ProviderTier
    used_for: Tuple[Capability, ...]

    def serves(self, capability: Capability) -> bool:
        return capability in self.used_for


@dataclass
class UsageStats:
    """Mutable usage counters for one provider."""

    daily_calls: int = 0
    monthly_calls: int = 0
    last_reset: datetime = field(default_factory=lambda: datetime.now())
    failures: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the stored field names."""
        return {
            "dailyCalls": self.daily_calls,
            "monthlyCalls": self.monthly_calls,
            "lastReset": self.last_reset.isoformat(),
            "failures": self.failures,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UsageStats":
        """
        Build stats from a stored mapping.

        Missing or malformed fields fall back to zero counters and the
        current time, so a damaged entry never blocks start-up.
        """
        raw = str(data.get("lastReset"))
        if raw.endswith("Z"):
            # toISOString() output; fromisoformat only accepts "Z" from 3.11
            raw = raw[:-1] + "+00:00"
        try:
            last_reset = datetime.fromisoformat(raw)
        except ValueError:
            last_reset = datetime.now()
        if last_reset.tzinfo is not None:
            last_reset = last_reset.astimezone().replace(tzinfo=None)
        return cls(
            daily_calls=int(data.get("dailyCalls", 0) or 0),
            monthly_calls=int(data.get("monthlyCalls", 0) or 0),
            last_reset=last_reset,
            failures=int(data.get("failures", 0) or 0),
        )


@dataclass
class CacheEntry:
    """A cached response. ``ttl`` is in seconds."""

    data: Any
    timestamp: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.timestamp < self.ttl


@dataclass
class LocationResult:
    """
    Coordinates from a geolocation provider. ``accuracy`` is in meters.

    ``source`` is how the provider obtained the fix: "ip" for address
    lookups, "gps" for telematics devices.
    """

    latitude: float
    longitude: float
    accuracy: float
    city: Optional[str] = None
    source: str = "ip"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WeatherResult:
    """Current conditions normalized to imperial units."""

    temperature: int
    conditions: str
    humidity: Optional[int]
    wind_speed: int
    visibility: int
    rain: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


GENERIC_DIAGNOSTICS_ISSUE = "Engine diagnostic analysis completed"


@dataclass
class DiagnosticsResult:
    """Issues found in an engine log, with severity from 1 to 5."""

    issues: List[str]
    severity: int

    @classmethod
    def generic(cls) -> "DiagnosticsResult":
        """Result used when a model reply could not be parsed."""
        return cls(issues=[GENERIC_DIAGNOSTICS_ISSUE], severity=2)

    @property
    def is_generic(self) -> bool:
        return self.issues == [GENERIC_DIAGNOSTICS_ISSUE] and self.severity == 2

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "Capability",
    "ProviderTier",
    "UsageLevel",
    "RateLimit",
    "APIConfig",
    "UsageStats",
    "CacheEntry",
    "LocationResult",
    "WeatherResult",
    "DiagnosticsResult",
    "GENERIC_DIAGNOSTICS_ISSUE",
]
