"""
Tests for data types in api_manager.types module.
"""

from datetime import datetime, timezone

from freezegun import freeze_time

from fleetpilot.core.api_manager.types import (
    GENERIC_DIAGNOSTICS_ISSUE,
    APIConfig,
    CacheEntry,
    Capability,
    DiagnosticsResult,
    LocationResult,
    ProviderTier,
    RateLimit,
    UsageStats,
    WeatherResult,
)


class TestAPIConfig:
    """Tests for provider descriptors."""

    def test_serves(self):
        """Test capability matching."""
        config = APIConfig(
            name="WeatherStack",
            base_url="https://api.weatherstack.com",
            api_key="k",
            rate_limit=RateLimit(5000, 150000),
            priority=ProviderTier.PRIMARY,
            used_for=(Capability.WEATHER,),
        )

        assert config.serves(Capability.WEATHER)
        assert not config.serves(Capability.GEOLOCATION)


class TestUsageStats:
    """Tests for UsageStats serialization."""

    def test_round_trip(self):
        """Test that stored field names are used and read back."""
        stats = UsageStats(daily_calls=3, monthly_calls=7, last_reset=datetime(2024, 5, 1, 8, 30), failures=2)

        data = stats.to_dict()

        assert data == {
            "dailyCalls": 3,
            "monthlyCalls": 7,
            "lastReset": "2024-05-01T08:30:00",
            "failures": 2,
        }
        assert UsageStats.from_dict(data) == stats

    def test_from_dict_tolerates_missing_fields(self):
        """Test that a damaged entry produces zeroed counters at the current time."""
        with freeze_time("2024-06-01 12:00:00"):
            stats = UsageStats.from_dict({"lastReset": "not a date"})

        assert stats.daily_calls == 0
        assert stats.monthly_calls == 0
        assert stats.failures == 0
        assert stats.last_reset == datetime(2024, 6, 1, 12, 0, 0)

    def test_from_dict_converts_aware_timestamp_to_naive(self):
        """Test that a timestamp with a zone offset becomes naive local time."""
        stats = UsageStats.from_dict({"lastReset": "2024-05-01T08:30:00+00:00"})

        expected = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert stats.last_reset.tzinfo is None
        assert stats.last_reset == expected

    def test_from_dict_accepts_utc_z_suffix(self):
        """Test that millisecond timestamps ending in "Z" parse instead of falling back to now."""
        stats = UsageStats.from_dict({"lastReset": "2024-03-10T12:00:00.000Z"})

        expected = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert stats.last_reset == expected


class TestCacheEntry:
    """Tests for entry freshness."""

    def test_is_fresh(self):
        entry = CacheEntry(data=1, timestamp=1000.0, ttl=60)

        assert entry.is_fresh(1059.0)
        assert not entry.is_fresh(1060.0)


class TestResults:
    """Tests for normalized result types."""

    def test_generic_diagnostics(self):
        """Test the generic result marker."""
        generic = DiagnosticsResult.generic()

        assert generic.issues == [GENERIC_DIAGNOSTICS_ISSUE]
        assert generic.severity == 2
        assert generic.is_generic
        assert not DiagnosticsResult(["Misfire"], 3).is_generic

    def test_to_dict(self):
        """Test plain dict conversion of results."""
        assert LocationResult(1.0, 2.0, 10.0).to_dict() == {
            "latitude": 1.0,
            "longitude": 2.0,
            "accuracy": 10.0,
            "city": None,
            "source": "ip",
        }
        assert WeatherResult(70, "Clear", 40, 5, 10, "No Risk").to_dict()["rain"] == "No Risk"
