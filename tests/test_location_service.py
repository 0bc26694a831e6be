"""
Tests for the location service fallbacks.
"""

import pytest

from fleetpilot.core.api_manager.manager import HybridAPIManager
from fleetpilot.core.api_manager.types import LocationResult
from fleetpilot.services.location_service import (
    GEOGRAPHIC_CENTER,
    LocationData,
    LocationQuality,
    LocationService,
    LocationSource,
)


@pytest.fixture
def manager(mocker):
    manager = mocker.Mock(spec=HybridAPIManager)
    manager.get_location.return_value = None
    return manager


GPS_FIX = LocationData(32.78, -96.8, 5, LocationSource.GPS, city="Dallas")


class TestCurrentLocation:
    """Tests for get_current_location."""

    def test_device_fix_preferred(self, manager):
        service = LocationService(api_manager=manager, position_source=lambda: GPS_FIX)

        assert service.get_current_location() == GPS_FIX
        manager.get_location.assert_not_called()

    def test_network_geolocation(self, manager):
        manager.get_location.return_value = LocationResult(40.7, -74.0, 50000, "New York")
        service = LocationService(api_manager=manager)

        location = service.get_current_location()

        assert location == LocationData(40.7, -74.0, 50000, LocationSource.IP, city="New York")
        assert service.get_last_known_location() == location

    def test_telematics_fix_keeps_gps_source(self, manager):
        """Test that a Geotab device fix is usable for compliance records."""
        manager.get_location.return_value = LocationResult(43.1, -79.2, 10, source="gps")
        service = LocationService(api_manager=manager)

        location = service.get_current_location()

        assert location.source == LocationSource.GPS
        assert LocationService.is_location_accurate_for_compliance(location) is True

    def test_device_failure_falls_back(self, manager, loguru_caplog):
        def broken():
            raise OSError("permission denied")

        manager.get_location.return_value = LocationResult(1.0, 2.0, 50000)
        service = LocationService(api_manager=manager, position_source=broken)

        assert service.get_current_location().source == LocationSource.IP
        assert "Device location failed" in loguru_caplog.text

    def test_last_known_with_degraded_accuracy(self, manager):
        # Arrange
        fixes = [GPS_FIX, None]
        service = LocationService(api_manager=manager, position_source=lambda: fixes.pop(0))
        service.get_current_location()

        # Act
        location = service.get_current_location()

        # Assert
        assert location.latitude == GPS_FIX.latitude
        assert location.accuracy == GPS_FIX.accuracy * 2
        assert service.get_last_known_location().accuracy == GPS_FIX.accuracy

    def test_geographic_center_placeholder(self, manager):
        location = LocationService(api_manager=manager).get_current_location()

        assert location == GEOGRAPHIC_CENTER
        assert location is not GEOGRAPHIC_CENTER
        assert location.source == LocationSource.MOCK

    def test_manager_error_never_raises(self, manager):
        manager.get_location.side_effect = RuntimeError("boom")

        assert LocationService(api_manager=manager).get_current_location() == GEOGRAPHIC_CENTER


class TestGeocoding:
    def test_no_geocoder(self, manager):
        assert LocationService(api_manager=manager).geocode_address("1 Main St") is None

    def test_geocoder(self, manager):
        service = LocationService(api_manager=manager, geocoder=lambda address: GPS_FIX)

        assert service.geocode_address("Dallas, TX") == GPS_FIX

    def test_geocoder_failure(self, manager):
        def broken(address):
            raise ValueError("bad address")

        assert LocationService(api_manager=manager, geocoder=broken).geocode_address("?") is None


class TestLocationMath:
    """Tests for the static helpers."""

    def test_distance_zero(self):
        assert LocationService.calculate_distance(40.0, -74.0, 40.0, -74.0) == 0

    def test_distance_new_york_to_los_angeles(self):
        distance = LocationService.calculate_distance(40.7128, -74.0060, 34.0522, -118.2437)

        assert distance == pytest.approx(2445, rel=0.01)

    @pytest.mark.parametrize(
        "location, expected",
        [
            (LocationData(0, 0, 5, LocationSource.GPS), True),
            (LocationData(0, 0, 150, LocationSource.GPS), False),
            (LocationData(0, 0, 5, LocationSource.IP), False),
            (LocationData(0, 0, 50, LocationSource.NETWORK), True),
        ],
    )
    def test_compliance_accuracy(self, location, expected):
        assert LocationService.is_location_accurate_for_compliance(location) is expected

    @pytest.mark.parametrize(
        "location, expected",
        [
            (LocationData(0, 0, 5, LocationSource.GPS), LocationQuality.EXCELLENT),
            (LocationData(0, 0, 30, LocationSource.GPS), LocationQuality.GOOD),
            (LocationData(0, 0, 5000, LocationSource.NETWORK), LocationQuality.FAIR),
            (LocationData(0, 0, 500, LocationSource.IP), LocationQuality.FAIR),
            (LocationData(0, 0, 50000, LocationSource.IP), LocationQuality.POOR),
        ],
    )
    def test_quality(self, location, expected):
        assert LocationService.get_location_quality(location) == expected
