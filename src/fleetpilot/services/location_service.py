"""
Location service for FleetPilot.

Resolves the truck position from the best available source: the device
position source, then telematics or IP geolocation through the hybrid API
manager, then the last known fix, and finally a fixed placeholder at the
geographic center of the contiguous United States.
"""

import math
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from ..core.api_manager import HybridAPIManager, get_api_manager

EARTH_RADIUS_MILES = 3959
COMPLIANCE_ACCURACY_METERS = 100


class LocationSource(str, Enum):
    GPS = "gps"
    NETWORK = "network"
    IP = "ip"
    MOCK = "mock"


class LocationQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass
class LocationData:
    """A position fix. ``accuracy`` is in meters."""

    latitude: float
    longitude: float
    accuracy: float
    source: LocationSource
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None


GEOGRAPHIC_CENTER = LocationData(
    latitude=39.8283,
    longitude=-98.5795,
    accuracy=100000,
    source=LocationSource.MOCK,
    city="Geographic Center",
    state="USA",
    address="United States",
)

PositionSource = Callable[[], Optional[LocationData]]
Geocoder = Callable[[str], Optional[LocationData]]


class LocationService:
    """
    Position lookup with layered fallbacks.

    ``get_current_location`` never raises and always returns a fix.
    """

    def __init__(
        self,
        api_manager: Optional[HybridAPIManager] = None,
        position_source: Optional[PositionSource] = None,
        geocoder: Optional[Geocoder] = None,
    ):
        """
        Initialize the LocationService.

        Args:
            api_manager: Manager used for network geolocation. Defaults to
                         the process-wide instance.
            position_source: Callable returning a device fix (GPS or
                             network), or None when unavailable.
            geocoder: Callable turning an address into a fix.
        """
        self._api_manager = api_manager
        self._position_source = position_source
        self._geocoder = geocoder
        self._last_known: Optional[LocationData] = None
        self._lock = threading.RLock()

    @property
    def api_manager(self) -> HybridAPIManager:
        if self._api_manager is None:
            self._api_manager = get_api_manager()
        return self._api_manager

    def _remember(self, location: LocationData) -> LocationData:
        with self._lock:
            self._last_known = location
        return location

    def get_current_location(self) -> LocationData:
        """Best available position fix."""
        if self._position_source is not None:
            try:
                location = self._position_source()
                if location is not None:
                    return self._remember(location)
            except Exception as e:
                logger.info(f"Device location failed, trying fallback methods: {e}")

        try:
            result = self.api_manager.get_location()
        except Exception as e:
            logger.warning(f"Network geolocation failed: {e}")
            result = None
        if result is not None:
            return self._remember(LocationData(
                latitude=result.latitude,
                longitude=result.longitude,
                accuracy=result.accuracy,
                source=LocationSource(result.source),
                city=result.city,
            ))

        with self._lock:
            last_known = self._last_known
        if last_known is not None:
            # stale fix, report reduced accuracy
            return replace(last_known, accuracy=last_known.accuracy * 2)

        logger.warning("No location source available, using geographic center placeholder")
        return replace(GEOGRAPHIC_CENTER)

    def get_last_known_location(self) -> Optional[LocationData]:
        with self._lock:
            return self._last_known

    def geocode_address(self, address: str) -> Optional[LocationData]:
        """
        Resolve an address through the configured geocoder.

        Returns:
            The fix, or None if no geocoder is configured or it fails.
        """
        if self._geocoder is None:
            logger.debug("No geocoder configured")
            return None
        try:
            return self._geocoder(address)
        except Exception as e:
            logger.error(f"Geocoding failed: {e}")
            return None

    @staticmethod
    def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Great-circle distance in miles."""
        d_lat = math.radians(lat2 - lat1)
        d_lon = math.radians(lon2 - lon1)
        a = (
            math.sin(d_lat / 2) ** 2
            + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
        )
        return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    @staticmethod
    def is_location_accurate_for_compliance(location: LocationData) -> bool:
        """Whether a fix is precise enough for duty-status records."""
        return (
            location.accuracy < COMPLIANCE_ACCURACY_METERS
            and location.source not in (LocationSource.IP, LocationSource.MOCK)
        )

    @staticmethod
    def get_location_quality(location: LocationData) -> LocationQuality:
        if location.source == LocationSource.GPS and location.accuracy < 10:
            return LocationQuality.EXCELLENT
        if location.source == LocationSource.GPS and location.accuracy < 50:
            return LocationQuality.GOOD
        if location.source == LocationSource.NETWORK or location.accuracy < 1000:
            return LocationQuality.FAIR
        return LocationQuality.POOR


__all__ = [
    "LocationService",
    "LocationData",
    "LocationSource",
    "LocationQuality",
    "GEOGRAPHIC_CENTER",
]
