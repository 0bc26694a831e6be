"""
ipapi IP geolocation adapter for FleetPilot.

Locates the device from its public IP address. Accuracy is coarse, so a
city-level default is reported when the provider does not give one.
"""

from typing import Any, Dict

from ..core.api_manager.errors import APIErrorType, ProviderError
from ..core.api_manager.types import Capability, LocationResult
from .base import BaseProviderAdapter

__all__ = ["IpapiAdapter", "IP_LOCATION_ACCURACY_METERS"]

IP_LOCATION_ACCURACY_METERS = 50000


class IpapiAdapter(BaseProviderAdapter):
    """Adapter for the ipapi requester lookup endpoint."""

    capabilities = (Capability.GEOLOCATION,)

    def _fetch(self, capability: Capability, params: Dict[str, Any]) -> LocationResult:
        data = self._get_json(f"{self.base_url}/json/", params={"access_key": self.config.api_key})

        if isinstance(data, dict) and data.get("success") is False:
            error = data.get("error") or {}
            error_type = APIErrorType.AUTHENTICATION if error.get("code") in (101, 102) else APIErrorType.INVALID_REQUEST
            raise ProviderError(
                error.get("info") or "ipapi request failed",
                provider=self.name,
                error_type=error_type,
            )

        latitude = data.get("latitude")
        longitude = data.get("longitude")
        if latitude is None or longitude is None:
            raise self._invalid_response("ipapi response has no coordinates")

        return LocationResult(
            latitude=float(latitude),
            longitude=float(longitude),
            accuracy=float(data.get("accuracy") or IP_LOCATION_ACCURACY_METERS),
            city=data.get("city"),
        )
