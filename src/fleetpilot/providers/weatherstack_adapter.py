"""
WeatherStack adapter for FleetPilot.

Queries current conditions by coordinates in Fahrenheit units. WeatherStack
reports failures in a 200 response body, so those are mapped here.
"""

from typing import Any, Dict

from ..core.api_manager.errors import APIErrorType, ProviderError
from ..core.api_manager.types import Capability, WeatherResult
from .base import BaseProviderAdapter

__all__ = ["WeatherStackAdapter"]

# https://weatherstack.com/documentation#api_error_codes
_AUTH_ERROR_CODES = {101, 102, 103}
_QUOTA_ERROR_CODES = {104, 105}


class WeatherStackAdapter(BaseProviderAdapter):
    """Adapter for the WeatherStack current endpoint."""

    capabilities = (Capability.WEATHER,)

    def _fetch(self, capability: Capability, params: Dict[str, Any]) -> WeatherResult:
        data = self._get_json(
            f"{self.base_url}/current",
            params={
                "access_key": self.config.api_key,
                "query": f"{params['lat']},{params['lon']}",
                "units": "f",
            },
        )

        if data.get("success") is False or "error" in data:
            error = data.get("error") or {}
            code = error.get("code")
            if code in _AUTH_ERROR_CODES:
                error_type = APIErrorType.AUTHENTICATION
            elif code in _QUOTA_ERROR_CODES:
                error_type = APIErrorType.QUOTA_EXCEEDED
            else:
                error_type = APIErrorType.INVALID_REQUEST
            raise ProviderError(
                error.get("info") or "WeatherStack request failed",
                provider=self.name,
                error_type=error_type,
            )

        current = data.get("current")
        if not current:
            raise self._invalid_response("WeatherStack response has no current conditions")

        descriptions = current.get("weather_descriptions") or [""]
        return WeatherResult(
            temperature=round(current["temperature"]),
            conditions=descriptions[0],
            humidity=current.get("humidity"),
            wind_speed=round(current.get("wind_speed") or 0),
            visibility=round(current.get("visibility") or 10),
            rain="Risk" if (current.get("precip") or 0) > 0 else "No Risk",
        )
