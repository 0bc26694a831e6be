"""
OpenWeatherMap adapter for FleetPilot.

Uses the One Call 3.0 endpoint in imperial units and normalizes the
``current`` block into a WeatherResult.
"""

from typing import Any, Dict

from ..core.api_manager.types import Capability, WeatherResult
from .base import BaseProviderAdapter

__all__ = ["OpenWeatherMapAdapter", "METERS_TO_MILES", "DEFAULT_VISIBILITY_MILES"]

METERS_TO_MILES = 0.000621371
DEFAULT_VISIBILITY_MILES = 10


class OpenWeatherMapAdapter(BaseProviderAdapter):
    """Adapter for OpenWeatherMap One Call."""

    capabilities = (Capability.WEATHER,)

    def _fetch(self, capability: Capability, params: Dict[str, Any]) -> WeatherResult:
        data = self._get_json(
            f"{self.base_url}/data/3.0/onecall",
            params={
                "lat": params["lat"],
                "lon": params["lon"],
                "appid": self.config.api_key,
                "units": "imperial",
                "exclude": "minutely,hourly,daily,alerts",
            },
        )

        current = data.get("current")
        if not current:
            raise self._invalid_response("OpenWeatherMap response has no current conditions")

        weather = current.get("weather") or [{}]
        visibility = current.get("visibility")
        return WeatherResult(
            temperature=round(current["temp"]),
            conditions=weather[0].get("description", ""),
            humidity=current.get("humidity"),
            wind_speed=round(current.get("wind_speed") or 0),
            visibility=round(visibility * METERS_TO_MILES) if visibility else DEFAULT_VISIBILITY_MILES,
            rain="Risk" if current.get("rain") else "No Risk",
        )
