"""
Geotab telematics adapter for FleetPilot.

Reads the truck's last reported GPS position from the Geotab JSON-RPC API
(``Get`` of ``DeviceStatusInfo``) using an existing session id as the key.
"""

from typing import Any, Dict, Optional

import httpx

from ..core.api_manager.errors import APIErrorType, ProviderError
from ..core.api_manager.types import APIConfig, Capability, LocationResult
from .base import BaseProviderAdapter

__all__ = ["GeotabAdapter"]

GPS_ACCURACY_METERS = 10


class GeotabAdapter(BaseProviderAdapter):
    """Adapter for the Geotab MyGeotab API."""

    capabilities = (Capability.GEOLOCATION,)

    def __init__(
        self,
        config: APIConfig,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        database: str = "",
        username: str = "",
        device_id: Optional[str] = None,
    ):
        super().__init__(config, timeout=timeout, transport=transport)
        self._database = database
        self._username = username
        self._device_id = device_id

    def _build_request(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "typeName": "DeviceStatusInfo",
            "resultsLimit": 1,
            "credentials": {
                "database": self._database,
                "userName": self._username,
                "sessionId": self.config.api_key,
            },
        }
        if self._device_id:
            params["search"] = {"deviceSearch": {"id": self._device_id}}
        return {"method": "Get", "params": params}

    def _fetch(self, capability: Capability, params: Dict[str, Any]) -> LocationResult:
        data = self._post_json(self.base_url, self._build_request())

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            message = error.get("message") or "Geotab request failed"
            names = " ".join(e.get("name", "") for e in error.get("errors") or [])
            error_type = (
                APIErrorType.AUTHENTICATION
                if "InvalidUserException" in names or "DbUnavailableException" in names
                else APIErrorType.INVALID_REQUEST
            )
            raise ProviderError(message, provider=self.name, error_type=error_type)

        results = data.get("result") or []
        if not results:
            raise self._invalid_response("Geotab returned no device status")

        status = results[0]
        latitude = status.get("latitude")
        longitude = status.get("longitude")
        if latitude is None or longitude is None:
            raise self._invalid_response("Geotab device status has no coordinates")

        return LocationResult(
            latitude=float(latitude), longitude=float(longitude), accuracy=GPS_ACCURACY_METERS, source="gps"
        )
