"""
Services package for FleetPilot.

This package contains the services built on top of the hybrid API
manager: configuration, the driver AI assistant and location lookup.
"""

from .config_service import ConfigService
from .ai_service import AIService, AIResponse, TruckingContext
from .location_service import LocationData, LocationService

__all__ = [
    "ConfigService",
    "AIService",
    "AIResponse",
    "TruckingContext",
    "LocationData",
    "LocationService",
]
