"""
Provider adapters for FleetPilot.
"""

from .base import BaseProviderAdapter
from .geotab_adapter import GeotabAdapter
from .google_ai_adapter import GoogleAIAdapter
from .huggingface_adapter import HuggingFaceAdapter
from .ipapi_adapter import IpapiAdapter
from .openweather_adapter import OpenWeatherMapAdapter
from .weatherstack_adapter import WeatherStackAdapter

__all__ = [
    "BaseProviderAdapter",
    "GeotabAdapter",
    "GoogleAIAdapter",
    "HuggingFaceAdapter",
    "IpapiAdapter",
    "OpenWeatherMapAdapter",
    "WeatherStackAdapter",
]
