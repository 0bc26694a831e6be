"""
FleetPilot core package.

This package contains the hybrid API layer used by the FleetPilot driver
app: tiered provider selection, quota tracking, response caching and
fallback chains for geolocation, weather and engine diagnostics.
"""

from .core.version import get_version

__version__ = get_version()

__all__ = ["__version__"]
