"""
Version helpers for FleetPilot.

Provides a single function get_version() that returns the installed package version.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as pkg_version
from typing import Final

DEFAULT_VERSION: Final[str] = "0.0.0+local"


def get_version() -> str:
    """Resolve the installed package version, or DEFAULT_VERSION when not installed."""
    try:
        return pkg_version("fleetpilot")
    except PackageNotFoundError:
        return DEFAULT_VERSION


__all__ = ["get_version", "DEFAULT_VERSION"]
