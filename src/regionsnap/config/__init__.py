"""Configuration package.

Usage:
    from regionsnap.config import get_settings

    settings = get_settings()
    settings.parallel_detectors
"""

from .settings import RegionSnapSettings, get_settings, reset_settings

__all__ = [
    "RegionSnapSettings",
    "get_settings",
    "reset_settings",
]
