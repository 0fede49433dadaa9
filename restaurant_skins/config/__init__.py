"""Configuration and logging."""

from restaurant_skins.config.settings import Settings, get_settings
from restaurant_skins.config.logging import configure_logging

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
]
