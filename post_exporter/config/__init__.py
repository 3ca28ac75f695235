"""Configuration module."""

from post_exporter.config.logging import configure_logging, get_logger
from post_exporter.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "configure_logging",
    "get_logger",
    "get_settings",
]
