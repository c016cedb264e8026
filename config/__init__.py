"""
Configuration Layer

Typed settings loaded from environment variables and an optional TOML file.
"""

from .settings import (
    Settings,
    ServerSettings,
    StorageSettings,
    MonitoringSettings,
    build_settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "ServerSettings",
    "StorageSettings",
    "MonitoringSettings",
    "build_settings",
    "get_settings",
    "reload_settings",
]
