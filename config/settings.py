"""
Settings Management

Pydantic-based settings schema with environment variable support.
Merges an optional TOML config file and provides type-safe access.

@.architecture
Incoming: utils/config.py, Environment variables, streaming.toml, main.py, app.py --- {Dict from load_toml_config, str from os.getenv, get_settings calls}
Processing: get_settings(), reload_settings(), field_validator() --- {4 jobs: configuration_loading, environment_variable_merging, schema_validation, caching}
Outgoing: main.py, app.py, core/server.py, api/dependencies.py --- {Settings Pydantic model with typed config sections}
"""

import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from utils.config import load_config as load_toml_config, get_section


# Port sources, highest priority first. The first is set by the Azure
# Functions host when the server runs as a custom handler.
PORT_ENV_VARS = ("FUNCTIONS_CUSTOMHANDLER_PORT", "HTTP_STREAMING_PORT")
STORAGE_ENV_VAR = "HTTP_STREAMING_STORAGE"


# =============================================================================
# Settings Schemas
# =============================================================================

class ServerSettings(BaseModel):
    """HTTP listener settings."""
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=0, le=65535)
    shutdown_grace_seconds: float = Field(default=0.0, ge=0.0)


class StorageSettings(BaseModel):
    """File storage settings."""
    path: Optional[Path] = None
    chunk_size: int = Field(default=64 * 1024, gt=0)


class MonitoringSettings(BaseModel):
    """Monitoring and logging configuration."""
    log_level: str = "INFO"
    log_format: str = "text"  # json|text
    metrics_enabled: bool = True

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format value."""
        allowed = ['json', 'text']
        if v not in allowed:
            raise ValueError(f"Log format must be one of {allowed}")
        return v


class Settings(BaseModel):
    """
    Main application settings.

    Loads configuration from:
    1. Environment variables
    2. TOML config file (streaming.toml)
    3. Defaults defined in schemas

    Priority: Environment variables > TOML config > Defaults
    """

    app_name: str = "HTTP Streaming Server"
    app_version: str = "1.0.0"
    environment: str = "development"  # development|production|test

    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ['development', 'production', 'test']
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v


# =============================================================================
# Settings Loader
# =============================================================================

def _env_port() -> Optional[str]:
    for name in PORT_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


def build_settings(toml_config: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Build settings from a TOML dict and the process environment.

    Args:
        toml_config: Parsed TOML config (loaded from disk when None)

    Returns:
        Settings: Complete application settings

    Raises:
        pydantic.ValidationError: If a value is out of range or malformed
    """
    if toml_config is None:
        toml_config = load_toml_config()

    server_settings: Dict[str, Any] = dict(get_section(toml_config, "server"))
    storage_settings: Dict[str, Any] = dict(get_section(toml_config, "storage"))
    monitoring_settings: Dict[str, Any] = dict(get_section(toml_config, "monitoring"))

    if port := _env_port():
        server_settings["port"] = port
    if host := os.getenv("HTTP_STREAMING_HOST"):
        server_settings["host"] = host
    if grace := os.getenv("HTTP_STREAMING_SHUTDOWN_GRACE"):
        server_settings["shutdown_grace_seconds"] = grace

    if storage_path := os.getenv(STORAGE_ENV_VAR):
        storage_settings["path"] = storage_path
    if not storage_settings.get("path"):
        storage_settings["path"] = tempfile.mkdtemp(prefix="http-streaming-storage")

    if log_level := os.getenv("HTTP_STREAMING_LOG_LEVEL"):
        monitoring_settings["log_level"] = log_level
    if log_format := os.getenv("HTTP_STREAMING_LOG_FORMAT"):
        monitoring_settings["log_format"] = log_format

    environment = os.getenv(
        "HTTP_STREAMING_ENVIRONMENT",
        toml_config.get("environment", "development")
    )

    return Settings(
        environment=environment,
        server=server_settings,
        storage=storage_settings,
        monitoring=monitoring_settings,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Load and return application settings (cached).

    Returns:
        Settings: Complete application settings
    """
    return build_settings()


def reload_settings() -> Settings:
    """
    Reload settings (clears cache).

    Returns:
        Settings: Reloaded application settings
    """
    get_settings.cache_clear()
    return get_settings()

