"""
Simple config loader for server components.
Reads an optional TOML file that sits below environment variables in priority.

@.architecture
Incoming: config/settings.py, streaming.toml --- {TOML file path, load_config calls}
Processing: load_config(), get_config_path(), get_section() --- {3 jobs: config_loading, fallback_generation, section_extraction}
Outgoing: config/settings.py --- {Dict[str, Any] config data}
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HTTP_STREAMING_CONFIG"
DEFAULT_CONFIG_FILE = "streaming.toml"


def get_config_path() -> Path:
    """Path of the TOML config file (env override or ./streaming.toml)."""
    return Path(os.getenv(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from the TOML file.

    A missing file is not an error: the server runs on environment variables
    and defaults alone. A file that cannot be parsed is logged and ignored.
    """
    config_file = Path(path) if path is not None else get_config_path()
    if not config_file.is_file():
        return get_fallback_config()

    try:
        with open(config_file, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning(f"Failed to load config file {config_file}: {e}")
        return get_fallback_config()


def get_fallback_config() -> Dict[str, Any]:
    """Fallback configuration if the TOML file can't be loaded."""
    return {}


def get_section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return a table from the loaded config, tolerating absent or malformed sections."""
    section = config.get(name, {})
    return section if isinstance(section, dict) else {}
