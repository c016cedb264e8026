"""
Utilities

Shared helpers that do not belong to a single layer.
"""

from .config import load_config, get_config_path, get_section

__all__ = ["load_config", "get_config_path", "get_section"]
