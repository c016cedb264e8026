"""
Storage Layer - File storage management

Provides file system storage operations:
- Flat-directory local storage
- Path resolution and containment checks
- Bounded-memory streaming reads and writes
"""

from .local import LocalFileStorage

__all__ = ["LocalFileStorage"]
