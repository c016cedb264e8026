"""
API Schemas

Pydantic request/response models.
"""

from .files import UploadResponse
from .health import HealthResponse

__all__ = ["UploadResponse", "HealthResponse"]
