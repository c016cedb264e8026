"""
Health Schemas

@.architecture
Incoming: api/endpoints/health.py --- {uptime, storage stats}
Processing: Pydantic serialization --- {1 job: serialization}
Outgoing: api/endpoints/health.py --- {HealthResponse}
"""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness report."""
    status: str = "ok"
    version: str
    uptime_seconds: float
    storage_root: str
    total_files: int
    total_size_bytes: int
