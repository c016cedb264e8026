"""
File Transfer Schemas

Pydantic models for the upload endpoint.

@.architecture
Incoming: api/endpoints/files.py --- {filename, byte count}
Processing: Pydantic validation and serialization --- {1 job: serialization}
Outgoing: api/endpoints/files.py --- {UploadResponse}
"""

from pydantic import BaseModel, ConfigDict


class UploadResponse(BaseModel):
    """Response after a raw-body upload."""
    filename: str
    size_bytes: int
    message: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "filename": "large.bin",
                "size_bytes": 1048576,
                "message": "Uploaded large.bin (1048576 bytes)"
            }
        }
    )
