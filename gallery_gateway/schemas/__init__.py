"""
Pydantic schemas for API request/response validation.
"""
from gallery_gateway.schemas.image import (
    BatchDeleteError,
    BatchDeleteResponse,
    BatchDeleteResult,
    MessageResponse,
    UploadResponse,
)

__all__ = [
    "BatchDeleteError",
    "BatchDeleteResponse",
    "BatchDeleteResult",
    "MessageResponse",
    "UploadResponse",
]
