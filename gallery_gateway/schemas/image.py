"""
Pydantic schemas for gallery image endpoints.
"""
from pydantic import BaseModel, Field
from typing import List


class MessageResponse(BaseModel):
    """Plain message body, used for single deletes and all errors."""
    message: str


class UploadResponse(BaseModel):
    """Schema for upload response."""
    message: str
    count: int = Field(..., description="Number of images stored")
    urls: List[str] = Field(..., description="Public URL of each stored image, in upload order")

    class Config:
        json_schema_extra = {
            "example": {
                "message": "2 image(s) uploaded successfully.",
                "count": 2,
                "urls": [
                    "https://my-bucket.s3.ap-northeast-2.amazonaws.com/gallery/1718000000000-cat.png",
                    "https://my-bucket.s3.ap-northeast-2.amazonaws.com/gallery/1718000000000-dog.jpg"
                ]
            }
        }


class BatchDeleteError(BaseModel):
    """A key the backend failed to delete."""
    key: str
    code: str
    message: str


class BatchDeleteResult(BaseModel):
    """
    Outcome of a batch delete.

    Keys are the caller-facing keys, without the gallery prefix.
    """
    deleted: List[str] = Field(default_factory=list)
    errors: List[BatchDeleteError] = Field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.errors)


class BatchDeleteResponse(BaseModel):
    """Schema for batch delete response (200 or 207)."""
    message: str
    deleted: List[str]
    errors: List[BatchDeleteError] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "message": "Some images could not be deleted.",
                "deleted": ["1718000000000-cat.png"],
                "errors": [
                    {"key": "1718000000000-dog.jpg", "code": "AccessDenied", "message": "Access Denied"}
                ]
            }
        }
