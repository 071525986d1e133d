from typing import Optional

from pydantic import BaseModel, Field


class UploadedImage(BaseModel):
    """Single image upload result"""

    url: str = Field(..., description="Blob path, stored on the post")
    previewUrl: str = Field(..., description="Time-limited SAS URL for display")
    filename: str = Field(..., description="Original file name")
    size: int = Field(..., description="Size in bytes")
    mimeType: str = Field(..., description="Declared content type")


class UploadItemError(BaseModel):
    code: str
    message: str
    details: Optional[str] = None


class BatchUploadResultItem(BaseModel):
    """Per-file result of a batch upload"""

    success: bool
    url: Optional[str] = None
    previewUrl: Optional[str] = None
    filename: str
    size: int
    mimeType: str
    error: Optional[UploadItemError] = None
