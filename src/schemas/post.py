from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import EmailStr, Field

from .base import CamelModel

# a full URL, or a bare blob path as returned by the upload endpoint
IMAGE_URL_PATTERN = r"^(https?://.*|[\w-]+\.[a-zA-Z]{2,5})$"


class PostImageInput(CamelModel):
    image_url: str = Field(..., pattern=IMAGE_URL_PATTERN, max_length=500)
    display_order: int = Field(..., ge=0)


class CreatePostRequest(CamelModel):
    """New listing, created as a draft"""

    title: str = Field(..., min_length=5, max_length=255)
    category_id: int = Field(..., gt=0)
    description: str = Field(..., min_length=10)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    location: str = Field(..., min_length=1, max_length=255)
    contact_number: str = Field(..., min_length=1, max_length=20)
    brand: Optional[str] = Field(None, max_length=100)
    email_address: Optional[EmailStr] = None
    delivery_method: Optional[str] = Field(None, max_length=100)
    gps_location: Optional[str] = Field(None, max_length=100)
    images: List[PostImageInput] = Field(default_factory=list, max_length=10)


class UpdatePostRequest(CamelModel):
    title: Optional[str] = Field(None, min_length=5, max_length=255)
    description: Optional[str] = Field(None, min_length=10)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    category_id: Optional[int] = Field(None, gt=0)
    brand: Optional[str] = Field(None, max_length=100)
    delivery_method: Optional[str] = Field(None, max_length=100)
    contact_number: Optional[str] = Field(None, min_length=1, max_length=20)
    email_address: Optional[EmailStr] = None


class SchedulePostRequest(CamelModel):
    scheduled_time: datetime = Field(..., description="ISO 8601 publish time")
