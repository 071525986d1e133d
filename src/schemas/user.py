from typing import Optional

from pydantic import EmailStr, Field

from .auth import PHONE_PATTERN
from .base import CamelModel


class UpdateProfileRequest(CamelModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    payments_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    profile_picture_url: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=500)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class PasswordResetRequest(CamelModel):
    email_address: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1, description="Reset token")
    new_password: str = Field(..., min_length=8)
