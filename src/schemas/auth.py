from typing import Optional

from pydantic import EmailStr, Field

from .base import CamelModel

PHONE_PATTERN = r"^\+[1-9]\d{1,14}$"


class RegisterRequest(CamelModel):
    """Registration with email and password"""

    email_address: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=8, description="Password")
    full_name: str = Field(..., min_length=2, max_length=255, description="Display name")
    phone_number: Optional[str] = Field(
        None, pattern=PHONE_PATTERN, description="E.164 phone, e.g. +256700123456"
    )
    profile_picture_url: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=500)


class LoginRequest(CamelModel):
    email_address: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, description="Password")


class OAuthLoginRequest(CamelModel):
    """Provider access token obtained by the front end"""

    access_token: str = Field(..., min_length=1, description="Provider access token")


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token")
