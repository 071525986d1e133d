"""
User model
Stores profile data, credentials and the linked OAuth identity
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, DateTime, Integer, String, Text, Index
from sqlalchemy.orm import Mapped, mapped_column
from .base import Base, utcnow
from .enums import OAuthProvider


class User(Base):
    """
    Marketplace user

    password_hash is empty for accounts created through an OAuth provider
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("users_oauth_identity_idx", "oauth_provider", "oauth_provider_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), unique=True)
    payments_number: Mapped[Optional[str]] = mapped_column(String(20))
    full_name: Mapped[str] = mapped_column(String(255))
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))
    oauth_provider: Mapped[str] = mapped_column(
        String(20), default=OAuthProvider.LOCAL.value
    )
    oauth_provider_id: Mapped[Optional[str]] = mapped_column(String(255))
    profile_picture_url: Mapped[Optional[str]] = mapped_column(String(500))
    location: Mapped[Optional[str]] = mapped_column(String(255))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_phone_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    seller_rating: Mapped[Optional[float]] = mapped_column()
    total_ratings: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )
