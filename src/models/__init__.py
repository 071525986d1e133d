"""
ORM models
"""

from .base import Base, utcnow
from .user import User
from .category import Category
from .post import Post, PostImage, Like, View
from .message import Message
from .payment import PricingTier, Payment

__all__ = [
    "Base",
    "utcnow",
    "User",
    "Category",
    "Post",
    "PostImage",
    "Like",
    "View",
    "Message",
    "PricingTier",
    "Payment",
]
