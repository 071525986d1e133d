from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase
from .engine import metadata


def utcnow() -> datetime:
    """Naive UTC timestamp, stored as-is by every backend"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    metadata = metadata
