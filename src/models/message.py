"""
Direct message model

Read state is tracked per side: the recipient flag starts False, the sender
flag starts True since the sender has seen their own message
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .base import Base, utcnow
from .enums import MessageType
from .user import User


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("messages_participants_idx", "sender_id", "recipient_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    recipient_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    post_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("posts.id", ondelete="SET NULL")
    )
    parent_message_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("messages.id", ondelete="SET NULL")
    )
    content: Mapped[str] = mapped_column(Text)
    message_type: Mapped[str] = mapped_column(
        String(20), default=MessageType.TEXT.value
    )
    attachment_url: Mapped[Optional[str]] = mapped_column(String(500))
    is_read_by_recipient: Mapped[bool] = mapped_column(Boolean, default=False)
    recipient_read_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    is_read_by_sender: Mapped[bool] = mapped_column(Boolean, default=True)
    sender_read_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_by: Mapped[Optional[int]] = mapped_column(Integer)
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False)
    edited_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    sender: Mapped[User] = relationship(foreign_keys=[sender_id], lazy="selectin")
    recipient: Mapped[User] = relationship(
        foreign_keys=[recipient_id], lazy="selectin"
    )
