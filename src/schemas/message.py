from typing import Optional

from pydantic import Field

from src.models.enums import MessageType

from .base import CamelModel


class SendMessageRequest(CamelModel):
    recipient_id: int = Field(..., gt=0)
    message_content: str = Field(..., min_length=1, max_length=5000)
    message_type: MessageType = MessageType.TEXT
    post_id: Optional[int] = Field(None, gt=0)
    attachment_url: Optional[str] = Field(None, max_length=500, pattern=r"^https?://")
    parent_message_id: Optional[int] = Field(None, gt=0)


class UpdateMessageRequest(CamelModel):
    message_content: str = Field(..., min_length=1, max_length=5000)
