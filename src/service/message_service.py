"""
Messaging service
Direct messages between users, optionally about a post, with per-side read state
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import BadRequestError, ForbiddenError, NotFoundError
from src.models import Message, Post, User, utcnow
from src.schemas import SendMessageRequest
from src.service.dto import message_dto, post_user_dto
from src.service.upload_service import UploadService

logger = logging.getLogger(__name__)


def _between(user_id: int, other_user_id: int):
    return or_(
        and_(Message.sender_id == user_id, Message.recipient_id == other_user_id),
        and_(Message.sender_id == other_user_id, Message.recipient_id == user_id),
    )


class MessageService:
    def __init__(self, config: Any, upload_service: UploadService):
        self.config = config
        self.upload_service = upload_service

    def present(self, message: Message) -> Dict[str, Any]:
        data = message_dto(message)
        data["sender"] = self.upload_service.transform_user_profile_url(data["sender"])
        data["recipient"] = self.upload_service.transform_user_profile_url(data["recipient"])
        return data

    async def _get_message(self, session: AsyncSession, message_id: int) -> Message:
        message = await session.get(Message, message_id)
        if message is None:
            raise NotFoundError("Message not found")
        return message

    async def send_message(
        self, session: AsyncSession, sender_id: int, data: SendMessageRequest
    ) -> Dict[str, Any]:
        """
        Send a direct message

        Raises:
            BadRequestError: Sending to yourself
            NotFoundError: Unknown recipient, post or parent message
            ForbiddenError: Replying to a conversation you are not part of
        """
        if data.recipient_id == sender_id:
            raise BadRequestError("Cannot send message to yourself")

        if await session.get(User, sender_id) is None:
            raise NotFoundError("Sender not found")
        if await session.get(User, data.recipient_id) is None:
            raise NotFoundError("Recipient not found")

        if data.post_id is not None and await session.get(Post, data.post_id) is None:
            raise NotFoundError("Post not found")

        if data.parent_message_id is not None:
            parent = await session.get(Message, data.parent_message_id)
            if parent is None:
                raise NotFoundError("Parent message not found")
            if sender_id not in (parent.sender_id, parent.recipient_id):
                raise ForbiddenError("You cannot reply to this message")

        message = Message(
            sender_id=sender_id,
            recipient_id=data.recipient_id,
            post_id=data.post_id,
            parent_message_id=data.parent_message_id,
            content=data.message_content,
            message_type=data.message_type.value,
            attachment_url=data.attachment_url,
        )
        session.add(message)
        await session.commit()
        message = await session.get(Message, message.id, populate_existing=True)

        logger.info(f"Message {message.id} sent from {sender_id} to {data.recipient_id}")
        return self.present(message)

    async def get_conversations(
        self, session: AsyncSession, user_id: int, limit: int = 20, offset: int = 0
    ) -> List[Dict[str, Any]]:
        """
        One entry per conversation partner, most recent conversation first

        Returns:
            [{otherUser, lastMessage, lastMessageAt, unreadCount, postId, postTitle}]
        """
        messages = (
            await session.scalars(
                select(Message)
                .where(
                    or_(Message.sender_id == user_id, Message.recipient_id == user_id),
                    Message.is_deleted.is_(False),
                )
                .order_by(Message.created_at.desc(), Message.id.desc())
            )
        ).all()

        conversations: Dict[int, Dict[str, Any]] = {}
        for message in messages:
            incoming = message.recipient_id == user_id
            other = message.sender if incoming else message.recipient
            entry = conversations.get(other.id)
            if entry is None:
                entry = conversations[other.id] = {
                    "otherUser": self.upload_service.transform_user_profile_url(
                        post_user_dto(other)
                    ),
                    "lastMessage": message.content,
                    "lastMessageAt": message.created_at.isoformat(),
                    "unreadCount": 0,
                    "postId": message.post_id,
                    "postTitle": None,
                }
            if incoming and not message.is_read_by_recipient:
                entry["unreadCount"] += 1

        page = list(conversations.values())[offset:offset + limit]

        post_ids = {entry["postId"] for entry in page if entry["postId"] is not None}
        if post_ids:
            titles = dict(
                (await session.execute(select(Post.id, Post.title).where(Post.id.in_(post_ids)))).all()
            )
            for entry in page:
                entry["postTitle"] = titles.get(entry["postId"])
        return page

    async def get_messages(
        self,
        session: AsyncSession,
        user_id: int,
        other_user_id: int,
        limit: int = 50,
        offset: int = 0,
        post_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        if await session.get(User, other_user_id) is None:
            raise NotFoundError("User not found")

        query = select(Message).where(
            _between(user_id, other_user_id), Message.is_deleted.is_(False)
        )
        if post_id is not None:
            query = query.where(Message.post_id == post_id)
        messages = (
            await session.scalars(
                query.order_by(Message.created_at.asc(), Message.id.asc())
                .offset(offset)
                .limit(limit)
            )
        ).all()
        return [self.present(message) for message in messages]

    async def mark_as_read(self, session: AsyncSession, message_id: int, user_id: int) -> Dict[str, Any]:
        """
        Mark the caller's side of a message as read

        Raises:
            ForbiddenError: The caller is not a participant
        """
        message = await self._get_message(session, message_id)
        now = utcnow()
        if message.recipient_id == user_id:
            message.is_read_by_recipient = True
            message.recipient_read_at = now
        elif message.sender_id == user_id:
            message.is_read_by_sender = True
            message.sender_read_at = now
        else:
            raise ForbiddenError("You are not a participant of this message")

        await session.commit()
        message = await session.get(Message, message.id, populate_existing=True)
        return self.present(message)

    async def mark_conversation_as_read(
        self, session: AsyncSession, user_id: int, other_user_id: int
    ) -> Dict[str, int]:
        now = utcnow()
        received = await session.execute(
            update(Message)
            .where(
                Message.sender_id == other_user_id,
                Message.recipient_id == user_id,
                Message.is_read_by_recipient.is_(False),
            )
            .values(is_read_by_recipient=True, recipient_read_at=now)
            .execution_options(synchronize_session=False)
        )
        sent = await session.execute(
            update(Message)
            .where(
                Message.sender_id == user_id,
                Message.recipient_id == other_user_id,
                Message.is_read_by_sender.is_(False),
            )
            .values(is_read_by_sender=True, sender_read_at=now)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        return {
            "recipientCount": received.rowcount,
            "senderCount": sent.rowcount,
            "count": received.rowcount + sent.rowcount,
        }

    async def edit_message(
        self, session: AsyncSession, message_id: int, user_id: int, content: str
    ) -> Dict[str, Any]:
        """
        Raises:
            ForbiddenError: Only the sender may edit
            BadRequestError: Message deleted or outside the edit window
        """
        message = await self._get_message(session, message_id)
        if message.sender_id != user_id:
            raise ForbiddenError("You can only edit your own messages")
        if message.is_deleted:
            raise BadRequestError("Cannot edit a deleted message")

        window = self.config.message_edit_window_minutes
        if utcnow() - message.created_at > timedelta(minutes=window):
            raise BadRequestError(f"Messages can only be edited within {window} minutes")

        message.content = content
        message.is_edited = True
        message.edited_at = utcnow()
        await session.commit()
        message = await session.get(Message, message.id, populate_existing=True)
        return self.present(message)

    async def delete_message(self, session: AsyncSession, message_id: int, user_id: int) -> None:
        message = await self._get_message(session, message_id)
        if user_id not in (message.sender_id, message.recipient_id):
            raise ForbiddenError("You are not a participant of this message")
        if message.is_deleted:
            raise BadRequestError("Message already deleted")

        message.is_deleted = True
        message.deleted_by = user_id
        await session.commit()
        logger.info(f"Message {message_id} deleted by user {user_id}")

    async def get_unread_count(self, session: AsyncSession, user_id: int) -> Dict[str, int]:
        count = await session.scalar(
            select(func.count(Message.id)).where(
                Message.recipient_id == user_id,
                Message.is_read_by_recipient.is_(False),
                Message.is_deleted.is_(False),
            )
        )
        return {"count": count or 0}
