"""
Direct message routes
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_message_service
from src.core.auth import get_current_user
from src.core.responses import success_response
from src.middleware.rate_limit import create_limit
from src.models import User
from src.models.engine import get_db
from src.schemas import SendMessageRequest, UpdateMessageRequest
from src.service.message_service import MessageService

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/conversations")
async def get_conversations(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
):
    conversations = await message_service.get_conversations(db, current_user.id, limit, offset)
    return success_response(conversations)


@router.put("/conversations/{user_id}/read")
async def mark_conversation_as_read(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
):
    result = await message_service.mark_conversation_as_read(db, current_user.id, user_id)
    return success_response(result, "Conversation marked as read")


@router.get("/unread-count")
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
):
    return success_response(await message_service.get_unread_count(db, current_user.id))


@router.get("/user/{user_id}")
async def get_messages(
    user_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    post_id: Optional[int] = Query(None, alias="postId", gt=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
):
    messages = await message_service.get_messages(
        db, current_user.id, user_id, limit, offset, post_id
    )
    return success_response(messages)


@router.post("", status_code=status.HTTP_201_CREATED)
@create_limit
async def send_message(
    request: Request,
    body: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
):
    message = await message_service.send_message(db, current_user.id, body)
    return success_response(message, "Message sent successfully")


@router.put("/{message_id}/read")
async def mark_as_read(
    message_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
):
    message = await message_service.mark_as_read(db, message_id, current_user.id)
    return success_response(message, "Message marked as read")


@router.put("/{message_id}")
async def edit_message(
    message_id: int,
    body: UpdateMessageRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
):
    message = await message_service.edit_message(
        db, message_id, current_user.id, body.message_content
    )
    return success_response(message, "Message updated successfully")


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
):
    await message_service.delete_message(db, message_id, current_user.id)
    return success_response(None, "Message deleted successfully")
