"""
User account service
Profile management, password change and reset, verification flags, account deletion
"""

import logging
from typing import Any, Dict

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    ValidationError,
)
from src.core.security import (
    create_password_reset_token,
    get_password_hash,
    peek_token_user_id,
    validate_password_strength,
    verify_password,
    verify_password_reset_token,
)
from src.models import Like, Message, Payment, Post, User, View
from src.models.enums import PostStatus
from src.schemas import UpdateProfileRequest
from src.service.dto import profile_dto
from src.service.post_service import delete_post_rows
from src.service.upload_service import UploadService

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If the email exists, a reset link will be sent"


class UserService:
    def __init__(self, config: Any, upload_service: UploadService):
        self.config = config
        self.upload_service = upload_service

    def present(self, user: User) -> Dict[str, Any]:
        return self.upload_service.transform_user_profile_url(profile_dto(user))

    async def _get_user(self, session: AsyncSession, user_id: int) -> User:
        user = await session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def _check_strength(password: str) -> None:
        errors = validate_password_strength(password)
        if errors:
            raise ValidationError(", ".join(errors))

    async def get_profile(self, session: AsyncSession, user_id: int) -> Dict[str, Any]:
        return self.present(await self._get_user(session, user_id))

    async def update_profile(
        self, session: AsyncSession, user_id: int, data: UpdateProfileRequest
    ) -> Dict[str, Any]:
        """
        Update the editable profile fields

        Raises:
            ConflictError: The phone number belongs to another account
        """
        user = await self._get_user(session, user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        phone_number = changes.get("phone_number")
        if phone_number and phone_number != user.phone_number:
            taken = await session.scalar(
                select(User.id).where(User.phone_number == phone_number, User.id != user_id)
            )
            if taken:
                raise ConflictError("Phone number already registered")
            # a new number has to be verified again
            user.is_phone_verified = False

        for field, value in changes.items():
            setattr(user, field, value)

        await session.commit()
        await session.refresh(user)
        logger.info(f"Profile updated: user {user_id} ({', '.join(changes) or 'no changes'})")
        return self.present(user)

    async def change_password(
        self, session: AsyncSession, user_id: int, current_password: str, new_password: str
    ) -> None:
        """
        Raises:
            BadRequestError: The account has no local password (OAuth only)
            AuthenticationError: INVALID_CREDENTIALS when the current password is wrong
            ValidationError: The new password is too weak
        """
        user = await self._get_user(session, user_id)
        if not user.password_hash:
            raise BadRequestError(
                f"Cannot change password for {user.oauth_provider} accounts"
            )
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError(
                "Current password is incorrect", code=ErrorCode.INVALID_CREDENTIALS
            )
        self._check_strength(new_password)

        user.password_hash = get_password_hash(new_password)
        await session.commit()
        logger.info(f"Password changed for user {user_id}")

    async def request_password_reset(self, session: AsyncSession, email: str) -> Dict[str, str]:
        """
        Issue a reset token for a local account

        The response never reveals whether the email is registered.
        """
        user = await session.scalar(select(User).where(User.email == email.lower()))
        if user is not None and user.password_hash and user.is_active:
            token = create_password_reset_token(user.id, user.email, user.password_hash)
            # no mail transport; operators hand the token over out of band
            logger.info(f"Password reset token issued for user {user.id}: {token}")
        return {"message": RESET_REQUESTED_MESSAGE}

    async def reset_password(self, session: AsyncSession, token: str, new_password: str) -> None:
        """
        Set a new password from a reset token

        The token is signed with a key derived from the current password hash,
        so it stops working once the password changes.

        Raises:
            BadRequestError: INVALID_TOKEN for a bad, expired or used token
            ValidationError: The new password is too weak
        """
        invalid = BadRequestError(
            "Invalid or expired reset token", code=ErrorCode.INVALID_TOKEN
        )
        user_id = peek_token_user_id(token)
        user = await session.get(User, user_id) if user_id is not None else None
        if user is None or not user.password_hash:
            raise invalid
        if verify_password_reset_token(token, user.password_hash) is None:
            raise invalid

        self._check_strength(new_password)
        user.password_hash = get_password_hash(new_password)
        await session.commit()
        logger.info(f"Password reset for user {user.id}")

    async def get_posts_summary(self, session: AsyncSession, user_id: int) -> Dict[str, int]:
        await self._get_user(session, user_id)
        rows = await session.execute(
            select(Post.status, func.count(Post.id))
            .where(Post.user_id == user_id)
            .group_by(Post.status)
        )
        counts = dict(rows.all())
        return {
            "totalPosts": sum(counts.values()),
            "activePosts": counts.get(PostStatus.ACTIVE.value, 0),
            "expiredPosts": counts.get(PostStatus.EXPIRED.value, 0),
            "draftPosts": counts.get(PostStatus.DRAFT.value, 0),
        }

    async def delete_account(self, session: AsyncSession, user_id: int) -> None:
        """
        Delete the account with its posts, likes, payments and conversations

        Views the user left on other posts stay, anonymised.
        """
        await self._get_user(session, user_id)

        post_ids = (await session.scalars(select(Post.id).where(Post.user_id == user_id))).all()
        await delete_post_rows(session, post_ids)

        participant = or_(Message.sender_id == user_id, Message.recipient_id == user_id)
        own_messages = select(Message.id).where(participant).scalar_subquery()
        await session.execute(
            update(Message)
            .where(Message.parent_message_id.in_(own_messages))
            .values(parent_message_id=None)
            .execution_options(synchronize_session=False)
        )
        await session.execute(delete(Message).where(participant))
        await session.execute(
            update(Post)
            .where(
                Post.id.in_(select(Like.post_id).where(Like.user_id == user_id)),
                Post.like_count > 0,
            )
            .values(like_count=Post.like_count - 1)
            .execution_options(synchronize_session=False)
        )
        await session.execute(delete(Like).where(Like.user_id == user_id))
        await session.execute(delete(Payment).where(Payment.user_id == user_id))
        await session.execute(update(View).where(View.user_id == user_id).values(user_id=None))
        await session.execute(delete(User).where(User.id == user_id))
        await session.commit()
        logger.info(f"Account deleted: user {user_id} ({len(post_ids)} posts)")

    async def verify_email(self, session: AsyncSession, user_id: int) -> Dict[str, str]:
        user = await self._get_user(session, user_id)
        if user.is_email_verified:
            return {"message": "Email already verified"}
        user.is_email_verified = True
        await session.commit()
        return {"message": "Email verified successfully"}

    async def verify_phone(self, session: AsyncSession, user_id: int) -> Dict[str, str]:
        user = await self._get_user(session, user_id)
        if not user.phone_number:
            raise BadRequestError("No phone number on this account")
        if user.is_phone_verified:
            return {"message": "Phone number already verified"}
        user.is_phone_verified = True
        await session.commit()
        return {"message": "Phone number verified successfully"}
