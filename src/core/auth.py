"""
Authentication dependencies
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import AuthenticationError, ErrorCode, ForbiddenError
from src.core.security import is_access_token_expired, verify_access_token
from src.models import User
from src.models.engine import get_db


security = HTTPBearer(auto_error=False)


async def _resolve_user(token: str, db: AsyncSession) -> Optional[User]:
    payload = verify_access_token(token)
    if payload is None:
        return None
    user = await db.get(User, payload["userId"])
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the authenticated user from the bearer token

    Args:
        credentials: HTTP Bearer credentials
        db: Database session

    Returns:
        User: The active account the token belongs to

    Raises:
        AuthenticationError: Missing, invalid or expired token
    """
    if credentials is None:
        raise AuthenticationError("Authentication required")

    user = await _resolve_user(credentials.credentials, db)
    if user is None:
        if is_access_token_expired(credentials.credentials):
            raise AuthenticationError("Token has expired", code=ErrorCode.EXPIRED_TOKEN)
        raise AuthenticationError(
            "Invalid or expired token", code=ErrorCode.INVALID_TOKEN
        )
    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise ForbiddenError("Administrator access required")
    return current_user


class OptionalAuth:
    """
    Optional authentication: the user when a valid token is sent, None otherwise
    """

    async def __call__(
        self,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: AsyncSession = Depends(get_db),
    ) -> Optional[User]:
        if credentials is None:
            return None
        return await _resolve_user(credentials.credentials, db)


optional_auth = OptionalAuth()
