"""
Authentication service
Registration, password login, OAuth login and token refresh
"""

import logging
from typing import Any, Dict, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import (
    AuthenticationError,
    ConflictError,
    ErrorCode,
    ExternalServiceError,
    ForbiddenError,
    ValidationError,
)
from src.core.security import (
    create_token_pair,
    get_password_hash,
    validate_password_strength,
    verify_password,
    verify_refresh_token,
)
from src.models import User
from src.models.enums import OAuthProvider
from src.schemas import RegisterRequest
from src.service.dto import auth_user_dto

logger = logging.getLogger(__name__)


def _google_profile(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": data.get("id"),
        "email": data.get("email"),
        "name": data.get("name"),
        "picture": data.get("picture"),
    }


def _microsoft_profile(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": data.get("id"),
        "email": data.get("mail") or data.get("userPrincipalName"),
        "name": data.get("displayName"),
        "picture": None,
    }


def _facebook_profile(data: Dict[str, Any]) -> Dict[str, Any]:
    picture = (data.get("picture") or {}).get("data") or {}
    return {
        "id": data.get("id"),
        "email": data.get("email"),
        "name": data.get("name"),
        "picture": picture.get("url"),
    }


PROFILE_MAPPERS = {
    OAuthProvider.GOOGLE: _google_profile,
    OAuthProvider.MICROSOFT: _microsoft_profile,
    OAuthProvider.FACEBOOK: _facebook_profile,
}


class AuthService:
    """
    Authentication service

    Issues an access/refresh token pair for every successful login
    """

    def __init__(self, config: Any, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            config: Settings object
            transport: httpx transport for provider calls, the default network transport when omitted
        """
        self.config = config
        self.transport = transport

    def _userinfo_url(self, provider: OAuthProvider) -> str:
        return {
            OAuthProvider.GOOGLE: self.config.google_userinfo_url,
            OAuthProvider.MICROSOFT: self.config.microsoft_userinfo_url,
            OAuthProvider.FACEBOOK: self.config.facebook_userinfo_url,
        }[provider]

    @staticmethod
    def _session_payload(user: User) -> Dict[str, Any]:
        return {
            "user": auth_user_dto(user),
            "tokens": create_token_pair(user.id, user.email),
        }

    async def register(self, session: AsyncSession, data: RegisterRequest) -> Dict[str, Any]:
        """
        Create a local account

        Raises:
            ConflictError: Email or phone number already registered
            ValidationError: Password does not meet the policy
        """
        email = data.email_address.lower()
        if await session.scalar(select(User.id).where(User.email == email)):
            raise ConflictError("Email address already registered")

        if data.phone_number and await session.scalar(
            select(User.id).where(User.phone_number == data.phone_number)
        ):
            raise ConflictError("Phone number already registered")

        errors = validate_password_strength(data.password)
        if errors:
            raise ValidationError(", ".join(errors))

        user = User(
            email=email,
            full_name=data.full_name,
            password_hash=get_password_hash(data.password),
            phone_number=data.phone_number,
            profile_picture_url=data.profile_picture_url,
            location=data.location,
            bio=data.bio,
            oauth_provider=OAuthProvider.LOCAL.value,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)

        logger.info(f"User registered: id={user.id}")
        return self._session_payload(user)

    async def login(self, session: AsyncSession, email: str, password: str) -> Dict[str, Any]:
        """
        Password login

        Unknown email, OAuth-only account and wrong password are indistinguishable to the caller
        """
        user = await session.scalar(select(User).where(User.email == email.lower()))

        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError(
                "Invalid email or password", code=ErrorCode.INVALID_CREDENTIALS
            )

        if not user.is_active:
            raise ForbiddenError("Account is disabled")

        logger.info(f"User logged in: id={user.id}")
        return self._session_payload(user)

    async def fetch_oauth_profile(
        self, provider: OAuthProvider, access_token: str
    ) -> Dict[str, Any]:
        """
        Look up the provider identity behind an access token

        Returns:
            {id, email, name, picture}

        Raises:
            ExternalServiceError: Provider unreachable, token rejected or profile incomplete
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.config.oauth_timeout, transport=self.transport
            ) as client:
                response = await client.get(
                    self._userinfo_url(provider),
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"{provider} userinfo request failed: {e}")
            raise ExternalServiceError(
                f"Failed to verify {provider} account", details=str(e)
            ) from e

        profile = PROFILE_MAPPERS[provider](data)
        if not profile["id"] or not profile["email"]:
            raise ExternalServiceError(f"{provider} profile is missing id or email")
        return profile

    async def oauth_login(
        self, session: AsyncSession, provider: OAuthProvider, access_token: str
    ) -> Dict[str, Any]:
        """
        Log in with a provider access token, creating or linking the account

        Lookup order: (provider, provider id), then email. New accounts start
        with a verified email since the provider vouches for it.
        """
        profile = await self.fetch_oauth_profile(provider, access_token)
        provider_id = str(profile["id"])
        email = profile["email"].lower()

        user = await session.scalar(
            select(User).where(
                User.oauth_provider == provider.value,
                User.oauth_provider_id == provider_id,
            )
        )
        if user is None:
            user = await session.scalar(select(User).where(User.email == email))
            if user is not None and user.oauth_provider_id is None:
                user.oauth_provider_id = provider_id
                if user.password_hash is None:
                    user.oauth_provider = provider.value
                user.is_email_verified = True
                logger.info(f"Linked {provider} identity to user {user.id}")

        if user is None:
            user = User(
                email=email,
                full_name=profile["name"] or email.split("@")[0],
                profile_picture_url=profile["picture"],
                oauth_provider=provider.value,
                oauth_provider_id=provider_id,
                is_email_verified=True,
            )
            session.add(user)
            logger.info(f"Created {provider} user for {email}")

        if not user.is_active:
            raise ForbiddenError("Account is disabled")

        await session.commit()
        await session.refresh(user)
        return self._session_payload(user)

    async def refresh_token(self, session: AsyncSession, refresh_token: str) -> Dict[str, str]:
        """
        Exchange a refresh token for a new token pair

        Raises:
            AuthenticationError: INVALID_TOKEN for a bad, expired or orphaned token
        """
        payload = verify_refresh_token(refresh_token)
        if payload is None:
            raise AuthenticationError(
                "Invalid or expired refresh token", code=ErrorCode.INVALID_TOKEN
            )

        user = await session.get(User, payload["userId"])
        if user is None or not user.is_active:
            raise AuthenticationError(
                "Invalid or expired refresh token", code=ErrorCode.INVALID_TOKEN
            )

        return create_token_pair(user.id, user.email)

    async def check_phone_availability(self, session: AsyncSession, phone_number: str) -> Dict[str, Any]:
        taken = await session.scalar(
            select(User.id).where(User.phone_number == phone_number)
        )
        return {"phoneNumber": phone_number, "available": taken is None}
