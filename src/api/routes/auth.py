"""
Authentication routes
Registration, password and OAuth login, token refresh
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_auth_service
from src.core.responses import success_response
from src.middleware.rate_limit import auth_limit
from src.models.engine import get_db
from src.models.enums import OAuthProvider
from src.schemas import LoginRequest, OAuthLoginRequest, RefreshTokenRequest, RegisterRequest
from src.schemas.auth import PHONE_PATTERN
from src.service.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
@auth_limit
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Create a local account

    Returns the user and an access/refresh token pair. 409 when the email or
    phone number is taken.
    """
    result = await auth_service.register(db, body)
    return success_response(result, "User registered successfully")


@router.post("/login")
@auth_limit
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    result = await auth_service.login(db, body.email_address, body.password)
    return success_response(result, "Login successful")


@router.post("/refresh")
@auth_limit
async def refresh(
    request: Request,
    body: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    tokens = await auth_service.refresh_token(db, body.refresh_token)
    return success_response(tokens, "Token refreshed successfully")


async def _oauth_login(
    provider: OAuthProvider, body: OAuthLoginRequest, db: AsyncSession, auth_service: AuthService
):
    result = await auth_service.oauth_login(db, provider, body.access_token)
    return success_response(result, f"{provider} login successful")


@router.post("/oauth/google")
@auth_limit
async def google_login(
    request: Request,
    body: OAuthLoginRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await _oauth_login(OAuthProvider.GOOGLE, body, db, auth_service)


@router.post("/oauth/microsoft")
@auth_limit
async def microsoft_login(
    request: Request,
    body: OAuthLoginRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await _oauth_login(OAuthProvider.MICROSOFT, body, db, auth_service)


@router.post("/oauth/facebook")
@auth_limit
async def facebook_login(
    request: Request,
    body: OAuthLoginRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await _oauth_login(OAuthProvider.FACEBOOK, body, db, auth_service)


@router.get("/check-phone")
async def check_phone(
    phone_number: str = Query(..., alias="phoneNumber", pattern=PHONE_PATTERN),
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    result = await auth_service.check_phone_availability(db, phone_number)
    return success_response(result)
