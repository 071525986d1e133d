"""
User account routes
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_user_service
from src.core.auth import get_current_user
from src.core.responses import success_response
from src.middleware.rate_limit import auth_limit
from src.models import User
from src.models.engine import get_db
from src.schemas import (
    ChangePasswordRequest,
    PasswordResetRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
)
from src.service.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile")
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    return success_response(await user_service.get_profile(db, current_user.id))


@router.put("/profile")
async def update_profile(
    body: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    profile = await user_service.update_profile(db, current_user.id, body)
    return success_response(profile, "Profile updated successfully")


@router.post("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    await user_service.change_password(
        db, current_user.id, body.current_password, body.new_password
    )
    return success_response(None, "Password changed successfully")


@router.delete("/account")
async def delete_account(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    await user_service.delete_account(db, current_user.id)
    return success_response(None, "Account deleted successfully")


@router.get("/posts-summary")
async def posts_summary(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    return success_response(await user_service.get_posts_summary(db, current_user.id))


@router.post("/request-password-reset")
@auth_limit
async def request_password_reset(
    request: Request,
    body: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    result = await user_service.request_password_reset(db, body.email_address)
    return success_response(None, result["message"])


@router.post("/reset-password")
@auth_limit
async def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    await user_service.reset_password(db, body.token, body.new_password)
    return success_response(None, "Password reset successfully")


@router.post("/verify-email")
async def verify_email(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    result = await user_service.verify_email(db, current_user.id)
    return success_response(None, result["message"])


@router.post("/verify-phone")
async def verify_phone(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    result = await user_service.verify_phone(db, current_user.id)
    return success_response(None, result["message"])
