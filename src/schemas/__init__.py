from .auth import RegisterRequest, LoginRequest, OAuthLoginRequest, RefreshTokenRequest
from .user import (
    UpdateProfileRequest,
    ChangePasswordRequest,
    PasswordResetRequest,
    ResetPasswordRequest,
)
from .category import CategoryCreateRequest, CategoryUpdateRequest
from .post import CreatePostRequest, UpdatePostRequest, SchedulePostRequest
from .message import SendMessageRequest, UpdateMessageRequest
from .payment import CreatePaymentRequest, ConfirmPaymentRequest
from .upload import UploadedImage, BatchUploadResultItem, UploadItemError

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "OAuthLoginRequest",
    "RefreshTokenRequest",
    "UpdateProfileRequest",
    "ChangePasswordRequest",
    "PasswordResetRequest",
    "ResetPasswordRequest",
    "CategoryCreateRequest",
    "CategoryUpdateRequest",
    "CreatePostRequest",
    "UpdatePostRequest",
    "SchedulePostRequest",
    "SendMessageRequest",
    "UpdateMessageRequest",
    "CreatePaymentRequest",
    "ConfirmPaymentRequest",
    "UploadedImage",
    "BatchUploadResultItem",
    "UploadItemError",
]
