"""
Application error taxonomy
Every error leaving the API is one of these codes, rendered into the
{success: false, error: {...}} envelope by the handlers in src/core/responses.py
"""

from enum import StrEnum
from typing import Any, Optional


class ErrorCode(StrEnum):
    # Authentication & authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"

    # Resources
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"
    CONFLICT = "CONFLICT"

    # Payment
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    PAYMENT_FAILED = "PAYMENT_FAILED"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class AppError(Exception):
    """Base class for errors that map onto an API error envelope"""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class BadRequestError(AppError):
    code = ErrorCode.BAD_REQUEST
    status_code = 400


class ValidationError(AppError):
    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class AuthenticationError(AppError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401


class ForbiddenError(AppError):
    code = ErrorCode.FORBIDDEN
    status_code = 403


class NotFoundError(AppError):
    code = ErrorCode.RESOURCE_NOT_FOUND
    status_code = 404


class ConflictError(AppError):
    code = ErrorCode.RESOURCE_ALREADY_EXISTS
    status_code = 409


class ExternalServiceError(AppError):
    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    status_code = 502
