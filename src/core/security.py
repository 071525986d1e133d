"""
Security helpers
JWT access/refresh/reset tokens, password hashing and password policy
"""

import hashlib
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

import config

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
RESET_TOKEN_TYPE = "password_reset"

SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'
_SPECIAL_RE = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Check a password against its bcrypt hash

    Args:
        plain_password: Password as typed
        hashed_password: Stored hash, empty for OAuth accounts

    Returns:
        bool: Whether the password matches
    """
    if not hashed_password:
        return False
    return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    """
    Hash a password with bcrypt (12 rounds)

    Args:
        password: Plain password

    Returns:
        str: Hashed password
    """
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(_password_bytes(password), salt)
    return hashed.decode("utf-8")


def validate_password_strength(password: str) -> List[str]:
    """
    Check a password against the account password policy

    Args:
        password: Candidate password

    Returns:
        List[str]: Policy violations, empty when the password is acceptable
    """
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not _SPECIAL_RE.search(password):
        errors.append("Password must contain at least one special character")
    return errors


def _encode(payload: Dict[str, Any], secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = payload.copy()
    to_encode.update({"exp": now + expires_delta, "iat": now})
    return jwt.encode(to_encode, secret, algorithm=config.settings.jwt_algorithm)


def _decode(token: str, secret: str, token_type: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(
            token, secret, algorithms=[config.settings.jwt_algorithm]
        )
    except JWTError:
        return None
    if payload.get("type") != token_type or payload.get("userId") is None:
        return None
    return payload


def create_access_token(
    user_id: int, email: str, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed access token

    Args:
        user_id: Account id
        email: Account email
        expires_delta: Lifetime, defaults to access_token_expire_minutes

    Returns:
        str: JWT
    """
    return _encode(
        {"userId": user_id, "email": email, "type": ACCESS_TOKEN_TYPE},
        config.settings.jwt_access_secret,
        expires_delta
        or timedelta(minutes=config.settings.access_token_expire_minutes),
    )


def create_refresh_token(
    user_id: int, email: str, expires_delta: Optional[timedelta] = None
) -> str:
    return _encode(
        {"userId": user_id, "email": email, "type": REFRESH_TOKEN_TYPE},
        config.settings.jwt_refresh_secret,
        expires_delta or timedelta(days=config.settings.refresh_token_expire_days),
    )


def create_token_pair(user_id: int, email: str) -> Dict[str, str]:
    return {
        "accessToken": create_access_token(user_id, email),
        "refreshToken": create_refresh_token(user_id, email),
    }


def verify_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify an access token

    Args:
        token: JWT

    Returns:
        Optional[Dict[str, Any]]: Payload, None for an invalid, expired or non-access token
    """
    return _decode(token, config.settings.jwt_access_secret, ACCESS_TOKEN_TYPE)


def is_access_token_expired(token: str) -> bool:
    """Whether the token is a correctly signed access token past its expiry"""
    try:
        jwt.decode(
            token, config.settings.jwt_access_secret, algorithms=[config.settings.jwt_algorithm]
        )
    except ExpiredSignatureError:
        return True
    except JWTError:
        return False
    return False


def verify_refresh_token(token: str) -> Optional[Dict[str, Any]]:
    return _decode(token, config.settings.jwt_refresh_secret, REFRESH_TOKEN_TYPE)


def _reset_secret(password_hash: str) -> str:
    # bound to the current hash, so a used token dies with the old password
    digest = hashlib.sha256(password_hash.encode("utf-8")).hexdigest()
    return f"{config.settings.jwt_access_secret}:{digest}"


def create_password_reset_token(user_id: int, email: str, password_hash: str) -> str:
    return _encode(
        {"userId": user_id, "email": email, "type": RESET_TOKEN_TYPE},
        _reset_secret(password_hash),
        timedelta(minutes=config.settings.password_reset_expire_minutes),
    )


def peek_token_user_id(token: str) -> Optional[int]:
    """
    Read the userId claim without verifying the signature

    Only used to look up the account whose hash is needed to verify a reset token
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    user_id = claims.get("userId")
    return user_id if isinstance(user_id, int) else None


def verify_password_reset_token(
    token: str, password_hash: str
) -> Optional[Dict[str, Any]]:
    return _decode(token, _reset_secret(password_hash), RESET_TOKEN_TYPE)
