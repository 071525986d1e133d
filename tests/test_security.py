"""
Password hashing, password policy and token helpers
"""

from datetime import timedelta

from src.core.security import (
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    create_token_pair,
    get_password_hash,
    is_access_token_expired,
    peek_token_user_id,
    validate_password_strength,
    verify_access_token,
    verify_password,
    verify_password_reset_token,
    verify_refresh_token,
)

from conftest import PASSWORD


def test_password_hash_round_trip():
    hashed = get_password_hash(PASSWORD)

    assert hashed != PASSWORD
    assert verify_password(PASSWORD, hashed)
    assert not verify_password("Wr0ng!Pass", hashed)


def test_password_hash_counts_bytes_not_characters():
    # 84 bytes in UTF-8, only the first 72 take part
    password = "Aa1!" + "\u00e9" * 40

    hashed = get_password_hash(password)

    assert verify_password(password, hashed)
    assert verify_password("Aa1!" + "\u00e9" * 34, hashed)
    assert not verify_password("Aa1!" + "\u00e9" * 33, hashed)


def test_verify_password_without_hash():
    # OAuth accounts have no password
    assert not verify_password(PASSWORD, None)
    assert not verify_password(PASSWORD, "")


def test_password_policy():
    assert validate_password_strength(PASSWORD) == []
    assert validate_password_strength("short") == [
        "Password must be at least 8 characters long",
        "Password must contain at least one uppercase letter",
        "Password must contain at least one number",
        "Password must contain at least one special character",
    ]
    assert validate_password_strength("NoSpecial123") == [
        "Password must contain at least one special character"
    ]


def test_token_types_are_not_interchangeable():
    tokens = create_token_pair(5, "seller@example.com")

    access = verify_access_token(tokens["accessToken"])
    assert access["userId"] == 5
    assert access["email"] == "seller@example.com"
    assert verify_refresh_token(tokens["refreshToken"])["userId"] == 5

    assert verify_access_token(tokens["refreshToken"]) is None
    assert verify_refresh_token(tokens["accessToken"]) is None


def test_expired_token():
    token = create_access_token(5, "seller@example.com", expires_delta=timedelta(seconds=-1))

    assert verify_access_token(token) is None
    assert verify_refresh_token(create_refresh_token(5, "a@b.c", timedelta(seconds=-1))) is None
    assert is_access_token_expired(token)
    assert not is_access_token_expired(create_access_token(5, "seller@example.com"))
    assert not is_access_token_expired("not.a.token")


def test_reset_token_bound_to_password_hash():
    old_hash = get_password_hash(PASSWORD)
    token = create_password_reset_token(5, "seller@example.com", old_hash)

    assert peek_token_user_id(token) == 5
    assert verify_password_reset_token(token, old_hash)["userId"] == 5
    assert verify_password_reset_token(token, get_password_hash("N3w!Password")) is None
    # a reset token is not an access token
    assert verify_access_token(token) is None


def test_peek_garbage_token():
    assert peek_token_user_id("not-a-jwt") is None
