"""
Authentication API tests
Registration, login, token refresh and OAuth login
"""

from datetime import timedelta

import httpx
import pytest

from config import settings
from src.api.dependencies import get_auth_service
from src.app import app
from src.core.security import create_access_token
from src.service.auth_service import AuthService

from conftest import API, PASSWORD, auth_headers, register_user


@pytest.fixture
def oauth_provider():
    """
    Fake OAuth provider profile endpoints

    Yields a dict: set "status" and "profile" to control the next userinfo response
    """
    state = {"status": 200, "profile": {}, "calls": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["calls"].append(request)
        return httpx.Response(state["status"], json=state["profile"])

    service = AuthService(settings, transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_auth_service] = lambda: service
    yield state
    app.dependency_overrides.pop(get_auth_service, None)


def test_register_success(client):
    """Registration returns the user and a token pair"""
    response = client.post(
        f"{API}/auth/register",
        json={
            "emailAddress": "New.User@Example.com",
            "password": PASSWORD,
            "fullName": "New User",
            "phoneNumber": "+256700000001",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["emailAddress"] == "new.user@example.com"
    assert body["data"]["user"]["isEmailVerified"] is False
    assert set(body["data"]["tokens"]) == {"accessToken", "refreshToken"}


def test_register_duplicate_email(client):
    """A taken email gives 409"""
    register_user(client, "dup@example.com")

    response = client.post(
        f"{API}/auth/register",
        json={"emailAddress": "dup@example.com", "password": PASSWORD, "fullName": "Other"},
    )

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "RESOURCE_ALREADY_EXISTS"
    assert error["statusCode"] == 409
    assert "timestamp" in error


def test_register_duplicate_phone(client):
    register_user(client, "first@example.com", phone_number="+256700000002")

    response = client.post(
        f"{API}/auth/register",
        json={
            "emailAddress": "second@example.com",
            "password": PASSWORD,
            "fullName": "Second",
            "phoneNumber": "+256700000002",
        },
    )

    assert response.status_code == 409
    assert response.json()["error"]["message"] == "Phone number already registered"


def test_register_weak_password(client):
    """Passwords without the required character classes are rejected"""
    response = client.post(
        f"{API}/auth/register",
        json={"emailAddress": "weak@example.com", "password": "alllowercase", "fullName": "Weak"},
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "uppercase" in error["message"]


def test_register_invalid_body(client):
    """Schema violations come back as VALIDATION_ERROR with field details"""
    response = client.post(
        f"{API}/auth/register",
        json={"emailAddress": "not-an-email", "password": PASSWORD, "fullName": "X"},
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["message"] == "Validation failed"
    fields = {detail["field"] for detail in error["details"]}
    assert "emailAddress" in fields


def test_login_success(client):
    register_user(client, "login@example.com")

    response = client.post(
        f"{API}/auth/login",
        json={"emailAddress": "LOGIN@example.com", "password": PASSWORD},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["emailAddress"] == "login@example.com"
    assert data["tokens"]["accessToken"]


def test_login_with_multibyte_password(client):
    password = "Aa1!" + "\u00e9" * 40
    register_user(client, "accents@example.com", password=password)

    response = client.post(
        f"{API}/auth/login",
        json={"emailAddress": "accents@example.com", "password": password},
    )

    assert response.status_code == 200


def test_login_wrong_password(client):
    register_user(client, "login@example.com")

    response = client.post(
        f"{API}/auth/login",
        json={"emailAddress": "login@example.com", "password": "Wr0ng!Password"},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_login_unknown_email(client):
    response = client.post(
        f"{API}/auth/login",
        json={"emailAddress": "nobody@example.com", "password": PASSWORD},
    )

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid email or password"


def test_refresh_returns_new_pair(client):
    user = register_user(client)

    response = client.post(
        f"{API}/auth/refresh",
        json={"refreshToken": user["tokens"]["refreshToken"]},
    )

    assert response.status_code == 200
    tokens = response.json()["data"]
    profile = client.get(f"{API}/users/profile", headers=auth_headers(tokens))
    assert profile.status_code == 200


def test_refresh_rejects_access_token(client):
    """An access token is not accepted where a refresh token is expected"""
    user = register_user(client)

    response = client.post(
        f"{API}/auth/refresh",
        json={"refreshToken": user["tokens"]["accessToken"]},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


def test_refresh_token_not_accepted_as_bearer(client):
    user = register_user(client)

    response = client.get(
        f"{API}/users/profile",
        headers={"Authorization": f"Bearer {user['tokens']['refreshToken']}"},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


def test_expired_access_token(client):
    user = register_user(client)
    token = create_access_token(
        user["user"]["id"], user["user"]["emailAddress"], expires_delta=timedelta(seconds=-1)
    )

    response = client.get(f"{API}/users/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "EXPIRED_TOKEN"


def test_protected_route_requires_token(client):
    response = client.get(f"{API}/users/profile")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_check_phone(client):
    register_user(client, phone_number="+256700000003")

    taken = client.get(f"{API}/auth/check-phone", params={"phoneNumber": "+256700000003"})
    free = client.get(f"{API}/auth/check-phone", params={"phoneNumber": "+256700000004"})

    assert taken.json()["data"]["available"] is False
    assert free.json()["data"]["available"] is True


def test_oauth_creates_verified_user(client, oauth_provider):
    """A first Google login creates a verified account linked to the Google id"""
    oauth_provider["profile"] = {
        "id": "google-123",
        "email": "Gina@Gmail.com",
        "name": "Gina",
        "picture": "https://lh3.googleusercontent.com/a/photo.jpg",
    }

    response = client.post(f"{API}/auth/oauth/google", json={"accessToken": "provider-token"})

    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["emailAddress"] == "gina@gmail.com"
    assert user["isEmailVerified"] is True
    assert oauth_provider["calls"][0].headers["Authorization"] == "Bearer provider-token"

    profile = client.get(
        f"{API}/users/profile", headers=auth_headers(response.json()["data"]["tokens"])
    ).json()["data"]
    assert profile["oauthProvider"] == "Google"
    # external pictures are returned as-is
    assert profile["profilePictureUrl"] == "https://lh3.googleusercontent.com/a/photo.jpg"


def test_oauth_second_login_reuses_account(client, oauth_provider):
    oauth_provider["profile"] = {"id": "google-123", "email": "gina@gmail.com", "name": "Gina"}

    first = client.post(f"{API}/auth/oauth/google", json={"accessToken": "t1"})
    second = client.post(f"{API}/auth/oauth/google", json={"accessToken": "t2"})

    assert first.json()["data"]["user"]["id"] == second.json()["data"]["user"]["id"]


def test_oauth_links_existing_email(client, oauth_provider):
    user = register_user(client, "linked@example.com")
    oauth_provider["profile"] = {
        "id": "ms-42",
        "mail": "linked@example.com",
        "displayName": "Linked",
    }

    response = client.post(f"{API}/auth/oauth/microsoft", json={"accessToken": "t"})

    assert response.status_code == 200
    assert response.json()["data"]["user"]["id"] == user["user"]["id"]
    # the password still works after linking
    login = client.post(
        f"{API}/auth/login", json={"emailAddress": "linked@example.com", "password": PASSWORD}
    )
    assert login.status_code == 200


def test_oauth_provider_failure(client, oauth_provider):
    """A rejected provider token gives 502"""
    oauth_provider["status"] = 401
    oauth_provider["profile"] = {"error": "invalid_token"}

    response = client.post(f"{API}/auth/oauth/facebook", json={"accessToken": "bad"})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"


def test_oauth_profile_without_email(client, oauth_provider):
    oauth_provider["profile"] = {"id": "fb-1", "name": "No Email"}

    response = client.post(f"{API}/auth/oauth/facebook", json={"accessToken": "t"})

    assert response.status_code == 502
