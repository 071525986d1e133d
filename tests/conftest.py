"""
Shared test fixtures

The app runs against a fresh in-memory SQLite database per test, local file
storage in a temp directory, and with rate limiting and the listing scheduler off.
"""

import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_UPLOAD_DIR"] = tempfile.mkdtemp(prefix="marketplace-uploads-")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LISTING_TASKS_ENABLED"] = "false"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.app import app
from src.models import Base, User
from src.models import engine as db

API = "/api/v1"
PASSWORD = "Str0ng!Pass"


@pytest.fixture
def client():
    db.configure_engine("sqlite+aiosqlite://")
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def session():
    """Session on its own in-memory database, for service-level tests"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as db_session:
        yield db_session

    await engine.dispose()


def auth_headers(tokens: Dict[str, str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


def register_user(
    client: TestClient,
    email: str = "seller@example.com",
    full_name: str = "Test Seller",
    password: str = PASSWORD,
    phone_number: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Register through the API

    Returns:
        {user, tokens, headers}
    """
    body = {"emailAddress": email, "password": password, "fullName": full_name}
    if phone_number:
        body["phoneNumber"] = phone_number
    response = client.post(f"{API}/auth/register", json=body)
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return {**data, "headers": auth_headers(data["tokens"])}


def make_admin(client: TestClient, user_id: int) -> None:
    async def _promote():
        async with db.async_session_factory() as db_session:
            await db_session.execute(
                update(User).where(User.id == user_id).values(is_admin=True)
            )
            await db_session.commit()

    client.portal.call(_promote)


def run_db(client: TestClient, statement) -> None:
    """Execute a statement on the app database, e.g. to backdate rows"""

    async def _run():
        async with db.async_session_factory() as db_session:
            await db_session.execute(statement)
            await db_session.commit()

    client.portal.call(_run)


def create_post(client: TestClient, headers: Dict[str, str], **overrides) -> Dict[str, Any]:
    body = {
        "title": "Used mountain bike",
        "categoryId": 1,
        "description": "Well kept bike, new tyres and brakes",
        "price": 250000,
        "location": "Kampala",
        "contactNumber": "+256700123456",
        "images": [{"imageUrl": "1-1700000000000-abc.jpg", "displayOrder": 0}],
    }
    body.update(overrides)
    response = client.post(f"{API}/posts", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def publish_post(client: TestClient, headers: Dict[str, str], post_id: int) -> Dict[str, Any]:
    response = client.post(f"{API}/posts/{post_id}/publish", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


@pytest.fixture
def seller(client):
    return register_user(client, "seller@example.com", "Test Seller")


@pytest.fixture
def buyer(client):
    return register_user(client, "buyer@example.com", "Test Buyer")

