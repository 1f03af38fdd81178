from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import date, timedelta
from pathlib import Path
import sys
from typing import Any, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICE_ROOT))

from holybond.main import app
from holybond.db import close_mongo_connection, connect_to_mongo
from holybond.config import get_settings
from holybond.integrations import cloudinary as cloudinary_integration
from holybond.services import account_service

PASSWORD = "Secret@123"
ADMIN_EMAIL = "admin@holybond.in"
ADMIN_PASSWORD = "Admin@123"


def auth(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def dob_for_age(age: int) -> str:
    """A birth date that makes someone ``age`` years old today, well clear of the birthday."""
    today = date.today()
    born = today - timedelta(days=int(age * 365.25) + 60)
    return born.isoformat()


def profile_draft(full_name: str, **overrides: Any) -> Dict[str, Any]:
    draft = {
        "fullName": full_name,
        "gender": "Female",
        "dob": dob_for_age(30),
        "denomination": "Catholic",
        "motherTongue": "Malayalam",
        "country": "India",
        "state": "Kerala",
        "city": "Kochi",
        "education": "MSc",
        "profession": "Engineer",
        "aboutMe": "Faith and family first.",
        "partnerPreference": "Kind and God-fearing.",
        "photos": [],
    }
    draft.update(overrides)
    return draft


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "holybond-test")
    monkeypatch.setenv("JWT_SECRET", "holybond-test-secret-0123456789abcdef")
    monkeypatch.setenv("AUTH_RATE_LIMIT_MAX", "1000")
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("REDIS_PUBSUB_ENABLED", "false")
    for name in ("CLOUDINARY_URL", "CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()  # type: ignore[attr-defined]
    cloudinary_integration.is_enabled.cache_clear()
    monkeypatch.setattr(account_service, "_rate_limiter", None)


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("holybond.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest_asyncio.fixture
async def api_client(mongo_client: AsyncMongoMockClient) -> AsyncIterator[AsyncClient]:
    await connect_to_mongo()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    await close_mongo_connection()


@pytest.fixture
def signup(api_client: AsyncClient) -> Callable[..., Awaitable[Dict[str, Any]]]:
    """Register a member and return the auth payload (token, session, profile)."""

    async def _signup(email: str, full_name: str, **profile: Any) -> Dict[str, Any]:
        response = await api_client.post(
            "/api/auth/signup",
            json={"email": email, "password": PASSWORD, "profile": profile_draft(full_name, **profile)},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _signup


@pytest_asyncio.fixture
async def admin_headers(api_client: AsyncClient) -> Dict[str, str]:
    response = await api_client.post(
        "/api/auth/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return auth(response.json()["token"])


@pytest.fixture
def approve(api_client: AsyncClient, admin_headers: Dict[str, str]) -> Callable[[str], Awaitable[Dict[str, Any]]]:
    async def _approve(profile_id: str) -> Dict[str, Any]:
        response = await api_client.patch(
            f"/api/admin/profiles/{profile_id}/status",
            json={"status": "APPROVED"},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _approve


@pytest_asyncio.fixture
async def members(signup, approve) -> Dict[str, Dict[str, Any]]:
    """Three approved members: alice, bob and carol."""

    alice = await signup("alice@example.com", "Alice Thomas")
    bob = await signup(
        "bob@example.com",
        "Bob Mathew",
        gender="Male",
        dob=dob_for_age(34),
        denomination="CSI",
        motherTongue="Tamil",
        state="Tamil Nadu",
        city="Chennai",
        profession="Teacher",
    )
    carol = await signup(
        "carol@example.com",
        "Carol Joseph",
        dob=dob_for_age(42),
        motherTongue="Kannada",
        state="Karnataka",
        city="Bengaluru",
        education="MBBS",
        profession="Doctor",
    )
    out: Dict[str, Dict[str, Any]] = {}
    for name, payload in (("alice", alice), ("bob", bob), ("carol", carol)):
        profile_id = payload["profile"]["_id"]
        await approve(profile_id)
        out[name] = {
            "id": profile_id,
            "token": payload["token"],
            "headers": auth(payload["token"]),
        }
    return out
