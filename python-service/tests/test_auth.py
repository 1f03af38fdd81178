from __future__ import annotations

import pytest

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, PASSWORD, auth, profile_draft
from holybond.config import get_settings
from holybond.db import get_db
from holybond.db.collections import ACCOUNTS_COLLECTION, PROFILES_COLLECTION
from holybond.repositories.account import AccountRepository
from holybond.repositories.exceptions import StorageExceededRepositoryError


@pytest.mark.asyncio
async def test_signup_creates_pending_profile_and_session(api_client) -> None:
    response = await api_client.post(
        "/api/auth/signup",
        json={"email": "Alice@Example.com", "password": PASSWORD, "profile": profile_draft("Alice")},
    )
    assert response.status_code == 201, response.text
    payload = response.json()

    assert payload["token"]
    assert payload["session"]["role"] == "USER"
    assert payload["session"]["email"] == "Alice@Example.com"
    assert payload["profile"]["status"] == "PENDING"
    assert payload["profile"]["_id"].startswith("HB-")
    assert payload["session"]["profileId"] == payload["profile"]["_id"]
    assert "passwordHash" not in payload["account"]

    session_resp = await api_client.get("/api/auth/session", headers=auth(payload["token"]))
    assert session_resp.status_code == 200
    assert session_resp.json()["accountId"] == payload["account"]["_id"]


@pytest.mark.asyncio
async def test_duplicate_email_is_case_insensitive(signup, api_client) -> None:
    await signup("bob@example.com", "Bob")
    response = await api_client.post(
        "/api/auth/signup",
        json={"email": "BOB@example.com", "password": PASSWORD, "profile": profile_draft("Bobby")},
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_signup_rejects_weak_password_and_bad_email(api_client) -> None:
    weak = await api_client.post(
        "/api/auth/signup",
        json={"email": "weak@example.com", "password": "password", "profile": profile_draft("Weak")},
    )
    assert weak.status_code == 400
    assert weak.json()["detail"] == "weak password"

    bad_email = await api_client.post(
        "/api/auth/signup",
        json={"email": "not-an-email", "password": PASSWORD, "profile": profile_draft("Nobody")},
    )
    assert bad_email.status_code == 400

    bad_dob = await api_client.post(
        "/api/auth/signup",
        json={
            "email": "future@example.com",
            "password": PASSWORD,
            "profile": profile_draft("Future", dob="2999-01-01"),
        },
    )
    assert bad_dob.status_code == 400


@pytest.mark.asyncio
async def test_login_failures(signup, api_client) -> None:
    await signup("carol@example.com", "Carol")

    unknown = await api_client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert unknown.status_code == 404

    wrong = await api_client.post("/api/auth/login", json={"email": "carol@example.com", "password": "Wrong@123"})
    assert wrong.status_code == 401

    ok = await api_client.post("/api/auth/login", json={"email": "CAROL@example.com", "password": PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["profile"]["fullName"] == "Carol"


@pytest.mark.asyncio
async def test_logout_ends_session_and_is_idempotent(signup, api_client) -> None:
    payload = await signup("dave@example.com", "Dave", gender="Male")
    headers = auth(payload["token"])

    first = await api_client.post("/api/auth/logout", headers=headers)
    assert first.status_code == 200
    assert first.json()["ended"] is True

    session_resp = await api_client.get("/api/auth/session", headers=headers)
    assert session_resp.status_code == 200
    assert session_resp.json() is None

    me = await api_client.get("/api/profiles/me", headers=headers)
    assert me.status_code == 401

    again = await api_client.post("/api/auth/logout", headers=headers)
    assert again.status_code == 200
    assert again.json()["ended"] is False


@pytest.mark.asyncio
async def test_admin_is_seeded_once_and_approved(api_client) -> None:
    for _ in range(2):
        response = await api_client.post(
            "/api/auth/login",
            json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
        )
        assert response.status_code == 200, response.text

    payload = response.json()
    assert payload["session"]["role"] == "ADMIN"
    assert payload["profile"]["status"] == "APPROVED"

    users = await api_client.get("/api/admin/users", headers=auth(payload["token"]))
    assert users.status_code == 200
    assert [u["email"] for u in users.json()].count(ADMIN_EMAIL) == 1


@pytest.mark.asyncio
async def test_invalid_token_is_anonymous(api_client) -> None:
    session_resp = await api_client.get("/api/auth/session", headers=auth("not-a-jwt"))
    assert session_resp.status_code == 200
    assert session_resp.json() is None


@pytest.mark.asyncio
async def test_login_is_rate_limited(monkeypatch: pytest.MonkeyPatch, api_client) -> None:
    monkeypatch.setenv("AUTH_RATE_LIMIT_MAX", "2")
    get_settings.cache_clear()  # type: ignore[attr-defined]

    body = {"email": "ghost@example.com", "password": PASSWORD}
    statuses = [(await api_client.post("/api/auth/login", json=body)).status_code for _ in range(3)]
    assert statuses == [404, 404, 429]


@pytest.mark.asyncio
async def test_signup_rolls_back_profile_when_account_write_fails(api_client, admin_headers, monkeypatch) -> None:
    db = get_db()
    profiles_before = await db[PROFILES_COLLECTION].count_documents({})
    accounts_before = await db[ACCOUNTS_COLLECTION].count_documents({})

    async def _quota_exceeded(self, **_kwargs):
        raise StorageExceededRepositoryError("account storage limit exceeded")

    monkeypatch.setattr(AccountRepository, "create_account", _quota_exceeded)

    response = await api_client.post(
        "/api/auth/signup",
        json={"email": "dan@example.com", "password": PASSWORD, "profile": profile_draft("Dan")},
    )
    assert response.status_code == 507
    assert await db[PROFILES_COLLECTION].count_documents({}) == profiles_before
    assert await db[ACCOUNTS_COLLECTION].count_documents({}) == accounts_before
