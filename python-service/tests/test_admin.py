from __future__ import annotations

import pytest

from conftest import ADMIN_EMAIL


@pytest.mark.asyncio
async def test_user_listing_hides_password_hashes(members, api_client, admin_headers) -> None:
    response = await api_client.get("/api/admin/users", headers=admin_headers)
    assert response.status_code == 200
    users = response.json()
    emails = {u["email"] for u in users}
    assert {ADMIN_EMAIL, "alice@example.com", "bob@example.com", "carol@example.com"} <= emails
    for user in users:
        assert "passwordHash" not in user
        assert "emailLower" not in user

    alice = next(u for u in users if u["email"] == "alice@example.com")
    detail = await api_client.get(f"/api/admin/users/{alice['_id']}", headers=admin_headers)
    assert detail.status_code == 200
    assert detail.json()["profile"]["_id"] == members["alice"]["id"]
    assert detail.json()["account"]["role"] == "USER"

    missing = await api_client.get("/api/admin/users/64b7f0c2a1b2c3d4e5f60718", headers=admin_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_admin_edit_keeps_status(members, signup, api_client, admin_headers) -> None:
    alice_id = members["alice"]["id"]
    edited = await api_client.patch(
        f"/api/admin/profiles/{alice_id}",
        json={"city": "Alappuzha", "aboutMe": "Edited by moderation"},
        headers=admin_headers,
    )
    assert edited.status_code == 200
    assert edited.json()["status"] == "APPROVED"
    assert edited.json()["city"] == "Alappuzha"

    dave = await signup("dave@example.com", "Dave", gender="Male")
    pending_edit = await api_client.patch(
        f"/api/admin/profiles/{dave['profile']['_id']}",
        json={"fullName": "David"},
        headers=admin_headers,
    )
    assert pending_edit.json()["status"] == "PENDING"
    assert pending_edit.json()["fullName"] == "David"

    everything = await api_client.get("/api/admin/profiles", headers=admin_headers)
    ids = {p["_id"] for p in everything.json()["items"]}
    assert {alice_id, dave["profile"]["_id"]} <= ids


@pytest.mark.asyncio
async def test_admin_console_rejects_members(members, api_client) -> None:
    alice = members["alice"]["headers"]
    assert (await api_client.get("/api/admin/users", headers=alice)).status_code == 403
    assert (await api_client.get("/api/admin/profiles", headers=alice)).status_code == 403
    assert (await api_client.get("/api/admin/profiles/pending", headers=alice)).status_code == 403
    edit = await api_client.patch(
        f"/api/admin/profiles/{members['bob']['id']}",
        json={"city": "Nowhere"},
        headers=alice,
    )
    assert edit.status_code == 403
    assert (await api_client.get("/api/admin/users")).status_code == 401
