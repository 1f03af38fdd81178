from __future__ import annotations

import pytest

from conftest import auth
from holybond.db import get_db
from holybond.db.collections import PROFILES_COLLECTION
from holybond.repositories.exceptions import StorageExceededRepositoryError
from holybond.repositories.profile import ProfileRepository


@pytest.mark.asyncio
async def test_review_lifecycle(signup, approve, api_client, admin_headers) -> None:
    alice = await signup("alice@example.com", "Alice")
    profile_id = alice["profile"]["_id"]
    headers = auth(alice["token"])
    assert alice["profile"]["status"] == "PENDING"

    # Pending profiles are hidden from everyone but the owner and the admin
    assert (await api_client.get(f"/api/profiles/{profile_id}")).status_code == 404
    assert (await api_client.get(f"/api/profiles/{profile_id}", headers=headers)).status_code == 200
    assert (await api_client.get(f"/api/profiles/{profile_id}", headers=admin_headers)).status_code == 200

    pending = await api_client.get("/api/admin/profiles/pending", headers=admin_headers)
    assert profile_id in [p["_id"] for p in pending.json()["items"]]

    approved = await approve(profile_id)
    assert approved["status"] == "APPROVED"
    assert (await api_client.get(f"/api/profiles/{profile_id}")).status_code == 200

    edited = await api_client.patch("/api/profiles/me", json={"city": "Thrissur"}, headers=headers)
    assert edited.status_code == 200
    assert edited.json()["status"] == "PENDING"
    assert edited.json()["city"] == "Thrissur"
    assert (await api_client.get(f"/api/profiles/{profile_id}")).status_code == 404

    await approve(profile_id)
    photos = await api_client.put(
        "/api/profiles/me/photos",
        json={"photos": ["https://img.example.com/a.jpg"]},
        headers=headers,
    )
    assert photos.status_code == 200
    assert photos.json()["status"] == "APPROVED"
    assert photos.json()["photos"] == ["https://img.example.com/a.jpg"]


@pytest.mark.asyncio
async def test_unchanged_values_keep_status(signup, approve, api_client, admin_headers) -> None:
    alice = await signup("alice@example.com", "Alice", city="Kochi")
    headers = auth(alice["token"])
    await approve(alice["profile"]["_id"])

    same = await api_client.patch(
        "/api/profiles/me",
        json={"city": "Kochi", "fullName": "Alice", "photos": ["https://img.example.com/b.jpg"]},
        headers=headers,
    )
    assert same.status_code == 200
    assert same.json()["status"] == "APPROVED"

    rejected = await api_client.patch(
        f"/api/admin/profiles/{alice['profile']['_id']}/status",
        json={"status": "REJECTED"},
        headers=admin_headers,
    )
    assert rejected.json()["status"] == "REJECTED"

    resubmitted = await api_client.patch("/api/profiles/me", json={"aboutMe": "Updated"}, headers=headers)
    assert resubmitted.json()["status"] == "PENDING"


@pytest.mark.asyncio
async def test_approving_twice_only_moves_updated_at(signup, approve) -> None:
    alice = await signup("alice@example.com", "Alice")
    first = await approve(alice["profile"]["_id"])
    second = await approve(alice["profile"]["_id"])

    assert second["updatedAt"] >= first["updatedAt"]
    first.pop("updatedAt")
    second.pop("updatedAt")
    assert first == second


@pytest.mark.asyncio
async def test_profile_endpoints_require_member(signup, api_client, admin_headers) -> None:
    assert (await api_client.get("/api/profiles/me")).status_code == 401
    assert (await api_client.get("/api/profiles/me", headers=admin_headers)).status_code == 403

    alice = await signup("alice@example.com", "Alice")
    forbidden = await api_client.patch(
        f"/api/admin/profiles/{alice['profile']['_id']}/status",
        json={"status": "APPROVED"},
        headers=auth(alice["token"]),
    )
    assert forbidden.status_code == 403

    missing = await api_client.patch(
        "/api/admin/profiles/HB-000000/status",
        json={"status": "APPROVED"},
        headers=admin_headers,
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_profile_edit_validation(signup, api_client) -> None:
    alice = await signup("alice@example.com", "Alice")
    headers = auth(alice["token"])

    too_many = await api_client.put(
        "/api/profiles/me/photos",
        json={"photos": [f"https://img.example.com/{i}.jpg" for i in range(6)]},
        headers=headers,
    )
    assert too_many.status_code == 400

    bad_dob = await api_client.patch("/api/profiles/me", json={"dob": "12/05/1990"}, headers=headers)
    assert bad_dob.status_code == 400

    blank_name = await api_client.patch("/api/profiles/me", json={"fullName": "   "}, headers=headers)
    assert blank_name.status_code == 400

    repeated = await api_client.put(
        "/api/profiles/me/photos",
        json={"photos": ["https://img.example.com/x.jpg", "https://img.example.com/x.jpg", " "]},
        headers=headers,
    )
    assert repeated.status_code == 400
    assert (await api_client.get("/api/profiles/me", headers=headers)).json()["photos"] == []


@pytest.mark.asyncio
async def test_profile_etag(members, api_client) -> None:
    url = f"/api/profiles/{members['alice']['id']}"
    first = await api_client.get(url, headers=members["bob"]["headers"])
    etag = first.headers["ETag"]

    cached = await api_client.get(url, headers={**members["bob"]["headers"], "If-None-Match": etag})
    assert cached.status_code == 304


@pytest.mark.asyncio
async def test_public_listing_only_has_approved(members, signup, api_client) -> None:
    await signup("dave@example.com", "Dave", gender="Male")
    response = await api_client.get("/api/profiles")
    names = {p["fullName"] for p in response.json()["items"]}
    assert {"Alice Thomas", "Bob Mathew", "Carol Joseph"} <= names
    assert "Dave" not in names


@pytest.mark.asyncio
async def test_search_filters(members, api_client) -> None:
    bob = members["bob"]["headers"]

    async def names(**params) -> list[str]:
        response = await api_client.get("/api/profiles/search", params=params, headers=bob)
        assert response.status_code == 200, response.text
        return [p["fullName"] for p in response.json()["items"]]

    assert sorted(await names(gender="Female")) == ["Alice Thomas", "Carol Joseph"]
    assert "Bob Mathew" not in await names(gender="Any")
    assert await names(q="kochi") == ["Alice Thomas"]
    assert await names(q="doctor") == ["Carol Joseph"]
    assert await names(motherTongue="Kannada") == ["Carol Joseph"]
    assert await names(state="kerala") == ["Alice Thomas"]
    assert await names(minAge=35) == ["Carol Joseph"]
    assert await names(maxAge=35) == ["Alice Thomas"]
    assert await names(gender="Female", sort="age_asc") == ["Alice Thomas", "Carol Joseph"]
    assert await names(gender="Female", sort="age_desc") == ["Carol Joseph", "Alice Thomas"]
    assert await names(gender="Female", sort="age_asc", limit=1, skip=1) == ["Carol Joseph"]

    counted = await api_client.get("/api/profiles/search", params={"gender": "Female", "limit": 1}, headers=bob)
    assert counted.json()["count"] == 2

    invalid = await api_client.get("/api/profiles/search", params={"minAge": 40, "maxAge": 30}, headers=bob)
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_search_requires_session_and_hides_blocked(members, api_client) -> None:
    assert (await api_client.get("/api/profiles/search")).status_code == 401

    bob = members["bob"]["headers"]
    await api_client.put(f"/api/blocks/{members['alice']['id']}", headers=bob)
    response = await api_client.get("/api/profiles/search", headers=bob)
    ids = [p["_id"] for p in response.json()["items"]]
    assert members["alice"]["id"] not in ids
    assert members["bob"]["id"] not in ids
    assert members["carol"]["id"] in ids


@pytest.mark.asyncio
async def test_profile_actions(members, api_client) -> None:
    alice_id = members["alice"]["id"]
    bob = members["bob"]["headers"]

    actions = (await api_client.get(f"/api/profiles/{alice_id}/actions", headers=bob)).json()
    assert actions["isMe"] is False
    assert actions["allowed"] == {
        "view": True,
        "shortlist": True,
        "interest": True,
        "chat": True,
        "block": True,
        "report": True,
    }

    await api_client.put(f"/api/blocks/{alice_id}", headers=bob)
    await api_client.put(f"/api/shortlist/{alice_id}", headers=bob)
    actions = (await api_client.get(f"/api/profiles/{alice_id}/actions", headers=bob)).json()
    assert actions["isBlocked"] is True
    assert actions["isShortlisted"] is True
    assert actions["allowed"]["interest"] is False
    assert actions["allowed"]["chat"] is False
    assert actions["allowed"]["shortlist"] is True
    assert actions["reasons"]["interest"] == "unblock to interest"

    mine = (await api_client.get(f"/api/profiles/{alice_id}/actions", headers=members["alice"]["headers"])).json()
    assert mine["isMe"] is True
    assert mine["allowed"]["view"] is True
    assert mine["allowed"]["interest"] is False

    anonymous = (await api_client.get(f"/api/profiles/{alice_id}/actions")).json()
    assert anonymous["allowed"]["view"] is True
    assert anonymous["allowed"]["shortlist"] is False


@pytest.mark.asyncio
async def test_storage_limit_leaves_profile_untouched(members, api_client, monkeypatch) -> None:
    profile_id = members["alice"]["id"]
    stored = await get_db()[PROFILES_COLLECTION].find_one({"_id": profile_id})

    async def _quota_exceeded(self, **_kwargs):
        raise StorageExceededRepositoryError("profile storage limit exceeded")

    monkeypatch.setattr(ProfileRepository, "compare_and_set", _quota_exceeded)

    response = await api_client.patch(
        "/api/profiles/me",
        json={"city": "Alappuzha", "photos": ["https://img.example.com/big.jpg"]},
        headers=members["alice"]["headers"],
    )
    assert response.status_code == 507
    assert await get_db()[PROFILES_COLLECTION].find_one({"_id": profile_id}) == stored
