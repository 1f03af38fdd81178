from __future__ import annotations

from datetime import date

import pytest

from holybond.models.profile import ProfileDocument, ProfilePatch, ProfileSearchParams
from holybond.services.exceptions import ValidationFailedError
from holybond.services.lifecycle import (
    age_from_dob,
    clean_photos,
    dob_bounds,
    material_changes,
    normalize_patch,
    status_after_owner_edit,
)
from holybond.services.profile_service import build_search_query


def _stored(**overrides) -> ProfileDocument:
    doc = {
        "_id": "HB-123456",
        "fullName": "Alice",
        "gender": "Female",
        "dob": "1995-06-01",
        "city": "Kochi",
        "photos": ["https://img.example.com/1.jpg"],
        "status": "APPROVED",
        "createdAt": 1,
        "updatedAt": 1,
    }
    doc.update(overrides)
    return ProfileDocument(**doc)


def test_photos_are_not_material() -> None:
    updates = normalize_patch(ProfilePatch(photos=["https://img.example.com/2.jpg"]), 5)
    assert material_changes(_stored(), updates) == []


def test_only_differing_fields_are_material() -> None:
    updates = normalize_patch(ProfilePatch(city=" Kochi ", state="Kerala"), 5)
    assert updates == {"city": "Kochi", "state": "Kerala"}
    assert material_changes(_stored(), updates) == ["state"]


def test_null_fields_are_left_alone() -> None:
    assert normalize_patch(ProfilePatch(city=None, photos=None), 5) == {}


@pytest.mark.parametrize(
    ("current", "changed", "expected"),
    [
        ("APPROVED", True, "PENDING"),
        ("REJECTED", True, "PENDING"),
        ("PENDING", True, "PENDING"),
        ("APPROVED", False, "APPROVED"),
        ("REJECTED", False, "REJECTED"),
    ],
)
def test_status_after_owner_edit(current: str, changed: bool, expected: str) -> None:
    assert status_after_owner_edit(current, changed) == expected


def test_clean_photos_keeps_order_and_limit() -> None:
    assert clean_photos(["b", " a ", "", 3], 5) == ["b", "a"]
    with pytest.raises(ValidationFailedError):
        clean_photos(["b", " b "], 5)
    with pytest.raises(ValidationFailedError):
        clean_photos([str(i) for i in range(6)], 5)


def test_age_and_dob_bounds() -> None:
    today = date(2026, 3, 15)
    assert age_from_dob("1996-03-15", today) == 30
    assert age_from_dob("1996-03-16", today) == 29
    assert age_from_dob("garbage", today) == 0

    earliest, latest = dob_bounds(25, 30, today)
    assert latest == "2001-03-15"
    assert earliest == "1995-03-16"
    assert age_from_dob(latest, today) == 25
    assert age_from_dob(earliest, today) == 30
    assert dob_bounds(None, None, today) == (None, None)


def test_leap_day_bounds() -> None:
    earliest, latest = dob_bounds(1, None, date(2024, 2, 29))
    assert latest == "2023-02-28"
    assert earliest is None


def test_search_query_shape() -> None:
    params = ProfileSearchParams(q="kochi", gender="Any", denomination="CSI", city="koch")
    query = build_search_query(params, exclude_ids=["HB-1", "HB-2"])

    assert query["status"] == "APPROVED"
    assert query["_id"] == {"$nin": ["HB-1", "HB-2"]}
    assert "gender" not in query
    assert query["denomination"] == "CSI"
    assert query["city"]["$options"] == "i"
    assert {"fullName": {"$regex": "kochi", "$options": "i"}} in query["$or"]


def test_search_keyword_is_escaped() -> None:
    query = build_search_query(ProfileSearchParams(q="a.b"), exclude_ids=[])
    assert query["$or"][0]["fullName"]["$regex"] == r"a\.b"
    assert "_id" not in query
