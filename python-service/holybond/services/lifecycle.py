"""Profile lifecycle rules: field normalisation, the re-review diff and age math.

Status machine::

    PENDING --admin--> APPROVED | REJECTED
    APPROVED | REJECTED --owner edits a non-photo field--> PENDING

Photo-only edits never move the status.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..integrations.cloudinary import host_photo_reference
from ..models.profile import (
    EDITABLE_FIELDS,
    ProfileDocument,
    ProfileDraft,
    ProfilePatch,
    ProfileStatus,
)
from .exceptions import ValidationFailedError

DOB_FORMAT = "%Y-%m-%d"

_MAX_LEN = {
    "fullName": 120,
    "aboutMe": 2000,
    "partnerPreference": 2000,
}
_DEFAULT_MAX_LEN = 120


def _clean_text(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationFailedError(f"{key} must be text")
    text = value.strip()
    limit = _MAX_LEN.get(key, _DEFAULT_MAX_LEN)
    if len(text) > limit:
        raise ValidationFailedError(f"{key} must be at most {limit} characters")
    return text


def parse_dob(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), DOB_FORMAT).date()
    except (AttributeError, ValueError):
        raise ValidationFailedError("dob must be a YYYY-MM-DD date") from None


def _validate_dob(value: Any, today: Optional[date] = None) -> str:
    born = parse_dob(value)
    if born > (today or date.today()):
        raise ValidationFailedError("dob cannot be in the future")
    return born.strftime(DOB_FORMAT)


def clean_photos(raw: Iterable[Any], limit: int) -> List[str]:
    photos: List[str] = []
    for entry in raw:
        if not isinstance(entry, str):
            continue
        cleaned = entry.strip()
        if not cleaned:
            continue
        if cleaned in photos:
            raise ValidationFailedError("each photo may appear only once")
        photos.append(cleaned)
    if len(photos) > limit:
        raise ValidationFailedError(f"at most {limit} photos allowed")
    return photos


async def host_photos(photos: List[str]) -> List[str]:
    """Swap inline data URLs for hosted references; the uploader is blocking."""
    if not any(p.lower().startswith("data:image/") for p in photos):
        return photos
    return [await asyncio.to_thread(host_photo_reference, p) for p in photos]


def _normalize_fields(values: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in values.items():
        if key == "photos":
            continue
        if key == "dob":
            out[key] = _validate_dob(value)
        elif key == "gender":
            out[key] = value
        else:
            out[key] = _clean_text(key, value)
    if "fullName" in out and not out["fullName"]:
        raise ValidationFailedError("fullName required")
    return out


def normalize_draft(draft: ProfileDraft, photo_limit: int) -> Dict[str, Any]:
    data = draft.model_dump(by_alias=True)
    fields = _normalize_fields({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
    fields["photos"] = clean_photos(data.get("photos") or [], photo_limit)
    return fields


def normalize_patch(patch: ProfilePatch, photo_limit: int) -> Dict[str, Any]:
    """Aliased updates for the fields the patch actually carries (unset and null are skipped)."""
    data = patch.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    updates = _normalize_fields({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
    if "photos" in data:
        updates["photos"] = clean_photos(data["photos"], photo_limit)
    return updates


def material_changes(existing: ProfileDocument, updates: Dict[str, Any]) -> List[str]:
    """Editable, non-photo fields whose new value differs from the stored one."""
    stored = existing.model_dump(by_alias=True)
    return [key for key in EDITABLE_FIELDS if key in updates and updates[key] != stored.get(key)]


def status_after_owner_edit(current: ProfileStatus, changed: bool) -> ProfileStatus:
    if changed and current in ("APPROVED", "REJECTED"):
        return "PENDING"
    return current


def age_from_dob(dob: str, today: Optional[date] = None) -> int:
    try:
        born = parse_dob(dob)
    except ValidationFailedError:
        return 0
    today = today or date.today()
    age = today.year - born.year - ((today.month, today.day) < (born.month, born.day))
    return max(age, 0)


def _years_before(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # 29 February in a non-leap target year
        return today.replace(year=today.year - years, day=28)


def dob_bounds(
    min_age: Optional[int],
    max_age: Optional[int],
    today: Optional[date] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """Translate an age window into an inclusive (earliest, latest) dob string range."""
    today = today or date.today()
    latest = earliest = None
    if min_age:
        latest = _years_before(today, min_age).strftime(DOB_FORMAT)
    if max_age:
        # Anyone born after this day has not yet turned max_age + 1
        cutoff = _years_before(today, max_age + 1)
        earliest = date.fromordinal(cutoff.toordinal() + 1).strftime(DOB_FORMAT)
    return earliest, latest


__all__ = [
    "age_from_dob",
    "clean_photos",
    "dob_bounds",
    "host_photos",
    "material_changes",
    "normalize_draft",
    "normalize_patch",
    "parse_dob",
    "status_after_owner_edit",
]
