from __future__ import annotations

import logging
import re
import time
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING

from ..config import get_settings
from ..db import get_db
from ..models.account import Session
from ..models.profile import (
    ProfileActions,
    ProfileDocument,
    ProfilePatch,
    ProfileSearchParams,
    ReviewStatus,
)
from ..redis_bus import publish
from ..repositories.exceptions import (
    ConcurrentUpdateRepositoryError,
    NotFoundRepositoryError,
    StorageExceededRepositoryError,
)
from ..repositories.profile import ProfileRepository
from ..repositories.relationships import BlockRepository, ShortlistRepository
from .exceptions import ConflictError, NotFoundError, StorageExceededError, ValidationFailedError
from .gating import (
    Action,
    authorize,
    decide_all,
    require_admin,
    require_member,
    require_session,
)
from .lifecycle import (
    clean_photos,
    dob_bounds,
    host_photos,
    material_changes,
    normalize_patch,
    status_after_owner_edit,
)

LOGGER = logging.getLogger("uvicorn.error")

_CAS_ATTEMPTS = 5

KEYWORD_FIELDS = (
    "fullName",
    "city",
    "state",
    "country",
    "education",
    "profession",
    "denomination",
    "motherTongue",
)

# Approved member profiles; the seeded admin profile is flagged out
DISCOVERABLE: Dict[str, Any] = {"status": "APPROVED", "discoverable": {"$ne": False}}

_SORTS = {
    "new": [("createdAt", DESCENDING)],
    # Younger first means the most recent dob first
    "age_asc": [("dob", DESCENDING), ("createdAt", DESCENDING)],
    "age_desc": [("dob", ASCENDING), ("createdAt", DESCENDING)],
}


def _contains(value: str) -> Dict[str, Any]:
    return {"$regex": re.escape(value), "$options": "i"}


def _choice(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    if not text or text.lower() == "any":
        return None
    return text


def build_search_query(
    params: ProfileSearchParams,
    *,
    exclude_ids: List[str],
) -> Dict[str, Any]:
    """Mongo filter for discoverable profiles matching ``params``."""

    query: Dict[str, Any] = dict(DISCOVERABLE)
    if exclude_ids:
        query["_id"] = {"$nin": exclude_ids}

    keyword = (params.q or "").strip()
    if keyword:
        query["$or"] = [{field: _contains(keyword)} for field in KEYWORD_FIELDS]

    for field, value in (
        ("gender", params.gender),
        ("denomination", params.denomination),
        ("motherTongue", params.mother_tongue),
    ):
        choice = _choice(value)
        if choice:
            query[field] = choice

    for field, value in (("country", params.country), ("state", params.state), ("city", params.city)):
        text = (value or "").strip()
        if text:
            query[field] = _contains(text)

    if params.min_age and params.max_age and params.min_age > params.max_age:
        raise ValidationFailedError("minAge cannot exceed maxAge")
    earliest, latest = dob_bounds(params.min_age, params.max_age)
    dob_range: Dict[str, str] = {}
    if earliest:
        dob_range["$gte"] = earliest
    if latest:
        dob_range["$lte"] = latest
    if dob_range:
        query["dob"] = dob_range
    return query


class ProfileService:
    """Profile lifecycle, visibility and discovery."""

    def __init__(
        self,
        profiles: ProfileRepository,
        shortlists: ShortlistRepository,
        blocks: BlockRepository,
        *,
        photo_limit: int,
    ) -> None:
        self._profiles = profiles
        self._shortlists = shortlists
        self._blocks = blocks
        self._photo_limit = photo_limit

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def _require_profile(self, profile_id: str) -> ProfileDocument:
        profile = await self._profiles.get_by_id(profile_id.strip())
        if not profile:
            raise NotFoundError("profile not found")
        return profile

    # -- owner ------------------------------------------------------------

    async def get_my_profile(self, session: Optional[Session]) -> ProfileDocument:
        current = require_member(session, "have a member profile")
        return await self._require_profile(current.profile_id)

    async def update_my_profile(
        self,
        session: Optional[Session],
        patch: ProfilePatch,
    ) -> ProfileDocument:
        """Apply an owner edit; any material change sends the profile back to review."""

        current = require_member(session, "update profile")
        updates = normalize_patch(patch, self._photo_limit)
        if "photos" in updates:
            updates["photos"] = await host_photos(updates["photos"])
        if not updates:
            return await self._require_profile(current.profile_id)

        for _ in range(_CAS_ATTEMPTS):
            existing = await self._require_profile(current.profile_id)
            changed = material_changes(existing, updates)
            next_status = status_after_owner_edit(existing.status, bool(changed))
            try:
                updated = await self._profiles.compare_and_set(
                    profile_id=existing.id,
                    expected_version=existing.version,
                    updates={**updates, "status": next_status, "updatedAt": self._now_ms()},
                )
            except ConcurrentUpdateRepositoryError:
                LOGGER.debug("Profile %s changed during edit, retrying", existing.id)
                continue
            except NotFoundRepositoryError:
                raise NotFoundError("profile not found") from None
            except StorageExceededRepositoryError as exc:
                raise StorageExceededError(
                    "storage limit exceeded; upload smaller photos (or fewer)"
                ) from exc

            if next_status != existing.status:
                LOGGER.info(
                    "Profile %s moved %s -> %s after owner edit of %s",
                    existing.id,
                    existing.status,
                    next_status,
                    ",".join(changed),
                )
            await publish(
                "profiles",
                {"type": "profile.updated", "profileId": updated.id, "status": updated.status},
            )
            return updated

        raise ConflictError("profile is being modified concurrently; try again")

    async def update_my_photos(self, session: Optional[Session], photos: List[str]) -> ProfileDocument:
        require_member(session, "update photos")
        clean_photos(photos, self._photo_limit)
        return await self.update_my_profile(session, ProfilePatch(photos=photos))

    # -- admin review -----------------------------------------------------

    async def list_pending(self, session: Optional[Session]) -> List[ProfileDocument]:
        require_admin(session)
        return await self._profiles.find_profiles({"status": "PENDING"}, sort=[("createdAt", ASCENDING)])

    async def set_profile_status(
        self,
        session: Optional[Session],
        profile_id: str,
        status: ReviewStatus,
    ) -> ProfileDocument:
        admin = require_admin(session)
        if status not in ("APPROVED", "REJECTED"):
            raise ValidationFailedError("status must be APPROVED or REJECTED")
        try:
            updated = await self._profiles.set_status(
                profile_id=profile_id.strip(),
                status=status,
                updated_at=self._now_ms(),
            )
        except NotFoundRepositoryError:
            raise NotFoundError("profile not found") from None
        LOGGER.info("Admin %s set profile %s to %s", admin.email, updated.id, status)
        await publish(
            "profiles",
            {"type": "profile.status", "profileId": updated.id, "status": status},
        )
        return updated

    # -- visibility & discovery -------------------------------------------

    async def get_profile(self, session: Optional[Session], profile_id: str) -> ProfileDocument:
        profile = await self._require_profile(profile_id)
        authorize(session, Action.VIEW, profile).enforce()
        return profile

    async def list_approved(self) -> List[ProfileDocument]:
        return await self._profiles.find_profiles(dict(DISCOVERABLE))

    async def search(
        self,
        session: Optional[Session],
        params: ProfileSearchParams,
    ) -> tuple[List[ProfileDocument], int]:
        current = require_session(session)
        exclude: List[str] = []
        if current.role == "USER":
            exclude = [current.profile_id, *await self._blocks.target_ids(current.profile_id)]
        query = build_search_query(params, exclude_ids=exclude)
        items = await self._profiles.find_profiles(
            query,
            sort=_SORTS.get(params.sort, _SORTS["new"]),
            skip=params.skip,
            limit=params.limit,
        )
        total = await self._profiles.count_profiles(query)
        return items, total

    async def profile_actions(self, session: Optional[Session], profile_id: str) -> ProfileActions:
        profile = await self.get_profile(session, profile_id)
        is_member = session is not None and session.role == "USER"
        is_me = session is not None and session.profile_id == profile.id
        shortlisted = blocked = False
        if is_member and not is_me:
            shortlisted = await self._shortlists.exists(session.profile_id, profile.id)
            blocked = await self._blocks.exists(session.profile_id, profile.id)

        decisions = decide_all(session, profile, blocked=blocked)
        return ProfileActions(
            profileId=profile.id,
            isMe=is_me,
            isShortlisted=shortlisted,
            isBlocked=blocked,
            allowed={action.value: decision.allowed for action, decision in decisions.items()},
            reasons={
                action.value: decision.reason
                for action, decision in decisions.items()
                if not decision.allowed
            },
        )


def get_profile_service() -> ProfileService:
    db = get_db()
    return ProfileService(
        ProfileRepository(db),
        ShortlistRepository(db),
        BlockRepository(db),
        photo_limit=get_settings().profile_photo_limit,
    )


__all__ = ["ProfileService", "build_search_query", "get_profile_service"]
