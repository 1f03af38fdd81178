from __future__ import annotations

import logging
import time
from typing import List, Optional

from ..config import get_settings
from ..db import get_db
from ..models.account import Account, AccountWithProfile, Session
from ..models.identifiers import parse_object_id
from ..models.profile import ProfileDocument, ProfilePatch, public_profile
from ..redis_bus import publish
from ..repositories.account import AccountRepository
from ..repositories.exceptions import (
    ConcurrentUpdateRepositoryError,
    NotFoundRepositoryError,
    StorageExceededRepositoryError,
)
from ..repositories.profile import ProfileRepository
from .account_service import redact_account
from .exceptions import ConflictError, NotFoundError, StorageExceededError
from .gating import require_admin
from .lifecycle import host_photos, normalize_patch

LOGGER = logging.getLogger("uvicorn.error")

_CAS_ATTEMPTS = 5


class AdminService:
    """Admin console reads and moderation edits."""

    def __init__(
        self,
        accounts: AccountRepository,
        profiles: ProfileRepository,
        *,
        photo_limit: int,
    ) -> None:
        self._accounts = accounts
        self._profiles = profiles
        self._photo_limit = photo_limit

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def list_users(self, session: Optional[Session]) -> List[Account]:
        require_admin(session)
        return [redact_account(doc) for doc in await self._accounts.list_accounts()]

    async def list_profiles(self, session: Optional[Session]) -> List[ProfileDocument]:
        require_admin(session)
        return await self._profiles.find_profiles({})

    async def get_user_with_profile(self, session: Optional[Session], account_id: str) -> AccountWithProfile:
        require_admin(session)
        oid = parse_object_id(account_id)
        account = await self._accounts.get_by_id(oid) if oid is not None else None
        if not account:
            raise NotFoundError("user not found")
        profile = await self._profiles.get_by_id(account.profile_id)
        return AccountWithProfile(
            account=redact_account(account),
            profile=public_profile(profile) if profile else None,
        )

    async def admin_update_profile(
        self,
        session: Optional[Session],
        profile_id: str,
        patch: ProfilePatch,
    ) -> ProfileDocument:
        """Moderation edit; the review status stays where it is."""

        admin = require_admin(session)
        target_id = (profile_id or "").strip()
        updates = normalize_patch(patch, self._photo_limit)
        if "photos" in updates:
            updates["photos"] = await host_photos(updates["photos"])

        for _ in range(_CAS_ATTEMPTS):
            existing = await self._profiles.get_by_id(target_id)
            if not existing:
                raise NotFoundError("profile not found")
            if not updates:
                return existing
            try:
                updated = await self._profiles.compare_and_set(
                    profile_id=existing.id,
                    expected_version=existing.version,
                    updates={**updates, "updatedAt": self._now_ms()},
                )
            except ConcurrentUpdateRepositoryError:
                continue
            except NotFoundRepositoryError:
                raise NotFoundError("profile not found") from None
            except StorageExceededRepositoryError as exc:
                raise StorageExceededError("profile too large; upload smaller or fewer photos") from exc
            LOGGER.info("Admin %s edited profile %s (%s)", admin.email, updated.id, ",".join(sorted(updates)))
            await publish(
                "profiles",
                {"type": "profile.updated", "profileId": updated.id, "status": updated.status},
            )
            return updated

        raise ConflictError("profile is being modified concurrently; try again")


def get_admin_service() -> AdminService:
    db = get_db()
    return AdminService(
        AccountRepository(db),
        ProfileRepository(db),
        photo_limit=get_settings().profile_photo_limit,
    )


__all__ = ["AdminService", "get_admin_service"]
