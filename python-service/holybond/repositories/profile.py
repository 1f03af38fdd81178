"""Repository helpers for matrimony profile persistence."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import PROFILES_COLLECTION
from ..models.identifiers import generate_profile_id
from ..models.profile import ProfileDocument, ProfileStatus
from .exceptions import (
    ConcurrentUpdateRepositoryError,
    DuplicateKeyRepositoryError,
    NotFoundRepositoryError,
    storage_guard,
)

LOGGER = logging.getLogger("uvicorn.error")

_ID_ATTEMPTS = 5


class ProfileRepository:
    """MongoDB access layer for profile documents."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[PROFILES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_profile(
        self,
        *,
        fields: dict[str, Any],
        status: ProfileStatus,
        created_at: int,
        profile_id: Optional[str] = None,
    ) -> ProfileDocument:
        """Insert a profile, drawing a fresh member id when the random one collides."""

        for _ in range(_ID_ATTEMPTS):
            doc = {
                **fields,
                "_id": profile_id or generate_profile_id(),
                "status": status,
                "createdAt": created_at,
                "updatedAt": created_at,
                "version": 0,
            }
            try:
                with storage_guard("profile"):
                    await self._collection.insert_one(doc)
            except DuplicateKeyError:
                if profile_id:
                    raise DuplicateKeyRepositoryError("profile id already exists") from None
                LOGGER.debug("Profile id collision for %s, retrying", doc["_id"])
                continue
            return ProfileDocument(**doc)
        raise DuplicateKeyRepositoryError("could not allocate a profile id")

    async def get_by_id(self, profile_id: str) -> Optional[ProfileDocument]:
        doc = await self._collection.find_one({"_id": profile_id})
        return ProfileDocument(**doc) if doc else None

    async def get_many(self, profile_ids: Iterable[str]) -> List[ProfileDocument]:
        ids = list(profile_ids)
        if not ids:
            return []
        docs = await self._collection.find({"_id": {"$in": ids}}).to_list(length=None)
        by_id = {doc["_id"]: ProfileDocument(**doc) for doc in docs}
        # Preserve the caller's ordering
        return [by_id[pid] for pid in ids if pid in by_id]

    async def find_profiles(
        self,
        query: dict[str, Any],
        *,
        sort: Sequence[Tuple[str, int]] = (("createdAt", DESCENDING),),
        skip: int = 0,
        limit: int = 0,
    ) -> List[ProfileDocument]:
        cursor = self._collection.find(query).sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(length=None)
        return [ProfileDocument(**doc) for doc in docs]

    async def count_profiles(self, query: dict[str, Any]) -> int:
        return await self._collection.count_documents(query)

    async def compare_and_set(
        self,
        *,
        profile_id: str,
        expected_version: int,
        updates: dict[str, Any],
    ) -> ProfileDocument:
        """Apply ``updates`` only if nobody else wrote the profile since it was read."""

        with storage_guard("profile"):
            doc = await self._collection.find_one_and_update(
                {"_id": profile_id, "version": expected_version},
                {"$set": updates, "$inc": {"version": 1}},
                return_document=ReturnDocument.AFTER,
            )
        if doc:
            return ProfileDocument(**doc)
        exists = await self._collection.find_one({"_id": profile_id}, projection={"_id": 1})
        if not exists:
            raise NotFoundRepositoryError("profile not found")
        raise ConcurrentUpdateRepositoryError("profile was modified concurrently")

    async def set_status(
        self,
        *,
        profile_id: str,
        status: ProfileStatus,
        updated_at: int,
    ) -> ProfileDocument:
        doc = await self._collection.find_one_and_update(
            {"_id": profile_id},
            {"$set": {"status": status, "updatedAt": updated_at}, "$inc": {"version": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundRepositoryError("profile not found")
        return ProfileDocument(**doc)

    async def delete_by_id(self, profile_id: str) -> bool:
        result = await self._collection.delete_one({"_id": profile_id})
        return bool(result.deleted_count)


__all__ = ["ProfileRepository"]
