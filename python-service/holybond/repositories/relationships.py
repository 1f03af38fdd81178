"""Repositories for the directional profile relations: shortlist, block, interest, report."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import (
    BLOCKS_COLLECTION,
    INTERESTS_COLLECTION,
    REPORTS_COLLECTION,
    SHORTLISTS_COLLECTION,
)
from ..models.identifiers import outstanding_interest_key
from ..models.relationships import Interest, InterestAnswer, Report
from .exceptions import storage_guard

LOGGER = logging.getLogger("uvicorn.error")


class _EdgeRepository:
    """Unique (owner, target) edges; adds are idempotent upserts."""

    collection_name: str = ""
    target_field: str = ""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = database[self.collection_name]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    def _key(self, owner_profile_id: str, target_profile_id: str) -> dict:
        return {"ownerProfileId": owner_profile_id, self.target_field: target_profile_id}

    async def add(self, owner_profile_id: str, target_profile_id: str, created_at: int) -> bool:
        """Create the edge if absent; returns True when a new edge was written."""
        key = self._key(owner_profile_id, target_profile_id)
        try:
            with storage_guard(self.collection_name):
                result = await self._collection.update_one(
                    key,
                    {"$setOnInsert": {**key, "createdAt": created_at}},
                    upsert=True,
                )
        except DuplicateKeyError:
            # A concurrent writer inserted the same edge; the unique index keeps one copy
            return False
        return result.upserted_id is not None

    async def remove(self, owner_profile_id: str, target_profile_id: str) -> bool:
        result = await self._collection.delete_one(self._key(owner_profile_id, target_profile_id))
        return bool(result.deleted_count)

    async def exists(self, owner_profile_id: str, target_profile_id: str) -> bool:
        doc = await self._collection.find_one(
            self._key(owner_profile_id, target_profile_id),
            projection={"_id": 1},
        )
        return doc is not None

    async def target_ids(self, owner_profile_id: str) -> List[str]:
        cursor = (
            self._collection.find({"ownerProfileId": owner_profile_id})
            .sort("createdAt", DESCENDING)
        )
        docs = await cursor.to_list(length=None)
        return [doc[self.target_field] for doc in docs]


class ShortlistRepository(_EdgeRepository):
    collection_name = SHORTLISTS_COLLECTION
    target_field = "savedProfileId"


class BlockRepository(_EdgeRepository):
    collection_name = BLOCKS_COLLECTION
    target_field = "blockedProfileId"


class InterestRepository:
    """Interests with a per-edge status; one SENT interest per ordered pair."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = database[INTERESTS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def find_outstanding(self, from_profile_id: str, to_profile_id: str) -> Optional[Interest]:
        doc = await self._collection.find_one(
            {"outstandingKey": outstanding_interest_key(from_profile_id, to_profile_id)}
        )
        return Interest(**doc) if doc else None

    async def create_outstanding(
        self,
        *,
        from_profile_id: str,
        to_profile_id: str,
        message: Optional[str],
        created_at: int,
    ) -> Tuple[Interest, bool]:
        """Insert a SENT interest or return the one already outstanding for the pair."""

        existing = await self.find_outstanding(from_profile_id, to_profile_id)
        if existing:
            return existing, False

        doc = {
            "_id": ObjectId(),
            "fromProfileId": from_profile_id,
            "toProfileId": to_profile_id,
            "message": message,
            "status": "SENT",
            "createdAt": created_at,
            "outstandingKey": outstanding_interest_key(from_profile_id, to_profile_id),
        }
        try:
            with storage_guard("interest"):
                await self._collection.insert_one(doc)
        except DuplicateKeyError:
            LOGGER.debug("Concurrent interest %s -> %s collapsed", from_profile_id, to_profile_id)
            existing = await self.find_outstanding(from_profile_id, to_profile_id)
            if existing:
                return existing, False
            raise
        return Interest(**doc), True

    async def get_by_id(self, interest_id: ObjectId) -> Optional[Interest]:
        doc = await self._collection.find_one({"_id": interest_id})
        return Interest(**doc) if doc else None

    async def list_sent(self, from_profile_id: str) -> List[Interest]:
        docs = await (
            self._collection.find({"fromProfileId": from_profile_id})
            .sort("createdAt", DESCENDING)
            .to_list(length=None)
        )
        return [Interest(**doc) for doc in docs]

    async def list_received(self, to_profile_id: str) -> List[Interest]:
        docs = await (
            self._collection.find({"toProfileId": to_profile_id})
            .sort("createdAt", DESCENDING)
            .to_list(length=None)
        )
        return [Interest(**doc) for doc in docs]

    async def answer(
        self,
        *,
        interest_id: ObjectId,
        to_profile_id: str,
        status: InterestAnswer,
        responded_at: int,
    ) -> Optional[Interest]:
        """Move a SENT interest addressed to ``to_profile_id`` into its terminal status.

        Returns None when no matching SENT interest exists (already answered or not the recipient).
        """

        doc = await self._collection.find_one_and_update(
            {"_id": interest_id, "toProfileId": to_profile_id, "status": "SENT"},
            {
                "$set": {"status": status, "respondedAt": responded_at},
                "$unset": {"outstandingKey": ""},
            },
            return_document=ReturnDocument.AFTER,
        )
        return Interest(**doc) if doc else None


class ReportRepository:
    """Append-only report log reviewed by the admin."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = database[REPORTS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_report(
        self,
        *,
        reporter_profile_id: str,
        reported_profile_id: str,
        reason: str,
        created_at: int,
    ) -> Report:
        doc = {
            "_id": ObjectId(),
            "reporterProfileId": reporter_profile_id,
            "reportedProfileId": reported_profile_id,
            "reason": reason,
            "createdAt": created_at,
        }
        with storage_guard("report"):
            await self._collection.insert_one(doc)
        return Report(**doc)

    async def list_reports(self) -> List[Report]:
        docs = await self._collection.find({}).sort("createdAt", DESCENDING).to_list(length=None)
        return [Report(**doc) for doc in docs]

    async def mark_reviewed(
        self,
        *,
        report_id: ObjectId,
        reviewed_by: str,
        reviewed_at: int,
    ) -> Optional[Report]:
        doc = await self._collection.find_one_and_update(
            {"_id": report_id},
            {"$set": {"reviewedAt": reviewed_at, "reviewedBy": reviewed_by}},
            return_document=ReturnDocument.AFTER,
        )
        return Report(**doc) if doc else None


__all__ = [
    "BlockRepository",
    "InterestRepository",
    "ReportRepository",
    "ShortlistRepository",
]
