"""Repository helpers for two-party chat threads."""

from __future__ import annotations

import logging
from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import CHAT_THREADS_COLLECTION
from ..models.chat import ChatThread
from ..models.identifiers import pair_key
from .exceptions import NotFoundRepositoryError, storage_guard

LOGGER = logging.getLogger("uvicorn.error")


class ChatThreadRepository:
    """Threads keyed by the unordered participant pair, with an embedded message log."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = database[CHAT_THREADS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def get_or_create(self, *, me: str, other: str, created_at: int) -> ChatThread:
        """Return the thread for {me, other}, creating it as (a=me, b=other) if missing."""

        key = pair_key(me, other)
        update = {
            "$setOnInsert": {
                "_id": ObjectId(),
                "pairKey": key,
                "a": me,
                "b": other,
                "createdAt": created_at,
                "lastActivityAt": created_at,
                "messages": [],
            }
        }
        try:
            doc = await self._collection.find_one_and_update(
                {"pairKey": key},
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # Lost an upsert race; the winner's thread is the canonical one
            doc = await self._collection.find_one({"pairKey": key})
        if not doc:  # pragma: no cover - Motor returns the document on upsert
            raise NotFoundRepositoryError("chat thread upsert failed")
        return ChatThread(**doc)

    async def get_by_id(self, thread_id: ObjectId) -> Optional[ChatThread]:
        doc = await self._collection.find_one({"_id": thread_id})
        return ChatThread(**doc) if doc else None

    async def list_for_profile(self, profile_id: str) -> List[ChatThread]:
        cursor = self._collection.find({"$or": [{"a": profile_id}, {"b": profile_id}]}).sort(
            [("lastActivityAt", DESCENDING), ("createdAt", DESCENDING)]
        )
        docs = await cursor.to_list(length=None)
        return [ChatThread(**doc) for doc in docs]

    async def append_message(
        self,
        *,
        thread_id: ObjectId,
        message: dict,
    ) -> ChatThread:
        with storage_guard("chat thread"):
            doc = await self._collection.find_one_and_update(
                {"_id": thread_id},
                {
                    "$push": {"messages": message},
                    "$set": {"lastActivityAt": message["createdAt"]},
                },
                return_document=ReturnDocument.AFTER,
            )
        if not doc:
            raise NotFoundRepositoryError("chat thread not found")
        return ChatThread(**doc)


__all__ = ["ChatThreadRepository"]
