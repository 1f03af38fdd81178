"""Repository helpers for accounts and login sessions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from ..db.collections import ACCOUNTS_COLLECTION, SESSIONS_COLLECTION
from ..models.account import AccountDocument, Role
from .exceptions import DuplicateKeyRepositoryError, storage_guard

LOGGER = logging.getLogger("uvicorn.error")


class AccountRepository:
    """Thin abstraction over the accounts collection."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[ACCOUNTS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_account(
        self,
        *,
        email: str,
        password_hash: str,
        role: Role,
        profile_id: str,
        created_at: int,
    ) -> AccountDocument:
        """Insert a new account document."""

        doc = {
            "_id": ObjectId(),
            "email": email,
            "emailLower": email.lower(),
            "passwordHash": password_hash,
            "role": role,
            "profileId": profile_id,
            "createdAt": created_at,
        }
        try:
            with storage_guard("account"):
                await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            LOGGER.debug("Duplicate account insertion for email=%s", email)
            raise DuplicateKeyRepositoryError("email already exists") from exc
        return AccountDocument(**doc)

    async def get_by_email(self, email: str) -> Optional[AccountDocument]:
        doc = await self._collection.find_one({"emailLower": email.lower()})
        return AccountDocument(**doc) if doc else None

    async def get_by_id(self, account_id: ObjectId) -> Optional[AccountDocument]:
        doc = await self._collection.find_one({"_id": account_id})
        return AccountDocument(**doc) if doc else None

    async def email_exists(self, email: str) -> bool:
        doc = await self._collection.find_one({"emailLower": email.lower()}, projection={"_id": 1})
        return doc is not None

    async def list_accounts(self) -> List[AccountDocument]:
        docs = await self._collection.find({}).sort("createdAt", ASCENDING).to_list(length=None)
        return [AccountDocument(**doc) for doc in docs]


class SessionRepository:
    """Server-side session records; a bearer token is valid only while its record exists."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = database[SESSIONS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_session(
        self,
        *,
        session_id: str,
        account: AccountDocument,
        created_at: int,
        expires_at: datetime,
    ) -> Dict[str, Any]:
        doc = {
            "_id": session_id,
            "accountId": str(account.id),
            "email": account.email,
            "role": account.role,
            "profileId": account.profile_id,
            "createdAt": created_at,
            "expiresAt": expires_at,
        }
        await self._collection.insert_one(doc)
        return doc

    async def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        return await self._collection.find_one({"_id": session_id})

    async def delete_session(self, session_id: str) -> bool:
        result = await self._collection.delete_one({"_id": session_id})
        return bool(result.deleted_count)


__all__ = ["AccountRepository", "SessionRepository"]
