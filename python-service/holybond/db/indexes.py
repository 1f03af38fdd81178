from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from .collections import (
    ACCOUNTS_COLLECTION,
    BLOCKS_COLLECTION,
    CHAT_THREADS_COLLECTION,
    INTERESTS_COLLECTION,
    PROFILES_COLLECTION,
    REPORTS_COLLECTION,
    SESSIONS_COLLECTION,
    SHORTLISTS_COLLECTION,
)


async def ensure_identity_indexes(db: AsyncIOMotorDatabase) -> None:
    accounts = db[ACCOUNTS_COLLECTION]
    await accounts.create_index("emailLower", name="accounts_email_lower_unique", unique=True)
    await accounts.create_index("profileId", name="accounts_profile_id_unique", unique=True)
    # Expired sessions are reaped by the TTL monitor
    await db[SESSIONS_COLLECTION].create_index(
        "expiresAt",
        name="sessions_expires_at_ttl",
        expireAfterSeconds=0,
    )


async def ensure_profile_indexes(db: AsyncIOMotorDatabase) -> None:
    profiles = db[PROFILES_COLLECTION]
    await profiles.create_index(
        [("status", ASCENDING), ("createdAt", DESCENDING)],
        name="profiles_status_created_idx",
    )
    await profiles.create_index(
        [("status", ASCENDING), ("dob", ASCENDING)],
        name="profiles_status_dob_idx",
    )


async def ensure_relationship_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[SHORTLISTS_COLLECTION].create_index(
        [("ownerProfileId", ASCENDING), ("savedProfileId", ASCENDING)],
        name="shortlists_owner_saved_unique",
        unique=True,
    )
    await db[BLOCKS_COLLECTION].create_index(
        [("ownerProfileId", ASCENDING), ("blockedProfileId", ASCENDING)],
        name="blocks_owner_blocked_unique",
        unique=True,
    )
    interests = db[INTERESTS_COLLECTION]
    # Only SENT interests carry outstandingKey, so at most one is open per ordered pair
    await interests.create_index(
        "outstandingKey",
        name="interests_outstanding_unique",
        unique=True,
        sparse=True,
    )
    await interests.create_index(
        [("toProfileId", ASCENDING), ("createdAt", DESCENDING)],
        name="interests_to_idx",
    )
    await interests.create_index(
        [("fromProfileId", ASCENDING), ("createdAt", DESCENDING)],
        name="interests_from_idx",
    )
    await db[REPORTS_COLLECTION].create_index(
        [("createdAt", DESCENDING)],
        name="reports_created_idx",
    )


async def ensure_chat_indexes(db: AsyncIOMotorDatabase) -> None:
    threads = db[CHAT_THREADS_COLLECTION]
    await threads.create_index("pairKey", name="chat_threads_pair_unique", unique=True)
    await threads.create_index(
        [("a", ASCENDING), ("lastActivityAt", DESCENDING)],
        name="chat_threads_a_idx",
    )
    await threads.create_index(
        [("b", ASCENDING), ("lastActivityAt", DESCENDING)],
        name="chat_threads_b_idx",
    )


__all__ = [
    "ensure_identity_indexes",
    "ensure_profile_indexes",
    "ensure_relationship_indexes",
    "ensure_chat_indexes",
]
