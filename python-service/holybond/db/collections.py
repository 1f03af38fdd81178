"""MongoDB collection names used by the python-service."""

from __future__ import annotations

ACCOUNTS_COLLECTION = "accounts"
SESSIONS_COLLECTION = "sessions"
PROFILES_COLLECTION = "profiles"
SHORTLISTS_COLLECTION = "shortlists"
INTERESTS_COLLECTION = "interests"
BLOCKS_COLLECTION = "blocks"
REPORTS_COLLECTION = "reports"
CHAT_THREADS_COLLECTION = "chat_threads"

__all__ = [
    "ACCOUNTS_COLLECTION",
    "SESSIONS_COLLECTION",
    "PROFILES_COLLECTION",
    "SHORTLISTS_COLLECTION",
    "INTERESTS_COLLECTION",
    "BLOCKS_COLLECTION",
    "REPORTS_COLLECTION",
    "CHAT_THREADS_COLLECTION",
]
