"""Repository layer to abstract MongoDB access patterns."""

from .account import AccountRepository, SessionRepository
from .chat import ChatThreadRepository
from .profile import ProfileRepository
from .relationships import (
    BlockRepository,
    InterestRepository,
    ReportRepository,
    ShortlistRepository,
)

__all__ = [
    "AccountRepository",
    "BlockRepository",
    "ChatThreadRepository",
    "InterestRepository",
    "ProfileRepository",
    "ReportRepository",
    "SessionRepository",
    "ShortlistRepository",
]
