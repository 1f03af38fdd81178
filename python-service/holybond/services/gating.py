"""Visibility and action gating shared by every matchmaking entry point."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type

from ..models.account import Session
from ..models.profile import ProfileDocument
from .exceptions import (
    AdminNotAllowedError,
    AuthRequiredError,
    ForbiddenError,
    NotFoundError,
    RoleForbiddenError,
    SelfActionForbiddenError,
    ServiceError,
)


class Action(str, Enum):
    VIEW = "view"
    SHORTLIST = "shortlist"
    INTEREST = "interest"
    CHAT = "chat"
    BLOCK = "block"
    REPORT = "report"


# Actions disabled while the viewer has the target blocked
BLOCK_GATED = frozenset({Action.INTEREST, Action.CHAT})


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""
    error: Optional[Type[ServiceError]] = None

    def enforce(self) -> None:
        if not self.allowed:
            raise (self.error or ForbiddenError)(self.reason)


_ALLOW = Decision(True)


def is_visible_to(session: Optional[Session], target: ProfileDocument) -> bool:
    if target.status == "APPROVED":
        return True
    if session is None:
        return False
    return session.role == "ADMIN" or session.profile_id == target.id


def authorize(
    session: Optional[Session],
    action: Action,
    target: ProfileDocument,
    *,
    blocked: bool = False,
) -> Decision:
    """Decide whether ``session`` may perform ``action`` against ``target``.

    ``blocked`` is whether the viewer has blocked the target; the reverse
    direction never restricts the viewer.
    """

    if action is Action.VIEW:
        if is_visible_to(session, target):
            return _ALLOW
        return Decision(False, "profile not found", NotFoundError)

    if session is None:
        return Decision(False, "login required", AuthRequiredError)
    if session.role == "ADMIN":
        return Decision(False, f"admin cannot {action.value}", AdminNotAllowedError)
    if session.profile_id == target.id:
        return Decision(False, f"cannot {action.value} your own profile", SelfActionForbiddenError)
    if target.status != "APPROVED":
        return Decision(False, "profile not found", NotFoundError)
    if blocked and action in BLOCK_GATED:
        return Decision(False, f"unblock to {action.value}", ForbiddenError)
    return _ALLOW


def decide_all(
    session: Optional[Session],
    target: ProfileDocument,
    *,
    blocked: bool = False,
) -> Dict[Action, Decision]:
    return {action: authorize(session, action, target, blocked=blocked) for action in Action}


def require_session(session: Optional[Session]) -> Session:
    if session is None:
        raise AuthRequiredError("login required")
    return session


def require_member(session: Optional[Session], verb: str = "use matchmaking") -> Session:
    """Ensure an ordinary member session; the admin is excluded from matchmaking."""
    current = require_session(session)
    if current.role != "USER":
        raise AdminNotAllowedError(f"admin cannot {verb}")
    return current


def require_admin(session: Optional[Session]) -> Session:
    current = require_session(session)
    if current.role != "ADMIN":
        raise RoleForbiddenError("admin only")
    return current


def ensure_not_self(session: Session, target_profile_id: str, verb: str) -> None:
    if session.profile_id == target_profile_id:
        raise SelfActionForbiddenError(f"cannot {verb} your own profile")


__all__ = [
    "Action",
    "BLOCK_GATED",
    "Decision",
    "authorize",
    "decide_all",
    "ensure_not_self",
    "is_visible_to",
    "require_admin",
    "require_member",
    "require_session",
]
