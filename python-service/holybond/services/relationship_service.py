from __future__ import annotations

import logging
import time
from typing import List, Optional

from ..db import get_db
from ..models.account import Session
from ..models.identifiers import parse_object_id
from ..models.profile import ProfileDocument
from ..models.relationships import Interest, InterestAnswer, Report
from ..redis_bus import publish
from ..repositories.exceptions import StorageExceededRepositoryError
from ..repositories.profile import ProfileRepository
from ..repositories.relationships import (
    BlockRepository,
    InterestRepository,
    ReportRepository,
    ShortlistRepository,
)
from .exceptions import (
    ForbiddenError,
    NotFoundError,
    StorageExceededError,
    ValidationFailedError,
)
from .gating import Action, authorize, ensure_not_self, require_admin, require_member

LOGGER = logging.getLogger("uvicorn.error")


class RelationshipService:
    """Shortlists, interests, blocks and reports between member profiles."""

    def __init__(
        self,
        profiles: ProfileRepository,
        shortlists: ShortlistRepository,
        interests: InterestRepository,
        blocks: BlockRepository,
        reports: ReportRepository,
    ) -> None:
        self._profiles = profiles
        self._shortlists = shortlists
        self._interests = interests
        self._blocks = blocks
        self._reports = reports

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def _target(
        self,
        session: Optional[Session],
        action: Action,
        profile_id: str,
    ) -> tuple[Session, ProfileDocument]:
        """Resolve the target of an additive action and run it through the gate."""

        current = require_member(session, action.value)
        target_id = (profile_id or "").strip()
        if not target_id:
            raise ValidationFailedError("profile id required")
        ensure_not_self(current, target_id, action.value)
        target = await self._profiles.get_by_id(target_id)
        if not target:
            raise NotFoundError("profile not found")
        blocked = False
        if action in (Action.INTEREST, Action.CHAT):
            blocked = await self._blocks.exists(current.profile_id, target.id)
        authorize(current, action, target, blocked=blocked).enforce()
        return current, target

    def _owner(self, session: Optional[Session], verb: str, profile_id: str) -> tuple[Session, str]:
        current = require_member(session, verb)
        target_id = (profile_id or "").strip()
        ensure_not_self(current, target_id, verb)
        return current, target_id

    # -- shortlist --------------------------------------------------------

    async def add_to_shortlist(self, session: Optional[Session], profile_id: str) -> bool:
        current, target = await self._target(session, Action.SHORTLIST, profile_id)
        await self._shortlists.add(current.profile_id, target.id, self._now_ms())
        return True

    async def remove_from_shortlist(self, session: Optional[Session], profile_id: str) -> bool:
        current, target_id = self._owner(session, "unshortlist", profile_id)
        await self._shortlists.remove(current.profile_id, target_id)
        return False

    async def is_shortlisted(self, session: Optional[Session], profile_id: str) -> bool:
        current = require_member(session, "shortlist")
        return await self._shortlists.exists(current.profile_id, (profile_id or "").strip())

    async def my_shortlist_profiles(self, session: Optional[Session]) -> List[ProfileDocument]:
        """Saved profiles, newest first, minus the ones I blocked or that are not approved."""

        current = require_member(session, "shortlist")
        saved = await self._shortlists.target_ids(current.profile_id)
        hidden = set(await self._blocks.target_ids(current.profile_id))
        profiles = await self._profiles.get_many(pid for pid in saved if pid not in hidden)
        return [p for p in profiles if p.status == "APPROVED"]

    # -- interests --------------------------------------------------------

    async def send_interest(
        self,
        session: Optional[Session],
        to_profile_id: str,
        message: Optional[str] = None,
    ) -> Interest:
        current, target = await self._target(session, Action.INTEREST, to_profile_id)
        text = (message or "").strip() or None
        try:
            interest, created = await self._interests.create_outstanding(
                from_profile_id=current.profile_id,
                to_profile_id=target.id,
                message=text,
                created_at=self._now_ms(),
            )
        except StorageExceededRepositoryError as exc:
            raise StorageExceededError("interest could not be stored") from exc
        if created:
            await publish(
                "interests",
                {
                    "type": "interest.sent",
                    "interestId": str(interest.id),
                    "fromProfileId": interest.from_profile_id,
                    "toProfileId": interest.to_profile_id,
                },
            )
        return interest

    async def my_sent_interests(self, session: Optional[Session]) -> List[Interest]:
        current = require_member(session, "view interests")
        return await self._interests.list_sent(current.profile_id)

    async def my_received_interests(self, session: Optional[Session]) -> List[Interest]:
        current = require_member(session, "view interests")
        return await self._interests.list_received(current.profile_id)

    @staticmethod
    def _check_answer(current: Session, interest: Interest, status: InterestAnswer) -> Optional[Interest]:
        if interest.to_profile_id != current.profile_id:
            raise ForbiddenError("only the recipient can respond to an interest")
        if interest.status == status:
            return interest
        if interest.status != "SENT":
            raise ValidationFailedError(f"interest already {interest.status.lower()}")
        return None

    async def set_interest_status(
        self,
        session: Optional[Session],
        interest_id: str,
        status: InterestAnswer,
    ) -> Interest:
        """Accept or reject a received interest. Repeating the same answer is a no-op."""

        current = require_member(session, "respond to interests")
        if status not in ("ACCEPTED", "REJECTED"):
            raise ValidationFailedError("status must be ACCEPTED or REJECTED")
        oid = parse_object_id(interest_id)
        if oid is None:
            raise NotFoundError("interest not found")
        interest = await self._interests.get_by_id(oid)
        if not interest:
            raise NotFoundError("interest not found")
        settled = self._check_answer(current, interest, status)
        if settled:
            return settled

        answered = await self._interests.answer(
            interest_id=oid,
            to_profile_id=current.profile_id,
            status=status,
            responded_at=self._now_ms(),
        )
        if answered is None:
            # Answered concurrently; judge against whatever won
            latest = await self._interests.get_by_id(oid)
            if not latest:
                raise NotFoundError("interest not found")
            settled = self._check_answer(current, latest, status)
            if settled:
                return settled
            raise ValidationFailedError("interest is no longer open")

        LOGGER.info("Interest %s %s by %s", answered.id, status, current.profile_id)
        await publish(
            "interests",
            {
                "type": "interest.answered",
                "interestId": str(answered.id),
                "fromProfileId": answered.from_profile_id,
                "toProfileId": answered.to_profile_id,
                "status": status,
            },
        )
        return answered

    # -- blocks -----------------------------------------------------------

    async def block_profile(self, session: Optional[Session], profile_id: str) -> bool:
        current, target = await self._target(session, Action.BLOCK, profile_id)
        if await self._blocks.add(current.profile_id, target.id, self._now_ms()):
            LOGGER.info("Profile %s blocked %s", current.profile_id, target.id)
        return True

    async def unblock_profile(self, session: Optional[Session], profile_id: str) -> bool:
        current, target_id = self._owner(session, "unblock", profile_id)
        await self._blocks.remove(current.profile_id, target_id)
        return False

    async def is_blocked(self, session: Optional[Session], profile_id: str) -> bool:
        current = require_member(session, "block")
        return await self._blocks.exists(current.profile_id, (profile_id or "").strip())

    async def my_blocked_profiles(self, session: Optional[Session]) -> List[ProfileDocument]:
        current = require_member(session, "block")
        return await self._profiles.get_many(await self._blocks.target_ids(current.profile_id))

    # -- reports ----------------------------------------------------------

    async def report_profile(self, session: Optional[Session], profile_id: str, reason: str) -> Report:
        current, target = await self._target(session, Action.REPORT, profile_id)
        text = (reason or "").strip()
        if not text:
            raise ValidationFailedError("reason required")
        try:
            report = await self._reports.create_report(
                reporter_profile_id=current.profile_id,
                reported_profile_id=target.id,
                reason=text,
                created_at=self._now_ms(),
            )
        except StorageExceededRepositoryError as exc:
            raise StorageExceededError("report could not be stored") from exc
        LOGGER.info("Profile %s reported %s", current.profile_id, target.id)
        return report

    async def list_reports(self, session: Optional[Session]) -> List[Report]:
        require_admin(session)
        return await self._reports.list_reports()

    async def mark_report_reviewed(self, session: Optional[Session], report_id: str) -> Report:
        admin = require_admin(session)
        oid = parse_object_id(report_id)
        report = None
        if oid is not None:
            report = await self._reports.mark_reviewed(
                report_id=oid,
                reviewed_by=admin.email,
                reviewed_at=self._now_ms(),
            )
        if not report:
            raise NotFoundError("report not found")
        return report


def get_relationship_service() -> RelationshipService:
    db = get_db()
    return RelationshipService(
        ProfileRepository(db),
        ShortlistRepository(db),
        InterestRepository(db),
        BlockRepository(db),
        ReportRepository(db),
    )


__all__ = ["RelationshipService", "get_relationship_service"]
