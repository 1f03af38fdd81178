from __future__ import annotations

import logging
import time
from typing import List, Optional

from bson import ObjectId

from ..db import get_db
from ..models.account import Session
from ..models.chat import ChatThread
from ..models.identifiers import parse_object_id
from ..redis_bus import publish
from ..repositories.chat import ChatThreadRepository
from ..repositories.exceptions import NotFoundRepositoryError, StorageExceededRepositoryError
from ..repositories.profile import ProfileRepository
from ..repositories.relationships import BlockRepository
from .exceptions import ForbiddenError, NotFoundError, StorageExceededError, ValidationFailedError
from .gating import Action, authorize, ensure_not_self, require_member

LOGGER = logging.getLogger("uvicorn.error")

MAX_MESSAGE_LENGTH = 4000


class ChatService:
    """Two-party threads keyed by the unordered profile pair."""

    def __init__(
        self,
        threads: ChatThreadRepository,
        profiles: ProfileRepository,
        blocks: BlockRepository,
    ) -> None:
        self._threads = threads
        self._profiles = profiles
        self._blocks = blocks

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def _authorize_chat(self, current: Session, other_profile_id: str) -> None:
        other = await self._profiles.get_by_id(other_profile_id)
        if not other:
            raise NotFoundError("profile not found")
        blocked = await self._blocks.exists(current.profile_id, other.id)
        authorize(current, Action.CHAT, other, blocked=blocked).enforce()

    async def _participant_thread(self, current: Session, thread_id: str) -> ChatThread:
        oid = parse_object_id(thread_id)
        thread = await self._threads.get_by_id(oid) if oid is not None else None
        if not thread:
            raise NotFoundError("thread not found")
        if current.profile_id not in (thread.a, thread.b):
            raise ForbiddenError("not a participant of this thread")
        return thread

    async def get_or_create_thread(self, session: Optional[Session], other_profile_id: str) -> ChatThread:
        current = require_member(session, "chat")
        other_id = (other_profile_id or "").strip()
        if not other_id:
            raise ValidationFailedError("otherProfileId required")
        ensure_not_self(current, other_id, "chat with")
        await self._authorize_chat(current, other_id)
        return await self._threads.get_or_create(
            me=current.profile_id,
            other=other_id,
            created_at=self._now_ms(),
        )

    async def send_message(self, session: Optional[Session], thread_id: str, text: str) -> ChatThread:
        current = require_member(session, "chat")
        thread = await self._participant_thread(current, thread_id)
        body = (text or "").strip()
        if not body:
            raise ValidationFailedError("message text required")
        if len(body) > MAX_MESSAGE_LENGTH:
            raise ValidationFailedError(f"message must be at most {MAX_MESSAGE_LENGTH} characters")
        # An open thread is gated by the block edge alone, not the partner's review status
        if await self._blocks.exists(current.profile_id, thread.other_participant(current.profile_id)):
            raise ForbiddenError(f"unblock to {Action.CHAT.value}")

        message = {
            "id": str(ObjectId()),
            "from": current.profile_id,
            "text": body,
            "createdAt": self._now_ms(),
        }
        try:
            updated = await self._threads.append_message(thread_id=thread.id, message=message)
        except NotFoundRepositoryError:
            raise NotFoundError("thread not found") from None
        except StorageExceededRepositoryError as exc:
            raise StorageExceededError("thread is full; start a new conversation") from exc
        await publish(
            "chat",
            {
                "type": "chat.message",
                "threadId": str(updated.id),
                "messageId": message["id"],
                "from": current.profile_id,
                "to": updated.other_participant(current.profile_id),
            },
        )
        return updated

    async def list_my_threads(self, session: Optional[Session]) -> List[ChatThread]:
        current = require_member(session, "chat")
        return await self._threads.list_for_profile(current.profile_id)

    async def get_thread(self, session: Optional[Session], thread_id: str) -> ChatThread:
        current = require_member(session, "chat")
        return await self._participant_thread(current, thread_id)


def get_chat_service() -> ChatService:
    db = get_db()
    return ChatService(ChatThreadRepository(db), ProfileRepository(db), BlockRepository(db))


__all__ = ["ChatService", "get_chat_service"]
