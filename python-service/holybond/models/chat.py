from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .identifiers import PyObjectId


class ChatMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    from_profile_id: str = Field(alias="from")
    text: str
    created_at: int = Field(alias="createdAt")


class ChatThread(BaseModel):
    """Conversation between two profiles; identity is the unordered pair (a, b)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    a: str
    b: str
    created_at: int = Field(alias="createdAt")
    last_activity_at: int = Field(alias="lastActivityAt")
    messages: List[ChatMessage] = Field(default_factory=list)

    def other_participant(self, profile_id: str) -> str:
        return self.b if self.a == profile_id else self.a


class ThreadCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    other_profile_id: str = Field(alias="otherProfileId", min_length=1)


class ChatMessageCreate(BaseModel):
    text: str = Field(max_length=4000)


class ChatThreadsResponse(BaseModel):
    threads: List[ChatThread] = Field(default_factory=list)


__all__ = [
    "ChatMessage",
    "ChatMessageCreate",
    "ChatThread",
    "ChatThreadsResponse",
    "ThreadCreateRequest",
]
