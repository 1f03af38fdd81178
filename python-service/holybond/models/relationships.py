from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .identifiers import PyObjectId
from .profile import Profile

InterestStatus = Literal["SENT", "ACCEPTED", "REJECTED"]
InterestAnswer = Literal["ACCEPTED", "REJECTED"]


class Interest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    from_profile_id: str = Field(alias="fromProfileId")
    to_profile_id: str = Field(alias="toProfileId")
    message: Optional[str] = None
    status: InterestStatus = "SENT"
    created_at: int = Field(alias="createdAt")
    responded_at: Optional[int] = Field(default=None, alias="respondedAt")


class InterestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    to_profile_id: str = Field(alias="toProfileId", min_length=1)
    message: Optional[str] = Field(default=None, max_length=500)


class InterestStatusUpdate(BaseModel):
    status: InterestAnswer


class InterestListResponse(BaseModel):
    items: List[Interest] = Field(default_factory=list)


class Report(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    reporter_profile_id: str = Field(alias="reporterProfileId")
    reported_profile_id: str = Field(alias="reportedProfileId")
    reason: str
    created_at: int = Field(alias="createdAt")
    reviewed_at: Optional[int] = Field(default=None, alias="reviewedAt")
    reviewed_by: Optional[str] = Field(default=None, alias="reviewedBy")


class ReportCreate(BaseModel):
    reason: str = Field(max_length=1000)


class ReportListResponse(BaseModel):
    items: List[Report] = Field(default_factory=list)


class RelationToggleResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok"] = "ok"
    profile_id: str = Field(alias="profileId")
    active: bool


class ShortlistResponse(BaseModel):
    profiles: List[Profile] = Field(default_factory=list)


class BlockListResponse(BaseModel):
    profiles: List[Profile] = Field(default_factory=list)


__all__ = [
    "BlockListResponse",
    "Interest",
    "InterestAnswer",
    "InterestCreate",
    "InterestListResponse",
    "InterestStatus",
    "InterestStatusUpdate",
    "RelationToggleResponse",
    "Report",
    "ReportCreate",
    "ReportListResponse",
    "ShortlistResponse",
]
