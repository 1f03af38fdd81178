from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ProfileStatus = Literal["PENDING", "APPROVED", "REJECTED"]
ReviewStatus = Literal["APPROVED", "REJECTED"]
Gender = Literal["Male", "Female"]
SortOrder = Literal["new", "age_asc", "age_desc"]

# Stored fields an owner edit may change; anything else is metadata or photos
EDITABLE_FIELDS = (
    "fullName",
    "gender",
    "dob",
    "denomination",
    "motherTongue",
    "country",
    "state",
    "city",
    "education",
    "profession",
    "aboutMe",
    "partnerPreference",
)


class ProfileFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: str = Field(alias="fullName")
    gender: Gender
    dob: str
    denomination: str = ""
    mother_tongue: str = Field(default="", alias="motherTongue")
    country: str = ""
    state: str = ""
    city: str = ""
    education: str = ""
    profession: str = ""
    about_me: str = Field(default="", alias="aboutMe")
    partner_preference: str = Field(default="", alias="partnerPreference")
    photos: List[str] = Field(default_factory=list)


class ProfileDraft(ProfileFields):
    """Profile details submitted at registration."""


class ProfileDocument(ProfileFields):
    """Canonical profile document stored in MongoDB."""

    id: str = Field(alias="_id")
    status: ProfileStatus = "PENDING"
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")
    version: int = 0


class Profile(ProfileFields):
    """Profile as returned to clients."""

    id: str = Field(alias="_id")
    status: ProfileStatus
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")


class ProfilePatch(BaseModel):
    """Partial owner or admin edit; unset and null fields are left untouched."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: Optional[str] = Field(default=None, alias="fullName")
    gender: Optional[Gender] = None
    dob: Optional[str] = None
    denomination: Optional[str] = None
    mother_tongue: Optional[str] = Field(default=None, alias="motherTongue")
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    education: Optional[str] = None
    profession: Optional[str] = None
    about_me: Optional[str] = Field(default=None, alias="aboutMe")
    partner_preference: Optional[str] = Field(default=None, alias="partnerPreference")
    photos: Optional[List[str]] = None


def public_profile(doc: ProfileDocument) -> Profile:
    return Profile(**doc.model_dump(by_alias=True, exclude={"version"}))


class PhotosUpdate(BaseModel):
    photos: List[str] = Field(default_factory=list)


class ProfileStatusUpdate(BaseModel):
    status: ReviewStatus


class ProfileSearchParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    q: Optional[str] = None
    gender: Optional[str] = None
    denomination: Optional[str] = None
    mother_tongue: Optional[str] = Field(default=None, alias="motherTongue")
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    min_age: Optional[int] = Field(default=None, alias="minAge", ge=0, le=120)
    max_age: Optional[int] = Field(default=None, alias="maxAge", ge=0, le=120)
    sort: SortOrder = "new"
    limit: int = Field(default=50, ge=1, le=200)
    skip: int = Field(default=0, ge=0)


class ProfileListResponse(BaseModel):
    items: List[Profile] = Field(default_factory=list)
    count: int = 0


class ProfileActions(BaseModel):
    """Actions the current viewer may take on a profile page."""

    model_config = ConfigDict(populate_by_name=True)

    profile_id: str = Field(alias="profileId")
    is_me: bool = Field(default=False, alias="isMe")
    is_shortlisted: bool = Field(default=False, alias="isShortlisted")
    is_blocked: bool = Field(default=False, alias="isBlocked")
    allowed: Dict[str, bool] = Field(default_factory=dict)
    reasons: Dict[str, str] = Field(default_factory=dict)


__all__ = [
    "EDITABLE_FIELDS",
    "Gender",
    "PhotosUpdate",
    "Profile",
    "ProfileActions",
    "ProfileDocument",
    "ProfileDraft",
    "ProfileFields",
    "ProfileListResponse",
    "ProfilePatch",
    "ProfileSearchParams",
    "ProfileStatus",
    "ProfileStatusUpdate",
    "ReviewStatus",
    "SortOrder",
    "public_profile",
]
