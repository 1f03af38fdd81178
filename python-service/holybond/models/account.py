from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .identifiers import PyObjectId
from .profile import Profile, ProfileDraft

Role = Literal["USER", "ADMIN"]


class RegisterRequest(BaseModel):
    """Payload for the public sign-up flow: credentials plus the profile draft."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=8, max_length=128)
    profile: ProfileDraft


class LoginRequest(BaseModel):
    """Credentials provided during login."""

    email: str
    password: str


class AccountDocument(BaseModel):
    """Canonical account document stored in MongoDB."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    email: str
    email_lower: str = Field(alias="emailLower")
    password_hash: str = Field(alias="passwordHash")
    role: Role = "USER"
    profile_id: str = Field(alias="profileId")
    created_at: int = Field(alias="createdAt")


class Account(BaseModel):
    """Account as returned to clients; never carries the password hash."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    email: str
    role: Role
    profile_id: str = Field(alias="profileId")
    created_at: int = Field(alias="createdAt")


class Session(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    account_id: str = Field(alias="accountId")
    email: str
    role: Role
    profile_id: str = Field(alias="profileId")


class AuthResponse(BaseModel):
    """Response envelope for authentication endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
    session: Session
    account: Optional[Account] = None
    profile: Optional[Profile] = None


class AccountWithProfile(BaseModel):
    account: Account
    profile: Optional[Profile] = None


__all__ = [
    "Account",
    "AccountDocument",
    "AccountWithProfile",
    "AuthResponse",
    "LoginRequest",
    "RegisterRequest",
    "Role",
    "Session",
]
