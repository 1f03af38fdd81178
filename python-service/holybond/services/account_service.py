from __future__ import annotations

import logging
import re
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from ..config import get_settings
from ..db import get_db
from ..models.account import (
    Account,
    AccountDocument,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    Session,
)
from ..models.profile import ProfileDocument, public_profile
from ..repositories.account import AccountRepository, SessionRepository
from ..repositories.exceptions import (
    DuplicateKeyRepositoryError,
    StorageExceededRepositoryError,
)
from ..repositories.profile import ProfileRepository
from .exceptions import (
    DuplicateEmailError,
    InvalidCredentialError,
    NotFoundError,
    StorageExceededError,
    ValidationFailedError,
)
from .lifecycle import host_photos, normalize_draft

LOGGER = logging.getLogger("uvicorn.error")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ADMIN_PROFILE_FIELDS: Dict[str, Any] = {
    "fullName": "HolyBond Admin",
    "gender": "Male",
    "dob": "1990-01-01",
    "denomination": "NA",
    "motherTongue": "NA",
    "country": "India",
    "state": "NA",
    "city": "NA",
    "education": "NA",
    "profession": "NA",
    "aboutMe": "Admin account",
    "partnerPreference": "NA",
    "photos": [],
    # Kept out of search and the public listing
    "discoverable": False,
}


class RateLimiter:
    """Very small in-memory rate limiter for authentication flows."""

    def __init__(self, window_seconds: int, max_attempts: int) -> None:
        self._window = float(window_seconds)
        self._max_attempts = max_attempts
        self._state: Dict[str, Dict[str, float]] = {}

    def increment(self, key: str) -> bool:
        now = time.time()
        record = self._state.get(key)
        if not record or record.get("expires", 0) < now:
            record = {"count": 0.0, "expires": now + self._window}
        record["count"] = record.get("count", 0.0) + 1.0
        self._state[key] = record
        return record["count"] <= self._max_attempts


class AccountService:
    """Registration, login and session bookkeeping, plus the admin bootstrap."""

    def __init__(
        self,
        accounts: AccountRepository,
        sessions: SessionRepository,
        profiles: ProfileRepository,
        *,
        jwt_secret: str,
        token_ttl_seconds: int,
        rate_limiter: RateLimiter,
        admin_email: str,
        admin_password: str,
        photo_limit: int,
    ) -> None:
        self._accounts = accounts
        self._sessions = sessions
        self._profiles = profiles
        self._jwt_secret = jwt_secret
        self._token_ttl = token_ttl_seconds
        self._rate_limiter = rate_limiter
        self._admin_email = admin_email
        self._admin_password = admin_password
        self._photo_limit = photo_limit

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    @staticmethod
    def hash_password(raw: str) -> str:
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(raw.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(raw: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    @staticmethod
    def password_strength(password: str) -> bool:
        score = 0
        if any(c.islower() for c in password):
            score += 1
        if any(c.isupper() for c in password):
            score += 1
        if any(c.isdigit() for c in password):
            score += 1
        if any(c in "!@#$%^&*()-_=+[]{};:,<.>/?" for c in password):
            score += 1
        return score >= 3 and len(password) >= 8

    def allow_rate(self, key: str) -> bool:
        return self._rate_limiter.increment(key)

    # -- tokens -----------------------------------------------------------

    def issue_token(self, session_id: str, account: AccountDocument) -> str:
        now = int(time.time())
        payload = {
            "sub": str(account.id),
            "sid": session_id,
            "role": account.role,
            "iat": now,
            "exp": now + self._token_ttl,
        }
        return jwt.encode(payload, self._jwt_secret, algorithm="HS256")

    def decode_token(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            return jwt.decode(token, self._jwt_secret, algorithms=["HS256"])
        except jwt.PyJWTError:
            return None

    async def _open_session(self, account: AccountDocument) -> tuple[str, Session]:
        session_id = secrets.token_urlsafe(18)
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=self._token_ttl)
        doc = await self._sessions.create_session(
            session_id=session_id,
            account=account,
            created_at=self._now_ms(),
            expires_at=expires_at,
        )
        return self.issue_token(session_id, account), Session(sessionId=doc["_id"], **doc)

    async def get_current_session(self, token: str) -> Optional[Session]:
        if not token:
            return None
        payload = self.decode_token(token)
        if not payload:
            return None
        session_id = str(payload.get("sid") or "").strip()
        if not session_id:
            return None
        doc = await self._sessions.get_session(session_id)
        if not doc:
            return None
        return Session(sessionId=doc["_id"], **doc)

    async def logout(self, token: str) -> bool:
        """Drop the session behind ``token``; repeated calls are harmless."""
        payload = self.decode_token(token) if token else None
        if not payload or not payload.get("sid"):
            return False
        return await self._sessions.delete_session(str(payload["sid"]))

    # -- bootstrap --------------------------------------------------------

    async def ensure_admin_seeded(self) -> None:
        if await self._accounts.email_exists(self._admin_email):
            return
        now_ms = self._now_ms()
        profile = await self._profiles.create_profile(
            fields=dict(ADMIN_PROFILE_FIELDS),
            status="APPROVED",
            created_at=now_ms,
        )
        try:
            await self._accounts.create_account(
                email=self._admin_email,
                password_hash=self.hash_password(self._admin_password),
                role="ADMIN",
                profile_id=profile.id,
                created_at=now_ms,
            )
        except DuplicateKeyRepositoryError:
            # Seeded concurrently by another worker
            await self._profiles.delete_by_id(profile.id)
            return
        LOGGER.info("Seeded admin account %s", self._admin_email)

    # -- flows ------------------------------------------------------------

    async def register(self, payload: RegisterRequest) -> AuthResponse:
        await self.ensure_admin_seeded()

        email = payload.email.strip()
        if not _EMAIL_RE.match(email):
            raise ValidationFailedError("invalid email")
        if await self._accounts.email_exists(email):
            raise DuplicateEmailError("email already exists")
        if not self.password_strength(payload.password):
            raise ValidationFailedError("weak password")

        fields = normalize_draft(payload.profile, self._photo_limit)
        fields["photos"] = await host_photos(fields["photos"])
        now_ms = self._now_ms()
        try:
            profile = await self._profiles.create_profile(
                fields=fields,
                status="PENDING",
                created_at=now_ms,
            )
        except StorageExceededRepositoryError as exc:
            raise StorageExceededError("profile too large; upload smaller or fewer photos") from exc

        try:
            account = await self._accounts.create_account(
                email=email,
                password_hash=self.hash_password(payload.password),
                role="USER",
                profile_id=profile.id,
                created_at=now_ms,
            )
        except DuplicateKeyRepositoryError:
            await self._profiles.delete_by_id(profile.id)
            raise DuplicateEmailError("email already exists") from None
        except StorageExceededRepositoryError as exc:
            await self._profiles.delete_by_id(profile.id)
            raise StorageExceededError("account could not be stored") from exc

        token, session = await self._open_session(account)
        LOGGER.info("Registered account %s with profile %s", account.id, profile.id)
        return self._auth_response(token, session, account, profile)

    async def login(self, payload: LoginRequest) -> AuthResponse:
        await self.ensure_admin_seeded()

        email = payload.email.strip()
        if not email:
            raise ValidationFailedError("email required")
        account = await self._accounts.get_by_email(email)
        if not account:
            raise NotFoundError("user not found")
        if not self.verify_password(payload.password, account.password_hash):
            raise InvalidCredentialError("invalid password")

        token, session = await self._open_session(account)
        profile = await self._profiles.get_by_id(account.profile_id)
        return self._auth_response(token, session, account, profile)

    @staticmethod
    def _auth_response(
        token: str,
        session: Session,
        account: AccountDocument,
        profile: Optional[ProfileDocument],
    ) -> AuthResponse:
        return AuthResponse(
            token=token,
            session=session,
            account=redact_account(account),
            profile=public_profile(profile) if profile else None,
        )


def redact_account(doc: AccountDocument) -> Account:
    return Account(**doc.model_dump(by_alias=True, exclude={"password_hash", "email_lower"}))


_rate_limiter: Optional[RateLimiter] = None


def get_account_service() -> AccountService:
    global _rate_limiter
    settings = get_settings()
    if _rate_limiter is None:
        _rate_limiter = RateLimiter(settings.auth_rate_limit_window, settings.auth_rate_limit_max)
    db = get_db()
    return AccountService(
        AccountRepository(db),
        SessionRepository(db),
        ProfileRepository(db),
        jwt_secret=settings.jwt_secret,
        token_ttl_seconds=settings.auth_token_ttl,
        rate_limiter=_rate_limiter,
        admin_email=settings.admin_email,
        admin_password=settings.admin_password,
        photo_limit=settings.profile_photo_limit,
    )


__all__ = ["AccountService", "RateLimiter", "get_account_service", "redact_account"]
