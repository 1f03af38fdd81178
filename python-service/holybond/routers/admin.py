"""Admin console: review queue, moderation edits and account lookups."""

from typing import List, Optional

from fastapi import APIRouter, Depends

from ..models.account import Account, AccountWithProfile, Session
from ..models.profile import (
    Profile,
    ProfileListResponse,
    ProfilePatch,
    ProfileStatusUpdate,
    public_profile,
)
from ..services.admin_service import AdminService, get_admin_service
from ..services.exceptions import ServiceError
from ..services.profile_service import ProfileService, get_profile_service
from ..utils.http import http_error
from .deps import current_session

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/profiles/pending", response_model=ProfileListResponse)
async def pending_profiles(
    session: Optional[Session] = Depends(current_session),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        items = [public_profile(doc) for doc in await service.list_pending(session)]
    except ServiceError as exc:
        raise http_error(exc) from exc
    return ProfileListResponse(items=items, count=len(items))


@router.patch("/profiles/{profile_id}/status", response_model=Profile)
async def set_profile_status(
    profile_id: str,
    body: ProfileStatusUpdate,
    session: Optional[Session] = Depends(current_session),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        return public_profile(await service.set_profile_status(session, profile_id, body.status))
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/profiles", response_model=ProfileListResponse)
async def all_profiles(
    session: Optional[Session] = Depends(current_session),
    service: AdminService = Depends(get_admin_service),
):
    try:
        items = [public_profile(doc) for doc in await service.list_profiles(session)]
    except ServiceError as exc:
        raise http_error(exc) from exc
    return ProfileListResponse(items=items, count=len(items))


@router.patch("/profiles/{profile_id}", response_model=Profile)
async def edit_profile(
    profile_id: str,
    patch: ProfilePatch,
    session: Optional[Session] = Depends(current_session),
    service: AdminService = Depends(get_admin_service),
):
    try:
        return public_profile(await service.admin_update_profile(session, profile_id, patch))
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/users", response_model=List[Account])
async def users(
    session: Optional[Session] = Depends(current_session),
    service: AdminService = Depends(get_admin_service),
):
    try:
        return await service.list_users(session)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/users/{account_id}", response_model=AccountWithProfile)
async def user_detail(
    account_id: str,
    session: Optional[Session] = Depends(current_session),
    service: AdminService = Depends(get_admin_service),
):
    try:
        return await service.get_user_with_profile(session, account_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
