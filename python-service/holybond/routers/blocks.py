from typing import Optional

from fastapi import APIRouter, Depends

from ..models.account import Session
from ..models.profile import public_profile
from ..models.relationships import BlockListResponse, RelationToggleResponse
from ..services.exceptions import ServiceError
from ..services.relationship_service import RelationshipService, get_relationship_service
from ..utils.http import http_error
from .deps import current_session

router = APIRouter(prefix="/blocks", tags=["blocks"])


@router.get("", response_model=BlockListResponse)
async def my_blocked(
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        profiles = await service.my_blocked_profiles(session)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return BlockListResponse(profiles=[public_profile(doc) for doc in profiles])


@router.get("/{profile_id}", response_model=RelationToggleResponse)
async def is_blocked(
    profile_id: str,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        active = await service.is_blocked(session, profile_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return RelationToggleResponse(profileId=profile_id, active=active)


@router.put("/{profile_id}", response_model=RelationToggleResponse)
async def block_profile(
    profile_id: str,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        active = await service.block_profile(session, profile_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return RelationToggleResponse(profileId=profile_id, active=active)


@router.delete("/{profile_id}", response_model=RelationToggleResponse)
async def unblock_profile(
    profile_id: str,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        active = await service.unblock_profile(session, profile_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return RelationToggleResponse(profileId=profile_id, active=active)


__all__ = ["router"]
