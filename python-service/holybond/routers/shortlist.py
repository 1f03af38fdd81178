from typing import Optional

from fastapi import APIRouter, Depends

from ..models.account import Session
from ..models.profile import public_profile
from ..models.relationships import RelationToggleResponse, ShortlistResponse
from ..services.exceptions import ServiceError
from ..services.relationship_service import RelationshipService, get_relationship_service
from ..utils.http import http_error
from .deps import current_session

router = APIRouter(prefix="/shortlist", tags=["shortlist"])


@router.get("", response_model=ShortlistResponse)
async def my_shortlist(
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        profiles = await service.my_shortlist_profiles(session)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return ShortlistResponse(profiles=[public_profile(doc) for doc in profiles])


@router.get("/{profile_id}", response_model=RelationToggleResponse)
async def is_shortlisted(
    profile_id: str,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        active = await service.is_shortlisted(session, profile_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return RelationToggleResponse(profileId=profile_id, active=active)


@router.put("/{profile_id}", response_model=RelationToggleResponse)
async def add_to_shortlist(
    profile_id: str,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        active = await service.add_to_shortlist(session, profile_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return RelationToggleResponse(profileId=profile_id, active=active)


@router.delete("/{profile_id}", response_model=RelationToggleResponse)
async def remove_from_shortlist(
    profile_id: str,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        active = await service.remove_from_shortlist(session, profile_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return RelationToggleResponse(profileId=profile_id, active=active)


__all__ = ["router"]
