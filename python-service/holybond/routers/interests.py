from typing import Optional

from fastapi import APIRouter, Depends, status

from ..models.account import Session
from ..models.relationships import (
    Interest,
    InterestCreate,
    InterestListResponse,
    InterestStatusUpdate,
)
from ..services.exceptions import ServiceError
from ..services.relationship_service import RelationshipService, get_relationship_service
from ..utils.http import http_error
from .deps import current_session

router = APIRouter(prefix="/interests", tags=["interests"])


@router.post("", response_model=Interest, status_code=status.HTTP_201_CREATED)
async def send_interest(
    body: InterestCreate,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        return await service.send_interest(session, body.to_profile_id, body.message)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/sent", response_model=InterestListResponse)
async def sent(
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        return InterestListResponse(items=await service.my_sent_interests(session))
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/received", response_model=InterestListResponse)
async def received(
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        return InterestListResponse(items=await service.my_received_interests(session))
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.patch("/{interest_id}", response_model=Interest)
async def answer_interest(
    interest_id: str,
    body: InterestStatusUpdate,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        return await service.set_interest_status(session, interest_id, body.status)
    except ServiceError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
