from typing import Optional

from fastapi import APIRouter, Depends, status

from ..models.account import Session
from ..models.relationships import Report, ReportCreate, ReportListResponse
from ..services.exceptions import ServiceError
from ..services.relationship_service import RelationshipService, get_relationship_service
from ..utils.http import http_error
from .deps import current_session

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/{profile_id}", response_model=Report, status_code=status.HTTP_201_CREATED)
async def report_profile(
    profile_id: str,
    body: ReportCreate,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        return await service.report_profile(session, profile_id, body.reason)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("", response_model=ReportListResponse)
async def list_reports(
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        return ReportListResponse(items=await service.list_reports(session))
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("/{report_id}/review", response_model=Report)
async def mark_reviewed(
    report_id: str,
    session: Optional[Session] = Depends(current_session),
    service: RelationshipService = Depends(get_relationship_service),
):
    try:
        return await service.mark_report_reviewed(session, report_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
