from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from ..models.account import Session
from ..models.profile import (
    PhotosUpdate,
    Profile,
    ProfileActions,
    ProfileListResponse,
    ProfilePatch,
    ProfileSearchParams,
    SortOrder,
    public_profile,
)
from ..services.exceptions import ServiceError
from ..services.profile_service import ProfileService, get_profile_service
from ..utils.http import http_error, weak_etag
from .deps import current_session

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("", response_model=ProfileListResponse)
async def list_approved(service: ProfileService = Depends(get_profile_service)):
    items = [public_profile(doc) for doc in await service.list_approved()]
    return ProfileListResponse(items=items, count=len(items))


@router.get("/search", response_model=ProfileListResponse)
async def search(
    q: Optional[str] = Query(default=None, max_length=200),
    gender: Optional[str] = None,
    denomination: Optional[str] = None,
    mother_tongue: Optional[str] = Query(default=None, alias="motherTongue"),
    country: Optional[str] = None,
    state: Optional[str] = None,
    city: Optional[str] = None,
    min_age: Optional[int] = Query(default=None, alias="minAge", ge=0, le=120),
    max_age: Optional[int] = Query(default=None, alias="maxAge", ge=0, le=120),
    sort: SortOrder = "new",
    limit: int = Query(default=50, ge=1, le=200),
    skip: int = Query(default=0, ge=0),
    session: Optional[Session] = Depends(current_session),
    service: ProfileService = Depends(get_profile_service),
):
    params = ProfileSearchParams(
        q=q,
        gender=gender,
        denomination=denomination,
        motherTongue=mother_tongue,
        country=country,
        state=state,
        city=city,
        minAge=min_age,
        maxAge=max_age,
        sort=sort,
        limit=limit,
        skip=skip,
    )
    try:
        items, total = await service.search(session, params)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return ProfileListResponse(items=[public_profile(doc) for doc in items], count=total)


@router.get("/me", response_model=Profile)
async def me(
    session: Optional[Session] = Depends(current_session),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        return public_profile(await service.get_my_profile(session))
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.patch("/me", response_model=Profile)
async def update_me(
    patch: ProfilePatch,
    session: Optional[Session] = Depends(current_session),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        return public_profile(await service.update_my_profile(session, patch))
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.put("/me/photos", response_model=Profile)
async def update_my_photos(
    body: PhotosUpdate,
    session: Optional[Session] = Depends(current_session),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        return public_profile(await service.update_my_photos(session, body.photos))
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/{profile_id}", response_model=Profile)
async def profile_by_id(
    profile_id: str,
    response: Response,
    if_none_match: Optional[str] = Header(default=None, alias="If-None-Match"),
    session: Optional[Session] = Depends(current_session),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        doc = await service.get_profile(session, profile_id)
    except ServiceError as exc:
        raise http_error(exc) from exc

    etag = weak_etag({"id": doc.id, "version": doc.version, "updatedAt": doc.updated_at})
    response.headers["ETag"] = etag
    if if_none_match and if_none_match == etag:
        return Response(status_code=304, headers={"ETag": etag})
    return public_profile(doc)


@router.get("/{profile_id}/actions", response_model=ProfileActions)
async def profile_actions(
    profile_id: str,
    session: Optional[Session] = Depends(current_session),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        return await service.profile_actions(session, profile_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
