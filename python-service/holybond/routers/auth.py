from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from ..models.account import AuthResponse, LoginRequest, RegisterRequest, Session
from ..services.account_service import AccountService, get_account_service
from ..services.exceptions import ServiceError
from ..utils.http import bearer_token, http_error
from .deps import current_session

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/auth/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    body: RegisterRequest,
    request: Request,
    service: AccountService = Depends(get_account_service),
):
    if not service.allow_rate(f"signup:{_client_ip(request)}"):
        raise HTTPException(status_code=429, detail="rate limit exceeded")
    try:
        return await service.register(body)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("/auth/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    service: AccountService = Depends(get_account_service),
):
    if not service.allow_rate(f"login:{_client_ip(request)}"):
        raise HTTPException(status_code=429, detail="rate limit exceeded")
    try:
        return await service.login(body)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("/auth/logout")
async def logout(
    authorization: str = Header(default=""),
    service: AccountService = Depends(get_account_service),
):
    ended = await service.logout(bearer_token(authorization))
    return {"status": "ok", "ended": ended}


@router.get("/auth/session", response_model=Optional[Session])
async def session(current: Optional[Session] = Depends(current_session)):
    return current


__all__ = ["router"]
