"""Request-scoped dependencies shared by the routers."""

from typing import Optional

from fastapi import Depends, Header

from ..models.account import Session
from ..services.account_service import AccountService, get_account_service
from ..utils.http import bearer_token


async def current_session(
    authorization: str = Header(default=""),
    service: AccountService = Depends(get_account_service),
) -> Optional[Session]:
    """Session behind the bearer token, or None for anonymous callers.

    Services decide whether anonymous access is acceptable.
    """
    token = bearer_token(authorization)
    if not token:
        return None
    return await service.get_current_session(token)


__all__ = ["current_session"]
