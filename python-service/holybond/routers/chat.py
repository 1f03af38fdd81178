from typing import Optional

from fastapi import APIRouter, Depends

from ..models.account import Session
from ..models.chat import ChatMessageCreate, ChatThread, ChatThreadsResponse, ThreadCreateRequest
from ..services.chat_service import ChatService, get_chat_service
from ..services.exceptions import ServiceError
from ..utils.http import http_error
from .deps import current_session

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/threads", response_model=ChatThread)
async def open_thread(
    body: ThreadCreateRequest,
    session: Optional[Session] = Depends(current_session),
    service: ChatService = Depends(get_chat_service),
):
    try:
        return await service.get_or_create_thread(session, body.other_profile_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/threads", response_model=ChatThreadsResponse)
async def my_threads(
    session: Optional[Session] = Depends(current_session),
    service: ChatService = Depends(get_chat_service),
):
    try:
        return ChatThreadsResponse(threads=await service.list_my_threads(session))
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/threads/{thread_id}", response_model=ChatThread)
async def get_thread(
    thread_id: str,
    session: Optional[Session] = Depends(current_session),
    service: ChatService = Depends(get_chat_service),
):
    try:
        return await service.get_thread(session, thread_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("/threads/{thread_id}/messages", response_model=ChatThread)
async def send_message(
    thread_id: str,
    body: ChatMessageCreate,
    session: Optional[Session] = Depends(current_session),
    service: ChatService = Depends(get_chat_service),
):
    try:
        return await service.send_message(session, thread_id, body.text)
    except ServiceError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
