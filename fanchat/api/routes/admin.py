"""
Operator console API endpoints
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, WebSocket
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from fanchat.api.dependencies import get_chat_service
from fanchat.api.streaming import WS_POLICY_VIOLATION, stream_snapshots
from fanchat.core.database import get_db
from fanchat.deps.exceptions import ChatNotFoundError
from fanchat.middleware.auth import get_current_operator, user_from_token
from fanchat.models.auth import User
from fanchat.models.chat_history import OPERATOR_SENDER_ID
from fanchat.schemas.chat import ChatOut, MessageOut, SendMessageRequest
from fanchat.services.chat_service import ChatService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/chats", response_model=List[ChatOut])
def list_chats(
    operator: User = Depends(get_current_operator),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Chat directory, most recent activity first
    """
    return chat_service.list_chats()


@router.get("/chats/{chat_id}/messages", response_model=List[MessageOut])
def list_chat_messages(
    chat_id: str,
    operator: User = Depends(get_current_operator),
    chat_service: ChatService = Depends(get_chat_service)
):
    return chat_service.list_messages(chat_id)


@router.post("/chats/{chat_id}/messages", response_model=MessageOut)
def send_operator_message(
    chat_id: str,
    payload: SendMessageRequest,
    operator: User = Depends(get_current_operator),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Reply as the operator, bypassing the persona responder
    """
    return chat_service.send_message(
        chat_id,
        sender_id=OPERATOR_SENDER_ID,
        sender_email=operator.email,
        text=payload.text,
        is_admin=True
    )


@router.post("/chats/{chat_id}/read", response_model=ChatOut)
def mark_chat_read(
    chat_id: str,
    operator: User = Depends(get_current_operator),
    chat_service: ChatService = Depends(get_chat_service)
):
    return chat_service.mark_chat_as_read(chat_id, is_admin=True)


async def _operator_from_token(db: Session, token: str):
    user = await run_in_threadpool(user_from_token, db, token)
    if user is None or not user.is_admin:
        return None
    return user


@router.websocket("/ws")
async def chat_directory_updates(
    websocket: WebSocket,
    token: str = Query(""),
    db: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Live chat directory; each frame is the full list, newest activity first
    """
    if await _operator_from_token(db, token) is None:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    await websocket.accept()
    await stream_snapshots(websocket, chat_service.subscribe_to_chats)


@router.websocket("/chats/{chat_id}/ws")
async def chat_message_updates(
    websocket: WebSocket,
    chat_id: str,
    token: str = Query(""),
    db: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Live message list of one chat; every delivered frame marks it read for
    operators
    """
    if await _operator_from_token(db, token) is None:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    try:
        await run_in_threadpool(chat_service.get_chat, chat_id)
    except ChatNotFoundError:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    await websocket.accept()

    async def mark_read():
        await run_in_threadpool(chat_service.mark_chat_as_read, chat_id, True)

    await stream_snapshots(
        websocket,
        lambda push: chat_service.subscribe_to_messages(chat_id, push),
        after_send=mark_read
    )
