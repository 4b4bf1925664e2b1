"""
End-user chat API endpoints
"""

import logging
import time
from typing import List

from fastapi import APIRouter, Depends, Query, WebSocket
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from fanchat.api.dependencies import get_chat_service, get_persona_responder
from fanchat.api.streaming import WS_POLICY_VIOLATION, stream_snapshots
from fanchat.core.database import get_db
from fanchat.middleware.auth import get_current_user, user_from_token
from fanchat.models.auth import User
from fanchat.schemas.chat import ChatOut, MessageOut, ReplyRequest, ReplyResponse, SendMessageRequest
from fanchat.services.chat_service import ChatService
from fanchat.services.conversation import ConversationService
from fanchat.services.persona import PersonaResponder

router = APIRouter()
logger = logging.getLogger(__name__)


def _own_chat_id(user: User, chat_service: ChatService) -> str:
    return chat_service.get_or_create_chat(user.id, user.email)


@router.get("/chat", response_model=ChatOut)
def get_my_chat(
    current_user: User = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Get the caller's chat, creating it on first visit
    """
    return chat_service.get_chat(_own_chat_id(current_user, chat_service))


@router.get("/chat/messages", response_model=List[MessageOut])
def list_my_messages(
    current_user: User = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    return chat_service.list_messages(_own_chat_id(current_user, chat_service))


@router.post("/chat/messages", response_model=MessageOut)
def send_my_message(
    payload: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Append an end-user message; flags the chat unread for operators
    """
    chat_id = _own_chat_id(current_user, chat_service)
    return chat_service.send_message(
        chat_id,
        sender_id=current_user.id,
        sender_email=current_user.email,
        text=payload.text,
        is_admin=False
    )


@router.post("/chat/read", response_model=ChatOut)
def mark_my_chat_read(
    current_user: User = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    return chat_service.mark_chat_as_read(_own_chat_id(current_user, chat_service), is_admin=False)


@router.post("/chat/reply", response_model=ReplyResponse)
def reply_to_my_chat(
    payload: ReplyRequest,
    current_user: User = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
    responder: PersonaResponder = Depends(get_persona_responder)
):
    """
    Generate a persona reply to the caller's latest messages and store it
    in the chat
    """
    start_time = time.time()
    chat_id = _own_chat_id(current_user, chat_service)

    message = ConversationService(chat_service, responder).reply(chat_id, payload.language)

    latency_ms = int((time.time() - start_time) * 1000)
    logger.info(f"Persona reply stored: chat_id={chat_id}, latency_ms={latency_ms}")
    return ReplyResponse(message=MessageOut.model_validate(message), latency_ms=latency_ms)


@router.websocket("/chat/ws")
async def my_chat_updates(
    websocket: WebSocket,
    token: str = Query(""),
    db: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Live message list of the caller's chat; each frame is the full,
    oldest-first list. Every delivered frame marks the chat read.
    """
    user = await run_in_threadpool(user_from_token, db, token)
    if user is None:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    chat_id = await run_in_threadpool(_own_chat_id, user, chat_service)
    await websocket.accept()

    async def mark_read():
        await run_in_threadpool(chat_service.mark_chat_as_read, chat_id, False)

    await stream_snapshots(
        websocket,
        lambda push: chat_service.subscribe_to_messages(chat_id, push),
        after_send=mark_read
    )
