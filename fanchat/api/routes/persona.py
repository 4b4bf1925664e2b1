"""
Persona responder proxy endpoint
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from fanchat.api.dependencies import get_persona_responder
from fanchat.deps.exceptions import InvalidHistoryError
from fanchat.middleware.auth import get_current_user
from fanchat.models.auth import User
from fanchat.schemas.chat import PersonaResponse
from fanchat.services.persona import PersonaResponder

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/ai-chat", response_model=PersonaResponse)
def ai_chat(
    payload: Any = Body(...),
    current_user: User = Depends(get_current_user),
    responder: PersonaResponder = Depends(get_persona_responder)
):
    """
    Generate one persona reply for a conversation window

    Body: ``{"messages": [{"role": "user"|"assistant"|"system", "content": str}], "language": "en"|"ro"}``

    The body is validated by the responder so that a malformed ``messages``
    field is reported as 400 rather than a schema error.
    """
    logger.info(f"Persona request: user_id={current_user.id}")
    if not isinstance(payload, dict):
        raise InvalidHistoryError()
    reply = responder.respond(payload.get("messages"), payload.get("language"))
    return PersonaResponse(response=reply.text, imageUrl=reply.image_url)
