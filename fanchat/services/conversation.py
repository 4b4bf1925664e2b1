"""
Conversation flow: persist a persona reply to the end-user's latest turn
"""

import logging
from typing import Dict, List, Optional

from fanchat.core.config import settings
from fanchat.models.chat_history import ASSISTANT_SENDER_ID, ChatMessage
from fanchat.services.chat_service import ChatService
from fanchat.services.persona import PersonaResponder

logger = logging.getLogger(__name__)


def to_persona_history(messages: List[ChatMessage]) -> List[Dict[str, str]]:
    """Operator and persona messages both count as the assistant side"""
    return [
        {"role": "assistant" if message.is_admin else "user", "content": message.text}
        for message in messages
    ]


class ConversationService:
    """Drives the persona responder from stored chat history"""

    def __init__(self, chat_service: ChatService, responder: PersonaResponder):
        self.chat_service = chat_service
        self.responder = responder

    def reply(self, chat_id: str, language: Optional[str] = None) -> ChatMessage:
        """
        Generate and persist a persona reply

        The window is the configured number of prior turns plus the newest
        one. Nothing is persisted when the responder fails.
        """
        self.chat_service.get_chat(chat_id)
        window = settings.persona_history_window + 1
        recent = self.chat_service.recent_history(chat_id, window)
        history = to_persona_history(recent)

        reply = self.responder.respond(history, language)
        logger.debug(f"Persisting persona reply: chat_id={chat_id}, turns={len(history)}")

        return self.chat_service.send_message(
            chat_id,
            sender_id=ASSISTANT_SENDER_ID,
            sender_email=f"{self.responder.persona_name} AI",
            text=reply.text,
            is_admin=True,
            image_url=reply.image_url,
        )
