"""
Chat directory and message log database models
"""

import uuid
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from fanchat.core.database import Base
from fanchat.models.clock import utcnow


# Sender ids that are not account ids
OPERATOR_SENDER_ID = "admin"
ASSISTANT_SENDER_ID = "ai-assistant"


def _new_id() -> str:
    return str(uuid.uuid4())


class Chat(Base):
    """One conversation per end-user, with a denormalized preview of its newest message"""
    __tablename__ = "chats"

    id = Column(String(36), primary_key=True, default=_new_id)
    # Not a foreign key: chats outlive deleted accounts
    user_id = Column(String(36), unique=True, nullable=False)
    user_email = Column(String(255), nullable=False)
    last_message = Column(Text, nullable=False, default="")
    last_message_time = Column(DateTime, nullable=False, default=utcnow)
    unread_by_admin = Column(Boolean, nullable=False, default=False)
    unread_by_user = Column(Boolean, nullable=False, default=False)

    # Relationships
    messages = relationship(
        "ChatMessage",
        back_populates="chat",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('idx_chats_last_message_time', 'last_message_time'),
    )


class ChatMessage(Base):
    """Immutable message appended to a chat"""
    __tablename__ = "chat_messages"

    # seq breaks ties between messages written in the same instant
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, default=_new_id)
    chat_id = Column(String(36), ForeignKey("chats.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(String(36), nullable=False)
    sender_email = Column(String(255), nullable=False)  # Display label
    text = Column(Text, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)  # Operator or persona side
    image_url = Column(String(2048), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    chat = relationship("Chat", back_populates="messages")

    __table_args__ = (
        Index('idx_chat_messages_chat_created', 'chat_id', 'created_at'),
    )
