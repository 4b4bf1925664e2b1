"""
Chat API schemas
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, validator


class ChatOut(BaseModel):
    """Chat directory entry"""
    id: str
    user_id: str
    user_email: str
    last_message: str
    last_message_time: datetime
    unread_by_admin: bool
    unread_by_user: bool

    class Config:
        from_attributes = True


class MessageOut(BaseModel):
    """Message log entry"""
    id: str
    chat_id: str
    sender_id: str
    sender_email: str
    text: str
    created_at: datetime
    is_admin: bool
    image_url: Optional[str] = None

    class Config:
        from_attributes = True


class SendMessageRequest(BaseModel):
    """Request schema for appending a message"""
    text: str = Field(..., min_length=1, max_length=4000, description="Message body")

    @validator('text')
    def validate_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Message cannot be empty")
        return v.strip()


class ReplyRequest(BaseModel):
    """Request schema for a persisted persona reply"""
    language: Optional[str] = Field("en", description="'en' or 'ro'; anything else falls back to 'en'")


class ReplyResponse(BaseModel):
    """Persona reply persisted into the caller's chat"""
    message: MessageOut
    latency_ms: int = Field(..., ge=0)


class PersonaResponse(BaseModel):
    """Response of the persona proxy endpoint"""
    response: str
    imageUrl: Optional[str] = None



def messages_to_schema(rows) -> List[MessageOut]:
    return [MessageOut.model_validate(r) for r in rows]


def chats_to_schema(rows) -> List[ChatOut]:
    return [ChatOut.model_validate(r) for r in rows]
