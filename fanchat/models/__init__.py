# Database models
from fanchat.core.database import Base
from .auth import User
from .chat_history import Chat, ChatMessage

__all__ = ["Base", "User", "Chat", "ChatMessage"]
