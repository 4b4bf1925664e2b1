"""
Chat service: the single writer of chats and messages
"""

import logging
from contextlib import contextmanager
from typing import Callable, List, Optional, TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fanchat.deps.exceptions import ChatNotFoundError, StoreUnavailableError
from fanchat.models.chat_history import Chat, ChatMessage
from fanchat.models.clock import utcnow

if TYPE_CHECKING:
    from fanchat.services.chat_feed import ChatFeed
    from fanchat.schemas.chat import ChatOut, MessageOut

logger = logging.getLogger(__name__)


def query_messages(db: Session, chat_id: str) -> List[ChatMessage]:
    """All messages of a chat, oldest first"""
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.chat_id == chat_id)
        .order_by(ChatMessage.created_at.asc(), ChatMessage.seq.asc())
        .all()
    )


def query_chats(db: Session) -> List[Chat]:
    """The chat directory, most recent activity first"""
    return db.query(Chat).order_by(Chat.last_message_time.desc(), Chat.id.asc()).all()


class ChatService:
    """
    Reads and writes chats and messages and notifies live subscribers.

    Every write commits once; the message insert and the chat preview
    update share a transaction, so subscribers never see one without the
    other.
    """

    def __init__(self, db: Session, feed: Optional["ChatFeed"] = None):
        self.db = db
        self.feed = feed

    @contextmanager
    def _store_call(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Chat store {operation} failed: {str(e)}")
            raise StoreUnavailableError() from e

    def get_or_create_chat(self, user_id: str, user_email: str) -> str:
        """Return the id of the user's chat, creating an empty one on first contact"""
        with self._store_call("get_or_create_chat"):
            existing = self.get_chat_for_user(user_id)
            if existing:
                return existing.id

            chat = Chat(
                user_id=user_id,
                user_email=user_email,
                last_message="",
                last_message_time=utcnow(),
                unread_by_admin=False,
                unread_by_user=False,
            )
            self.db.add(chat)
            try:
                self.db.commit()
            except IntegrityError:
                # Another session created it first
                self.db.rollback()
                existing = self.get_chat_for_user(user_id)
                if existing is None:
                    raise
                return existing.id

            logger.info(f"Chat created: chat_id={chat.id}, user_id={user_id}")
            chat_id = chat.id

        self._publish_chats()
        return chat_id

    def get_chat(self, chat_id: str) -> Chat:
        with self._store_call("get_chat"):
            chat = self.db.query(Chat).filter(Chat.id == chat_id).first()
        if chat is None:
            raise ChatNotFoundError()
        return chat

    def get_chat_for_user(self, user_id: str) -> Optional[Chat]:
        with self._store_call("get_chat_for_user"):
            return self.db.query(Chat).filter(Chat.user_id == user_id).first()

    def send_message(
        self,
        chat_id: str,
        sender_id: str,
        sender_email: str,
        text: str,
        is_admin: bool,
        image_url: Optional[str] = None,
    ) -> ChatMessage:
        """
        Append a message and refresh the chat preview and unread flags

        The recipient side's unread flag is set and the sender side's is
        cleared.
        """
        chat = self.get_chat(chat_id)
        with self._store_call("send_message"):
            message = ChatMessage(
                chat_id=chat.id,
                sender_id=sender_id,
                sender_email=sender_email,
                text=text,
                is_admin=is_admin,
                image_url=image_url,
                created_at=utcnow(),
            )
            self.db.add(message)

            chat.last_message = text
            chat.last_message_time = message.created_at
            chat.unread_by_admin = not is_admin
            chat.unread_by_user = is_admin

            self.db.commit()
            self.db.refresh(message)

        logger.info(f"Message sent: chat_id={chat_id}, is_admin={is_admin}, length={len(text)}")
        self._publish_messages(chat_id)
        self._publish_chats()
        return message

    def mark_chat_as_read(self, chat_id: str, is_admin: bool) -> Chat:
        """Clear one side's unread flag, leaving the other untouched"""
        chat = self.get_chat(chat_id)
        with self._store_call("mark_chat_as_read"):
            if is_admin:
                chat.unread_by_admin = False
            else:
                chat.unread_by_user = False
            self.db.commit()
            self.db.refresh(chat)

        self._publish_chats()
        return chat

    def list_messages(self, chat_id: str) -> List[ChatMessage]:
        self.get_chat(chat_id)
        with self._store_call("list_messages"):
            return query_messages(self.db, chat_id)

    def list_chats(self) -> List[Chat]:
        with self._store_call("list_chats"):
            return query_chats(self.db)

    def recent_history(self, chat_id: str, limit: int) -> List[ChatMessage]:
        """The newest ``limit`` messages, oldest first"""
        with self._store_call("recent_history"):
            rows = (
                self.db.query(ChatMessage)
                .filter(ChatMessage.chat_id == chat_id)
                .order_by(ChatMessage.created_at.desc(), ChatMessage.seq.desc())
                .limit(limit)
                .all()
            )
        return list(reversed(rows))

    def subscribe_to_messages(
        self, chat_id: str, on_update: Callable[[List["MessageOut"]], None]
    ) -> Callable[[], None]:
        self.get_chat(chat_id)
        return self._require_feed().subscribe_to_messages(chat_id, on_update)

    def subscribe_to_chats(self, on_update: Callable[[List["ChatOut"]], None]) -> Callable[[], None]:
        return self._require_feed().subscribe_to_chats(on_update)

    def _require_feed(self) -> "ChatFeed":
        if self.feed is None:
            raise RuntimeError("ChatService was created without a ChatFeed")
        return self.feed

    def _publish_messages(self, chat_id: str):
        if self.feed is not None:
            self.feed.publish_messages(chat_id)

    def _publish_chats(self):
        if self.feed is not None:
            self.feed.publish_chats()
