"""
Live chat subscriptions.

Subscribers receive the complete, ordered state (never a diff) once on
subscribe and again after every committed write that touches it. The
returned callable cancels the subscription; it must be called when the
consumer goes away. Listeners are process-local.
"""

import itertools
import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from fanchat.deps.exceptions import StoreUnavailableError
from fanchat.schemas.chat import ChatOut, MessageOut, chats_to_schema, messages_to_schema
from fanchat.services.chat_service import query_chats, query_messages

logger = logging.getLogger(__name__)

MessagesListener = Callable[[List[MessageOut]], None]
ChatsListener = Callable[[List[ChatOut]], None]


class ChatFeed:
    """Push hub for message-log and chat-directory snapshots"""

    def __init__(self, session_factory):
        self._session_factory = session_factory
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._message_listeners: Dict[str, Dict[int, MessagesListener]] = defaultdict(dict)
        self._chat_listeners: Dict[int, ChatsListener] = {}
        # Load and deliver run under one lock per topic so a later snapshot never overtakes an earlier one
        self._topic_locks: Dict[str, threading.RLock] = {}

    def _topic_lock(self, topic: str) -> threading.RLock:
        with self._lock:
            lock = self._topic_locks.get(topic)
            if lock is None:
                lock = self._topic_locks[topic] = threading.RLock()
            return lock

    def subscribe_to_messages(self, chat_id: str, on_update: MessagesListener) -> Callable[[], None]:
        token = next(self._tokens)

        def unsubscribe():
            with self._lock:
                listeners = self._message_listeners.get(chat_id)
                if listeners is not None:
                    listeners.pop(token, None)
                    if not listeners:
                        del self._message_listeners[chat_id]

        with self._topic_lock(f"messages:{chat_id}"):
            with self._lock:
                self._message_listeners[chat_id][token] = on_update
            try:
                snapshot = self._load_messages(chat_id)
            except StoreUnavailableError:
                unsubscribe()
                raise
            self._deliver(on_update, snapshot)
        return unsubscribe

    def subscribe_to_chats(self, on_update: ChatsListener) -> Callable[[], None]:
        token = next(self._tokens)

        def unsubscribe():
            with self._lock:
                self._chat_listeners.pop(token, None)

        with self._topic_lock("chats"):
            with self._lock:
                self._chat_listeners[token] = on_update
            try:
                snapshot = self._load_chats()
            except StoreUnavailableError:
                unsubscribe()
                raise
            self._deliver(on_update, snapshot)
        return unsubscribe

    def publish_messages(self, chat_id: str):
        with self._topic_lock(f"messages:{chat_id}"):
            with self._lock:
                listeners = list(self._message_listeners.get(chat_id, {}).values())
            if not listeners:
                return
            try:
                snapshot = self._load_messages(chat_id)
            except StoreUnavailableError:
                # The write itself already committed; subscribers catch up on the next change
                return
            for listener in listeners:
                self._deliver(listener, snapshot)

    def publish_chats(self):
        with self._topic_lock("chats"):
            with self._lock:
                listeners = list(self._chat_listeners.values())
            if not listeners:
                return
            try:
                snapshot = self._load_chats()
            except StoreUnavailableError:
                return
            for listener in listeners:
                self._deliver(listener, snapshot)

    def listener_count(self) -> int:
        with self._lock:
            return len(self._chat_listeners) + sum(len(v) for v in self._message_listeners.values())

    def _load_messages(self, chat_id: str) -> List[MessageOut]:
        db = self._session_factory()
        try:
            return messages_to_schema(query_messages(db, chat_id))
        except SQLAlchemyError as e:
            logger.error(f"Failed to load messages for chat {chat_id}: {str(e)}")
            raise StoreUnavailableError() from e
        finally:
            db.close()

    def _load_chats(self) -> List[ChatOut]:
        db = self._session_factory()
        try:
            return chats_to_schema(query_chats(db))
        except SQLAlchemyError as e:
            logger.error(f"Failed to load chat directory: {str(e)}")
            raise StoreUnavailableError() from e
        finally:
            db.close()

    def _deliver(self, listener: Callable, snapshot: list):
        try:
            listener(snapshot)
        except Exception as e:
            logger.warning(f"Chat listener failed: {type(e).__name__} - {str(e)}", exc_info=True)
