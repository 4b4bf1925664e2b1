"""
Service providers for route handlers
"""

from fastapi import Depends
from fastapi.requests import HTTPConnection
from sqlalchemy.orm import Session

from fanchat.core.database import get_db
from fanchat.services.account import AccountService
from fanchat.services.chat_feed import ChatFeed
from fanchat.services.chat_service import ChatService
from fanchat.services.persona import PersonaResponder
from fanchat.services.storage import ObjectStore, get_object_store


def get_chat_feed(connection: HTTPConnection) -> ChatFeed:
    """The application's live subscription hub, created at startup"""
    return connection.app.state.chat_feed


def get_chat_service(
    db: Session = Depends(get_db),
    feed: ChatFeed = Depends(get_chat_feed)
) -> ChatService:
    return ChatService(db, feed)


def get_persona_responder() -> PersonaResponder:
    return PersonaResponder()


def get_account_service(
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store)
) -> AccountService:
    return AccountService(db, store)
