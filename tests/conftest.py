"""
Test configuration and fixtures
"""

import os
import tempfile

# Keep the application's own engine, media folder and middleware inert under test
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_PATH", tempfile.mkdtemp(prefix="fanchat-media-"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("PERSONA_REPLY_DELAY_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fanchat.main import app
from fanchat.core.config import settings
from fanchat.core.database import get_db, Base
from fanchat.models.auth import ROLE_ADMIN, ROLE_USER
from fanchat.services.auth import AuthService, JWTService
from fanchat.services.chat_feed import ChatFeed
from fanchat.services.storage import LocalObjectStore, get_object_store

TEST_PASSWORD = "Secret#123"


@pytest.fixture(scope="function")
def session_factory(tmp_path):
    """Session factory over a fresh file-backed SQLite database per test."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def chat_feed(session_factory):
    return ChatFeed(session_factory)


@pytest.fixture(scope="function")
def object_store():
    """Store under the directory the /media mount serves"""
    return LocalObjectStore(root=settings.storage_path, url_prefix=settings.media_url_prefix)


@pytest.fixture(scope="function")
def client(session_factory, chat_feed, object_store):
    """Test client wired to the per-test database, feed and object store."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    original_feed = app.state.chat_feed
    app.state.chat_feed = chat_feed
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_store] = lambda: object_store
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.chat_feed = original_feed


def _make_user(db_session, email: str, role: str):
    return AuthService.create_user(db_session, email, TEST_PASSWORD, role=role)


def auth_headers_for(user) -> dict:
    token = JWTService.create_access_token({"user_id": user.id, "email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def token_for(user) -> str:
    return JWTService.create_access_token({"user_id": user.id, "email": user.email, "role": user.role})


@pytest.fixture
def fan_user(db_session):
    return _make_user(db_session, "fan@example.com", ROLE_USER)


@pytest.fixture
def operator_user(db_session):
    return _make_user(db_session, "operator@example.com", ROLE_ADMIN)


@pytest.fixture
def fan_headers(fan_user):
    return auth_headers_for(fan_user)


@pytest.fixture
def operator_headers(operator_user):
    return auth_headers_for(operator_user)


@pytest.fixture
def fan_token(fan_user):
    return token_for(fan_user)


@pytest.fixture
def operator_token(operator_user):
    return token_for(operator_user)
