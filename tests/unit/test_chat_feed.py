"""
Unit tests for live chat subscriptions
"""

import threading
from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import OperationalError

from fanchat.deps.exceptions import StoreUnavailableError
from fanchat.services.chat_feed import ChatFeed
from fanchat.services.chat_service import ChatService, query_messages


@pytest.fixture
def chat_service(db_session, chat_feed):
    return ChatService(db_session, chat_feed)


@pytest.fixture
def chat_id(chat_service):
    return chat_service.get_or_create_chat("user-1", "fan@example.com")


def _store_down(*args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("database is locked"))


class TestChatFeed:

    def test_initial_snapshot_delivered_on_subscribe(self, chat_feed, chat_service, chat_id):
        chat_service.send_message(chat_id, "user-1", "fan@example.com", "Hello", False)
        listener = Mock()

        chat_feed.subscribe_to_messages(chat_id, listener)

        listener.assert_called_once()
        snapshot = listener.call_args[0][0]
        assert [m.text for m in snapshot] == ["Hello"]

    def test_full_directory_pushed_on_every_change(self, chat_feed, chat_service, chat_id):
        snapshots = []
        chat_feed.subscribe_to_chats(snapshots.append)

        other = chat_service.get_or_create_chat("user-2", "other@example.com")
        chat_service.send_message(other, "user-2", "other@example.com", "Hi", False)

        assert len(snapshots) == 3
        assert len(snapshots[-1]) == 2
        assert snapshots[-1][0].id == other

    def test_listeners_are_scoped_to_their_chat(self, chat_feed, chat_service, chat_id):
        other = chat_service.get_or_create_chat("user-2", "other@example.com")
        listener = Mock()
        chat_feed.subscribe_to_messages(other, listener)

        chat_service.send_message(chat_id, "user-1", "fan@example.com", "Hello", False)

        assert listener.call_count == 1

    def test_unsubscribe_is_idempotent(self, chat_feed, chat_id):
        unsubscribe_messages = chat_feed.subscribe_to_messages(chat_id, Mock())
        unsubscribe_chats = chat_feed.subscribe_to_chats(Mock())
        assert chat_feed.listener_count() == 2

        unsubscribe_messages()
        unsubscribe_messages()
        unsubscribe_chats()

        assert chat_feed.listener_count() == 0

    def test_failing_listener_does_not_block_others(self, chat_feed, chat_service, chat_id):
        broken = Mock(side_effect=[None, RuntimeError("socket closed")])
        healthy = Mock()
        chat_feed.subscribe_to_messages(chat_id, broken)
        chat_feed.subscribe_to_messages(chat_id, healthy)

        chat_service.send_message(chat_id, "user-1", "fan@example.com", "Hello", False)

        assert healthy.call_count == 2

    def test_failed_initial_load_leaves_no_listener(self, chat_feed, chat_id):
        with patch("fanchat.services.chat_feed.query_messages", side_effect=_store_down):
            with pytest.raises(StoreUnavailableError):
                chat_feed.subscribe_to_messages(chat_id, Mock())

        assert chat_feed.listener_count() == 0

    def test_publish_tolerates_store_outage(self, chat_feed, chat_id):
        listener = Mock()
        chat_feed.subscribe_to_chats(listener)

        with patch("fanchat.services.chat_feed.query_chats", side_effect=_store_down):
            chat_feed.publish_chats()

        assert listener.call_count == 1

    def test_publish_without_listeners_skips_query(self, session_factory):
        factory = Mock(wraps=session_factory)
        feed = ChatFeed(factory)

        feed.publish_chats()
        feed.publish_messages("any")

        factory.assert_not_called()

    def test_write_during_first_load_is_not_overtaken(self, chat_feed, chat_service, chat_id, session_factory):
        chat_service.send_message(chat_id, "user-1", "fan@example.com", "first", False)

        def write_second():
            db = session_factory()
            try:
                ChatService(db, chat_feed).send_message(chat_id, "user-1", "fan@example.com", "second", False)
            finally:
                db.close()

        writer = threading.Thread(target=write_second)
        loads = []

        def slow_load(db, cid):
            rows = query_messages(db, cid)
            loads.append(cid)
            if len(loads) == 1:
                # The reply commits and publishes while this snapshot is still in flight
                writer.start()
                writer.join(timeout=0.5)
            return rows

        snapshots = []
        with patch("fanchat.services.chat_feed.query_messages", side_effect=slow_load):
            chat_feed.subscribe_to_messages(chat_id, snapshots.append)
            writer.join(timeout=5)

        assert not writer.is_alive()
        assert [m.text for m in snapshots[0]] == ["first"]
        assert [m.text for m in snapshots[-1]] == ["first", "second"]

    def test_listener_may_publish_from_its_callback(self, chat_feed, chat_id):
        calls = []

        def republish(snapshot):
            calls.append(snapshot)
            if len(calls) == 1:
                chat_feed.publish_messages(chat_id)

        chat_feed.subscribe_to_messages(chat_id, republish)

        assert len(calls) == 2
