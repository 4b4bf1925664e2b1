"""
Integration tests for the end-user chat API
"""

from unittest.mock import patch

import pytest

from fanchat.deps.exceptions import UpstreamError


@pytest.fixture
def persona_completion():
    with patch("fanchat.services.persona.openai_client") as mock_client:
        mock_client.chat_completion.return_value = "Hey! What made you write today?"
        yield mock_client


class TestChatEndpoints:

    def test_chat_created_on_first_visit(self, client, fan_headers, fan_user):
        first = client.get("/api/chat", headers=fan_headers)
        second = client.get("/api/chat", headers=fan_headers)

        assert first.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["user_email"] == fan_user.email
        assert first.json()["last_message"] == ""

    def test_send_and_list(self, client, fan_headers):
        client.post("/api/chat/messages", headers=fan_headers, json={"text": "  Hello  "})
        client.post("/api/chat/messages", headers=fan_headers, json={"text": "Anyone there?"})

        messages = client.get("/api/chat/messages", headers=fan_headers).json()
        chat = client.get("/api/chat", headers=fan_headers).json()

        assert [m["text"] for m in messages] == ["Hello", "Anyone there?"]
        assert all(m["is_admin"] is False for m in messages)
        assert chat["last_message"] == "Anyone there?"
        assert chat["unread_by_admin"] is True
        assert chat["unread_by_user"] is False

    def test_empty_message_rejected(self, client, fan_headers):
        response = client.post("/api/chat/messages", headers=fan_headers, json={"text": "   "})
        assert response.status_code == 422

    def test_mark_read(self, client, fan_headers):
        response = client.post("/api/chat/read", headers=fan_headers)

        assert response.status_code == 200
        assert response.json()["unread_by_user"] is False

    def test_requires_authentication(self, client):
        assert client.get("/api/chat").status_code == 401
        assert client.post("/api/chat/messages", json={"text": "hi"}).status_code == 401


class TestPersistedReply:

    def test_reply_stored_in_chat(self, client, fan_headers, persona_completion):
        client.post("/api/chat/messages", headers=fan_headers, json={"text": "Hi Eva"})

        response = client.post("/api/chat/reply", headers=fan_headers, json={"language": "en"})

        assert response.status_code == 200
        message = response.json()["message"]
        assert message["text"] == "Hey! What made you write today?"
        assert message["sender_id"] == "ai-assistant"
        assert message["is_admin"] is True
        assert response.json()["latency_ms"] >= 0

        chat = client.get("/api/chat", headers=fan_headers).json()
        assert chat["unread_by_user"] is True
        assert chat["unread_by_admin"] is False

        history = persona_completion.chat_completion.call_args[0][0]
        assert history[-1] == {"role": "user", "content": "Hi Eva"}

    def test_reply_to_empty_chat_is_bad_request(self, client, fan_headers, persona_completion):
        response = client.post("/api/chat/reply", headers=fan_headers, json={})

        assert response.status_code == 400
        persona_completion.chat_completion.assert_not_called()

    def test_upstream_failure_stores_nothing(self, client, fan_headers, persona_completion):
        client.post("/api/chat/messages", headers=fan_headers, json={"text": "Hi Eva"})
        persona_completion.chat_completion.side_effect = UpstreamError()

        response = client.post("/api/chat/reply", headers=fan_headers, json={"language": "en"})

        assert response.status_code == 500
        assert response.json()["error_code"] == "UPSTREAM_ERROR"
        assert len(client.get("/api/chat/messages", headers=fan_headers).json()) == 1
