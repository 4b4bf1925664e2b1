"""
Integration tests for the persona proxy endpoint
"""

import os
from unittest.mock import Mock, patch

import pytest
from openai.types.chat import ChatCompletion, ChatCompletionMessage
from openai.types.chat.chat_completion import Choice

MESSAGES = [
    {"role": "user", "content": "Hi!"},
    {"role": "assistant", "content": "Hey you"},
    {"role": "user", "content": "What are you up to?"},
]


def _completion(content):
    return ChatCompletion(
        id="test-id",
        choices=[
            Choice(
                finish_reason="stop",
                index=0,
                message=ChatCompletionMessage(content=content, role="assistant")
            )
        ],
        created=1234567890,
        model="gpt-4o-mini",
        object="chat.completion"
    )


@pytest.fixture
def configured_key():
    with patch("fanchat.deps.openai_client.settings") as mock_settings:
        mock_settings.openai_api_key = "sk-test-key"
        mock_settings.openai_base_url = None
        mock_settings.persona_request_timeout_seconds = 30.0
        yield mock_settings


@pytest.fixture
def missing_key():
    with patch("fanchat.deps.openai_client.settings") as mock_settings:
        mock_settings.openai_api_key = None
        with patch.dict(os.environ, {"OPENAI_API_KEY": ""}):
            yield mock_settings


class TestPersonaAPI:

    @patch("fanchat.deps.openai_client.OpenAI")
    def test_reply(self, mock_openai_class, client, fan_headers, configured_key):
        mock_create = mock_openai_class.return_value.chat.completions.create
        mock_create.return_value = _completion("Just finished a shoot, you?")

        response = client.post("/api/ai-chat", headers=fan_headers, json={
            "messages": MESSAGES,
            "language": "en"
        })

        assert response.status_code == 200
        assert response.json() == {"response": "Just finished a shoot, you?", "imageUrl": None}

        sent = mock_create.call_args.kwargs
        assert sent["messages"][0]["role"] == "system"
        assert sent["messages"][1:] == MESSAGES
        assert sent["temperature"] == 0.85
        assert sent["max_tokens"] == 300

    @pytest.mark.parametrize("body", [
        {"messages": []},
        {"messages": "hello"},
        {"messages": [{"role": "user"}]},
        {"language": "en"},
        [],
        [{"role": "user", "content": "hi"}],
    ])
    def test_malformed_messages(self, client, fan_headers, missing_key, body):
        response = client.post("/api/ai-chat", headers=fan_headers, json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid messages format"

    def test_missing_key_is_config_error(self, client, fan_headers, missing_key):
        response = client.post("/api/ai-chat", headers=fan_headers, json={"messages": MESSAGES})

        assert response.status_code == 500
        assert response.json()["error_code"] == "CONFIG_ERROR"

    @patch("fanchat.deps.openai_client.OpenAI")
    def test_upstream_failure_is_distinct(self, mock_openai_class, client, fan_headers, configured_key):
        mock_openai_class.return_value.chat.completions.create.side_effect = Exception("Connection reset by peer")

        response = client.post("/api/ai-chat", headers=fan_headers, json={"messages": MESSAGES})

        assert response.status_code == 500
        assert response.json()["error_code"] == "UPSTREAM_ERROR"
        assert "sk-test-key" not in response.text

    @patch("fanchat.deps.openai_client.OpenAI")
    def test_unknown_language_served_in_english(self, mock_openai_class, client, fan_headers, configured_key):
        mock_create = mock_openai_class.return_value.chat.completions.create
        mock_create.return_value = _completion("ok")

        response = client.post("/api/ai-chat", headers=fan_headers, json={
            "messages": MESSAGES,
            "language": "de"
        })

        assert response.status_code == 200
        assert "OBIECTIV" not in mock_create.call_args.kwargs["messages"][0]["content"]

    @patch("fanchat.services.persona.settings")
    @patch("fanchat.deps.openai_client.OpenAI")
    def test_image_failure_keeps_reply(self, mock_openai_class, mock_persona_settings, client, fan_headers, configured_key):
        mock_persona_settings.configure_mock(
            persona_flavor="support",
            persona_name="Eva Maria",
            persona_image_enabled=True,
            persona_reply_delay_enabled=False,
            persona_model="gpt-4o-mini",
            persona_temperature=0.85,
            persona_max_tokens=300,
            persona_image_model="dall-e-3",
            persona_image_size="1024x1024",
        )
        mock_client = mock_openai_class.return_value
        mock_client.chat.completions.create.return_value = _completion("Here you go")
        mock_client.images.generate.side_effect = Exception("content policy violation")

        response = client.post("/api/ai-chat", headers=fan_headers, json={"messages": MESSAGES})

        assert response.status_code == 200
        assert response.json() == {"response": "Here you go", "imageUrl": None}

    @patch("fanchat.deps.openai_client.OpenAI")
    def test_image_attached(self, mock_openai_class, client, fan_headers, configured_key):
        mock_client = mock_openai_class.return_value
        mock_client.chat.completions.create.return_value = _completion("Look")
        mock_client.images.generate.return_value = Mock(data=[Mock(url="https://img.example.com/p.png")])

        with patch("fanchat.services.persona.settings.persona_image_enabled", True):
            response = client.post("/api/ai-chat", headers=fan_headers, json={"messages": MESSAGES})

        assert response.json()["imageUrl"] == "https://img.example.com/p.png"

    def test_requires_authentication(self, client):
        response = client.post("/api/ai-chat", json={"messages": MESSAGES})
        assert response.status_code == 401
