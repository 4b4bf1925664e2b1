"""
Language model and image model client over the OpenAI SDK
"""

import os
import logging
from typing import List, Dict, Optional
from openai import OpenAI
from openai.types.chat import ChatCompletion
from openai import AuthenticationError as OpenAIAuthenticationError
from openai import APIError as OpenAIAPIError

from fanchat.core.config import settings
from fanchat.deps.exceptions import PersonaConfigurationError, UpstreamError
from fanchat.deps.utils import sanitize_api_key

logger = logging.getLogger(__name__)


def _get_api_key(api_key: Optional[str] = None) -> str:
    """
    Get API key from parameter, Settings, or environment variable (in that order).

    Raises:
        PersonaConfigurationError: If no API key is found
    """
    resolved_key = api_key or settings.openai_api_key or os.getenv("OPENAI_API_KEY")

    # Treat empty string as missing
    if not resolved_key or resolved_key.strip() == "":
        raise PersonaConfigurationError()

    return resolved_key.strip()


def _build_client(api_key: str) -> OpenAI:
    kwargs = {
        "api_key": api_key,
        "timeout": settings.persona_request_timeout_seconds,
        "max_retries": 0,  # Callers decide whether to try again
    }
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    return OpenAI(**kwargs)


def chat_completion(
    messages: List[Dict[str, str]],
    model: str,
    temperature: float,
    max_tokens: int,
    api_key: Optional[str] = None
) -> str:
    """
    Send a chat completion request.

    Args:
        messages: List of message dictionaries with 'role' and 'content' keys
        model: Model name
        temperature: Sampling temperature
        max_tokens: Maximum tokens in the reply
        api_key: Optional API key (overrides Settings/env var)

    Returns:
        Reply text, possibly empty

    Raises:
        PersonaConfigurationError: If the API key is missing
        UpstreamError: For authentication failures, API errors and network issues
    """
    resolved_api_key = _get_api_key(api_key)
    try:
        client = _build_client(resolved_api_key)
        response: ChatCompletion = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=False
        )
    except OpenAIAuthenticationError as e:
        error_msg = sanitize_api_key(str(e), resolved_api_key)
        logger.error(f"Language model authentication failed: {error_msg}")
        raise UpstreamError("Language model rejected the configured API key") from e
    except OpenAIAPIError as e:
        error_msg = sanitize_api_key(str(e), resolved_api_key)
        logger.error(f"Language model API error: {error_msg}")
        raise UpstreamError() from e
    except Exception as e:
        error_msg = sanitize_api_key(str(e), resolved_api_key)
        logger.error(f"Language model request failed: {error_msg}")
        raise UpstreamError() from e

    if response.choices:
        return response.choices[0].message.content or ""
    return ""


def generate_image(
    prompt: str,
    model: str,
    size: str,
    api_key: Optional[str] = None
) -> Optional[str]:
    """
    Generate a single image and return its URL.

    Raises:
        PersonaConfigurationError: If the API key is missing
        UpstreamError: If the image request fails
    """
    resolved_api_key = _get_api_key(api_key)
    try:
        client = _build_client(resolved_api_key)
        response = client.images.generate(
            model=model,
            prompt=prompt,
            n=1,
            size=size,
            quality="standard"
        )
    except Exception as e:
        error_msg = sanitize_api_key(str(e), resolved_api_key)
        raise UpstreamError(f"Image generation failed: {error_msg}") from e

    if response.data:
        return response.data[0].url
    return None
