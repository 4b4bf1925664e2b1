"""
Persona responder: one generated reply (and optionally one image) per request
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from fanchat.core.config import settings
from fanchat.deps import openai_client
from fanchat.deps.exceptions import (
    InvalidHistoryError,
    PersonaConfigurationError,
    UpstreamError,
)
from fanchat.services.personas import (
    FALLBACK_REPLIES,
    IMAGE_PROMPTS,
    PERSONA_PROMPTS,
    resolve_language,
)

logger = logging.getLogger(__name__)

ALLOWED_ROLES = ("user", "assistant", "system")


@dataclass
class PersonaReply:
    text: str
    image_url: Optional[str] = None


class PersonaResponder:
    """
    Stateless proxy from a bounded conversation window to the language model.

    Reads its defaults from settings at construction, so a responder built
    per request always reflects the current configuration.
    """

    def __init__(
        self,
        flavor: Optional[str] = None,
        persona_name: Optional[str] = None,
        image_enabled: Optional[bool] = None,
        delay_enabled: Optional[bool] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.flavor = flavor or settings.persona_flavor
        self.persona_name = persona_name or settings.persona_name
        self.image_enabled = settings.persona_image_enabled if image_enabled is None else image_enabled
        self.delay_enabled = settings.persona_reply_delay_enabled if delay_enabled is None else delay_enabled
        self._sleep = sleep
        self._rng = rng or random.Random()

    @staticmethod
    def validate_history(messages: Any) -> List[Dict[str, str]]:
        """
        Check the request history and normalise it to role/content pairs

        Raises:
            InvalidHistoryError: If messages is not a non-empty list of turns
        """
        if not messages or not isinstance(messages, list):
            raise InvalidHistoryError()

        history = []
        for message in messages:
            if not isinstance(message, dict):
                raise InvalidHistoryError()
            role = message.get("role")
            content = message.get("content")
            if role not in ALLOWED_ROLES or not isinstance(content, str):
                raise InvalidHistoryError()
            history.append({"role": role, "content": content})
        return history

    def system_prompt(self, language: str) -> str:
        prompts = PERSONA_PROMPTS.get(self.flavor)
        if prompts is None:
            raise PersonaConfigurationError(f"Unknown persona flavor: {self.flavor}")
        return prompts[resolve_language(language)].format(name=self.persona_name)

    def respond(self, messages: Any, language: Optional[str] = None) -> PersonaReply:
        """
        Generate one reply for the given history

        Args:
            messages: Ordered list of {role, content} turns, newest last
            language: "en" or "ro"; anything else falls back to "en"

        Returns:
            PersonaReply with text and an optional image URL

        Raises:
            InvalidHistoryError: Malformed or empty history (checked first)
            PersonaConfigurationError: No API key or unknown flavor
            UpstreamError: The language model call failed
        """
        history = self.validate_history(messages)
        lang = resolve_language(language)

        prompt_messages = [{"role": "system", "content": self.system_prompt(lang)}] + history
        text = openai_client.chat_completion(
            prompt_messages,
            model=settings.persona_model,
            temperature=settings.persona_temperature,
            max_tokens=settings.persona_max_tokens,
        )
        if not text.strip():
            text = FALLBACK_REPLIES[lang]

        image_url = self._generate_image(history, lang) if self.image_enabled else None

        logger.info(
            f"Persona reply generated: flavor={self.flavor}, language={lang}, "
            f"history_turns={len(history)}, reply_length={len(text)}, image={image_url is not None}"
        )

        if self.delay_enabled:
            self._sleep(self.reply_delay())

        return PersonaReply(text=text, image_url=image_url)

    def reply_delay(self) -> float:
        """Randomised human-paced delay in seconds"""
        return self._rng.uniform(
            settings.persona_reply_delay_min_seconds,
            settings.persona_reply_delay_max_seconds,
        )

    def _generate_image(self, history: List[Dict[str, str]], language: str) -> Optional[str]:
        # Best-effort: an image failure never fails the text reply
        topic = history[-1]["content"] if history else ""
        prompt = IMAGE_PROMPTS[language].format(name=self.persona_name, topic=topic)
        try:
            return openai_client.generate_image(
                prompt,
                model=settings.persona_image_model,
                size=settings.persona_image_size,
            )
        except (UpstreamError, PersonaConfigurationError) as e:
            logger.warning(f"Failed to generate persona image: {e}")
            return None
