"""
Helpers for keeping credentials out of logs and error messages
"""

import re
from typing import Optional

# OpenAI-style keys (sk-..., sk-proj-...) and bare long tokens
_KEY_PATTERNS = [
    re.compile(r'sk-(?:proj-)?[A-Za-z0-9_\-]{20,}'),
    re.compile(r'[A-Za-z0-9]{32,}'),
]


def mask_secret(secret: str) -> str:
    """Keep the first and last four characters of a secret"""
    if len(secret) <= 8:
        return "****"
    return secret[:4] + "*" * (len(secret) - 8) + secret[-4:]


def sanitize_api_key(text: str, api_key: Optional[str] = None) -> str:
    """
    Mask API keys in text before it is logged or returned to a caller

    Args:
        text: Text that may contain an API key
        api_key: Known key to mask; common key shapes are masked regardless

    Returns:
        Text with keys masked
    """
    if not text:
        return text

    if api_key and api_key in text:
        text = text.replace(api_key, mask_secret(api_key))

    for pattern in _KEY_PATTERNS:
        text = pattern.sub(lambda m: mask_secret(m.group()), text)

    return text
