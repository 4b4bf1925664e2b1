"""
Application configuration
"""

import os
from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./fanchat.db"  # Will be overridden by env var

    # Object storage (profile pictures)
    storage_path: str = "./media"
    media_url_prefix: str = "/media"
    max_avatar_mb: int = 5

    # Authentication Configuration
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7
    password_min_length: int = 8

    # Language model (OpenAI-compatible API)
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None  # None means the default OpenAI endpoint

    # Persona Configuration
    persona_name: str = "Eva Maria"
    persona_flavor: str = "support"  # support, companion
    persona_model: str = "gpt-4o-mini"
    persona_temperature: float = 0.85
    persona_max_tokens: int = 300  # Short, human-sounding replies
    persona_history_window: int = 5  # Prior turns forwarded with the newest user turn
    persona_request_timeout_seconds: float = 30.0

    # Image generation (best-effort, off by default)
    persona_image_enabled: bool = False
    persona_image_model: str = "dall-e-3"
    persona_image_size: str = "1024x1024"

    # Human-paced reply delay
    persona_reply_delay_enabled: bool = True
    persona_reply_delay_min_seconds: float = 1.5
    persona_reply_delay_max_seconds: float = 4.0

    # Logging Configuration
    log_level: str = "INFO"
    debug: bool = False

    # Rate Limiting Configuration
    rate_limit_enabled: bool = True
    rate_limit_qps: int = 60  # Requests per minute per IP

    class Config:
        env_file = ".env"
        case_sensitive = False

settings = Settings()

# Convert storage_path to absolute path so uploads land in the same place
# regardless of the working directory
if not os.path.isabs(settings.storage_path):
    settings.storage_path = os.path.abspath(settings.storage_path)
