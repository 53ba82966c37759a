"""
Runtime settings.

Values come from the environment (a .env file is honoured by the CLI and the
server via python-dotenv); every field has a working default except the
model API key, whose absence selects heuristic synthesis.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field

PLACEHOLDER_KEYS = {"", "your_api_key_here"}


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    return value if value is not None else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Settings for a pipeline instance."""

    # Generative model
    gemini_api_key: Optional[str] = Field(default=None, repr=False)
    model: str = Field(default="gemini-2.5-flash", description="Gemini model name")
    thinking_budget: int = Field(default=4096, ge=0)
    synthesis_timeout: float = Field(default=120.0, gt=0, description="Seconds per model attempt")
    synthesis_max_retries: int = Field(default=2, ge=0, description="Retries after the first attempt")
    synthesis_base_delay: float = Field(default=2.0, ge=0, description="First backoff wait, seconds")
    max_context_chars: int = Field(default=800_000, gt=0)

    # Uploads
    max_file_size: int = Field(default=50 * 1024 * 1024, gt=0)
    min_file_size: int = Field(default=100, ge=0)
    strict_media_type: bool = True
    sniff_signature: bool = True

    # Rendering
    image_api_url: str = "https://image.pollinations.ai/prompt"
    image_timeout: float = Field(default=60.0, gt=0)

    # Rate limiting
    rate_limit_window: float = Field(default=60.0, gt=0)
    conversion_limit: int = Field(default=5, ge=1)
    export_limit: int = Field(default=10, ge=1)
    upload_limit: int = Field(default=10, ge=1)

    # Persistence and logging
    database_url: str = "sqlite:///decksmith.db"
    log_level: str = "INFO"

    @property
    def model_configured(self) -> bool:
        return self.gemini_api_key is not None and self.gemini_api_key not in PLACEHOLDER_KEYS

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            gemini_api_key=_env_str("GEMINI_API_KEY"),
            model=_env_str("DECKSMITH_MODEL", "gemini-2.5-flash"),
            synthesis_timeout=_env_float("DECKSMITH_SYNTHESIS_TIMEOUT", 120.0),
            synthesis_max_retries=_env_int("DECKSMITH_SYNTHESIS_RETRIES", 2),
            max_file_size=_env_int("DECKSMITH_MAX_FILE_SIZE", 50 * 1024 * 1024),
            strict_media_type=_env_bool("DECKSMITH_STRICT_MEDIA_TYPE", True),
            image_api_url=_env_str("DECKSMITH_IMAGE_API_URL", "https://image.pollinations.ai/prompt"),
            image_timeout=_env_float("DECKSMITH_IMAGE_TIMEOUT", 60.0),
            rate_limit_window=_env_float("DECKSMITH_RATE_LIMIT_WINDOW", 60.0),
            conversion_limit=_env_int("DECKSMITH_CONVERSION_LIMIT", 5),
            export_limit=_env_int("DECKSMITH_EXPORT_LIMIT", 10),
            upload_limit=_env_int("DECKSMITH_UPLOAD_LIMIT", 10),
            database_url=_env_str("DATABASE_URL", "sqlite:///decksmith.db"),
            log_level=_env_str("DECKSMITH_LOG_LEVEL", "INFO"),
        )
