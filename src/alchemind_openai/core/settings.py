"""Adapter settings."""
import json
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )
    """Adapter settings.

    Values here are defaults only: arguments passed to ``new()`` or to a
    single operation always take precedence.
    """

    # Project
    PROJECT_NAME: str = "alchemind-openai"
    VERSION: str = "0.1.0"

    # OpenAI Settings
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = DEFAULT_OPENAI_BASE_URL
    OPENAI_MODEL: str = ""  # Default chat model, empty means "call site decides"

    # Transport Settings
    PROVIDER_TIMEOUT: int = 30  # seconds
    TRANSCRIPTION_TIMEOUT: int = 60  # seconds, connect and receive

    # Streaming Settings
    STREAM_TIMEOUT: float = 30.0  # seconds of silence before a session times out

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # Available formats: json, text, structured
    LOG_EXTRA_FIELDS: List[str] = []  # Additional fields for logs

    @field_validator("LOG_EXTRA_FIELDS", mode="before")
    @classmethod
    def parse_log_extra_fields(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse extra log fields from a JSON list or a comma-separated string."""
        if isinstance(v, str):
            if v.startswith("["):
                try:
                    parsed = json.loads(v)
                except json.JSONDecodeError:
                    return []
                return [str(item) for item in parsed] if isinstance(parsed, list) else []
            return [item.strip() for item in v.split(",") if item.strip()]
        elif isinstance(v, list):
            return [str(item) for item in v]
        return []

    @field_validator("OPENAI_BASE_URL")
    @classmethod
    def strip_base_url(cls, v: str) -> str:
        """Drop trailing slashes so paths can be appended directly."""
        return v.rstrip("/") or DEFAULT_OPENAI_BASE_URL


settings = Settings()
