"""Client configuration model."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClientConfig(BaseModel):
    """Immutable client configuration."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(
        repr=False,
        description="API key sent as a bearer token",
    )
    base_url: str = Field(description="Base URL for the API, without trailing slash")
    model: Optional[str] = Field(
        None,
        description="Default chat model, used when a call does not name one",
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")
