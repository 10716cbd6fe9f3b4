"""Message models for chat completion functionality."""
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .errors import DecodeError


class Role(str, Enum):
    """Author of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


def parse_role(value: Any) -> Role:
    """Convert an upstream role string into ``Role``.

    Args:
        value: Role as received from the API

    Returns:
        Matching role

    Raises:
        DecodeError: If the value is not one of the known roles
    """
    try:
        return Role(value)
    except ValueError:
        raise DecodeError(
            f"Unrecognized message role: {value!r}",
            details={"role": value, "allowed": [role.value for role in Role]},
        ) from None


class Message(BaseModel):
    """One entry of a conversation, in chronological order."""

    role: Role = Field(description="The role of the message's author")
    content: str = Field(description="The contents of the message")
