"""Chat completion request and response models."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .messages import Message, Role


class ResponseType(str, Enum):
    """Object-kind tags used by the chat completion API."""

    CHAT_COMPLETION = "chat.completion"


class FinishReason(str, Enum):
    """Finish reasons the adapter produces itself."""

    STOP = "stop"


class CompletionRequest(BaseModel):
    """Provider-agnostic chat completion request.

    ``temperature`` and ``max_tokens`` stay ``None`` unless the caller set
    them; the mapper leaves unset fields out of the wire payload.
    """

    model: str = Field(description="Model identifier, already resolved")
    messages: List[Message] = Field(description="Conversation, oldest first")
    temperature: Optional[float] = Field(None, description="Sampling temperature")
    max_tokens: Optional[int] = Field(None, description="Completion token limit")


class ChoiceMessage(BaseModel):
    """Message carried by a completion choice."""

    role: Role
    content: Optional[str] = None


class Choice(BaseModel):
    """One completion alternative."""

    index: Optional[int] = None
    message: ChoiceMessage
    finish_reason: Optional[str] = None


class CompletionResponse(BaseModel):
    """Canonical chat completion response."""

    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    choices: List[Choice] = Field(default_factory=list)


class StreamDelta(BaseModel):
    """Incremental unit handed to a streaming sink."""

    model_config = ConfigDict(frozen=True)

    content: Optional[str] = None
