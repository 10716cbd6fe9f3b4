"""Adapter models package."""

from .audio import (
    DEFAULT_SPEECH_FORMAT,
    DEFAULT_SPEECH_MODEL,
    DEFAULT_SPEECH_VOICE,
    DEFAULT_TRANSCRIPTION_FORMAT,
    DEFAULT_TRANSCRIPTION_MODEL,
    SpeechRequest,
    TranscriptionRequest,
)
from .completion import (
    Choice,
    ChoiceMessage,
    CompletionRequest,
    CompletionResponse,
    FinishReason,
    ResponseType,
    StreamDelta,
)
from .errors import (
    ConfigError,
    DecodeError,
    ProviderError,
    RequestConstructionError,
    StreamTimeoutError,
    StreamUpstreamError,
    TransportError,
    UpstreamError,
)
from .messages import Message, Role, parse_role
from .provider import ClientConfig
from .result import Result
from .stream import (
    AnyStreamEvent,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    StreamState,
)
from .wire import RawResponse, TransportOptions, WireRequest

__all__ = [
    "AnyStreamEvent",
    "Choice",
    "ChoiceMessage",
    "ChunkEvent",
    "ClientConfig",
    "CompletionRequest",
    "CompletionResponse",
    "ConfigError",
    "DEFAULT_SPEECH_FORMAT",
    "DEFAULT_SPEECH_MODEL",
    "DEFAULT_SPEECH_VOICE",
    "DEFAULT_TRANSCRIPTION_FORMAT",
    "DEFAULT_TRANSCRIPTION_MODEL",
    "DecodeError",
    "DoneEvent",
    "ErrorEvent",
    "FinishReason",
    "Message",
    "ProviderError",
    "RawResponse",
    "RequestConstructionError",
    "ResponseType",
    "Result",
    "Role",
    "SpeechRequest",
    "StreamDelta",
    "StreamEvent",
    "StreamState",
    "StreamTimeoutError",
    "StreamUpstreamError",
    "TranscriptionRequest",
    "TransportError",
    "TransportOptions",
    "UpstreamError",
    "WireRequest",
    "parse_role",
]
