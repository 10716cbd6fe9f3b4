"""
alchemind-openai: OpenAI provider adapter

Uniform chat completion, transcription and text-to-speech calls over a
swappable transport, with streaming delivery to a caller-supplied sink.
"""

__version__ = "0.1.0"

from .client import OpenAIClient, new
from .models import (
    CompletionResponse,
    ConfigError,
    DecodeError,
    Message,
    ProviderError,
    RawResponse,
    RequestConstructionError,
    Result,
    Role,
    StreamDelta,
    StreamTimeoutError,
    StreamUpstreamError,
    TransportError,
    TransportOptions,
    UpstreamError,
)
from .streaming import StreamBridge, StreamHandle
from .transport import FunctionTransport, HttpxTransport, Transport

__all__ = [
    "CompletionResponse",
    "ConfigError",
    "DecodeError",
    "FunctionTransport",
    "HttpxTransport",
    "Message",
    "OpenAIClient",
    "ProviderError",
    "RawResponse",
    "RequestConstructionError",
    "Result",
    "Role",
    "StreamBridge",
    "StreamDelta",
    "StreamHandle",
    "StreamTimeoutError",
    "StreamUpstreamError",
    "Transport",
    "TransportError",
    "TransportOptions",
    "UpstreamError",
    "new",
    "__version__",
]
