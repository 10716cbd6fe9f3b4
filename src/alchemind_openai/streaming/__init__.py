"""Streaming delivery."""
from .bridge import HttpStreamBridge, StreamBridge
from .session import (
    DEFAULT_STREAM_TIMEOUT,
    Sink,
    StreamHandle,
    StreamingSession,
    start_session,
)

__all__ = [
    "DEFAULT_STREAM_TIMEOUT",
    "HttpStreamBridge",
    "Sink",
    "StreamBridge",
    "StreamHandle",
    "StreamingSession",
    "start_session",
]
