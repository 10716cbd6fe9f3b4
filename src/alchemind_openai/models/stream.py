"""Events exchanged between a stream bridge and a streaming session."""
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict


class StreamState(str, Enum):
    """Streaming session states."""

    IDLE = "idle"
    REQUESTING = "requesting"
    DELIVERING = "delivering"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamState.COMPLETED, StreamState.FAILED, StreamState.TIMED_OUT)


class StreamEvent(BaseModel):
    """Base event, tagged with the correlation token of its session."""

    model_config = ConfigDict(frozen=True)

    token: str


class ChunkEvent(StreamEvent):
    """Next piece of assistant content."""

    content: str


class ErrorEvent(StreamEvent):
    """Upstream failure, terminal for the session."""

    message: str


class DoneEvent(StreamEvent):
    """Upstream finished the stream."""


AnyStreamEvent = Union[ChunkEvent, ErrorEvent, DoneEvent]
