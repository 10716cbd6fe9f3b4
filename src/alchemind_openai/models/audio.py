"""Audio request models: transcription and text-to-speech."""
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_TRANSCRIPTION_MODEL = "whisper-1"
DEFAULT_TRANSCRIPTION_FORMAT = "text"
DEFAULT_SPEECH_MODEL = "gpt-4o-mini-tts"
DEFAULT_SPEECH_VOICE = "alloy"
DEFAULT_SPEECH_FORMAT = "mp3"


class TranscriptionRequest(BaseModel):
    """Audio transcription request."""

    audio: bytes = Field(description="Audio payload, sent as-is")
    model: str = Field(DEFAULT_TRANSCRIPTION_MODEL)
    language: Optional[str] = Field(None, description="ISO-639-1 language hint")
    prompt: Optional[str] = Field(None, description="Text to guide the model")
    response_format: Optional[str] = Field(
        None,
        description="Transcript format, the mapper sends 'text' when unset",
    )
    temperature: Optional[float] = None


class SpeechRequest(BaseModel):
    """Text-to-speech request."""

    input: str = Field(description="Text to synthesize")
    model: str = Field(DEFAULT_SPEECH_MODEL)
    voice: str = Field(DEFAULT_SPEECH_VOICE)
    response_format: str = Field(DEFAULT_SPEECH_FORMAT)
    speed: Optional[float] = None
