"""OpenAI request mapper.

Turns provider-agnostic requests into ``WireRequest`` objects. Mapping is
pure: the same inputs always produce the same payload, and nothing here talks
to the network.
"""
import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union, cast

from pydantic import ValidationError

from alchemind_openai.core.logger import LoggerService
from .models import (
    DEFAULT_TRANSCRIPTION_FORMAT,
    ClientConfig,
    CompletionRequest,
    Message,
    RequestConstructionError,
    SpeechRequest,
    TranscriptionRequest,
    TransportOptions,
    WireRequest,
)

CHAT_COMPLETIONS_PATH = "/chat/completions"
TRANSCRIPTIONS_PATH = "/audio/transcriptions"
SPEECH_PATH = "/audio/speech"

AUDIO_FILENAME = "audio.webm"
AUDIO_CONTENT_TYPE = "audio/webm"
MIN_AUDIO_BYTES = 10

MessageLike = Union[Message, Mapping[str, Any]]


class OpenAIMapper:
    """Mapper for OpenAI requests."""

    def __init__(self, logger: LoggerService, transcription_timeout: float = 60.0) -> None:
        """Initialize mapper.

        Args:
            logger: Logger service instance
            transcription_timeout: Connect and receive timeout for uploads
        """
        self.logger = logger.get_logger(__name__)
        self.transcription_timeout = transcription_timeout

    @staticmethod
    def _json_headers(config: ClientConfig) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _url(base_url: str, path: str) -> str:
        return f"{base_url.rstrip('/')}{path}"

    def resolve_model(self, config: ClientConfig, options: Mapping[str, Any]) -> str:
        """Pick the call-site model, falling back to the client default.

        Raises:
            RequestConstructionError: If neither source names a model
        """
        model = options.get("model") or config.model
        if not model:
            self.logger.warning("No model specified for chat completion")
            raise RequestConstructionError(
                "No model specified. Provide a model via the client or as an option.",
                field="model",
            )
        return cast(str, model)

    def to_messages(self, messages: Iterable[MessageLike]) -> List[Message]:
        """Validate caller messages, keeping their order."""
        try:
            return [
                m if isinstance(m, Message) else Message.model_validate(m)
                for m in messages
            ]
        except ValidationError as e:
            raise RequestConstructionError(
                f"Invalid message: {e.errors()[0]['msg']}", field="messages"
            ) from e

    def to_completion_request(
        self,
        config: ClientConfig,
        messages: Iterable[MessageLike],
        options: Mapping[str, Any],
    ) -> CompletionRequest:
        """Build a canonical completion request from caller input."""
        model = self.resolve_model(config, options)
        try:
            return CompletionRequest(
                model=model,
                messages=self.to_messages(messages),
                temperature=options.get("temperature"),
                max_tokens=options.get("max_tokens"),
            )
        except ValidationError as e:
            error = e.errors()[0]
            raise RequestConstructionError(
                f"Invalid completion request: {error['msg']}",
                field=str(error["loc"][0]) if error["loc"] else "options",
            ) from e

    @staticmethod
    def _present(options: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
        return {key: options[key] for key in keys if options.get(key) is not None}

    def to_transcription_request(
        self, audio: bytes, options: Mapping[str, Any]
    ) -> TranscriptionRequest:
        """Build a transcription request, unset options keep their defaults."""
        fields = self._present(
            options, ("model", "language", "prompt", "response_format", "temperature")
        )
        try:
            return TranscriptionRequest(audio=audio, **fields)
        except ValidationError as e:
            error = e.errors()[0]
            raise RequestConstructionError(
                f"Invalid transcription request: {error['msg']}",
                field=str(error["loc"][0]) if error["loc"] else "audio",
            ) from e

    def to_speech_request(self, input: str, options: Mapping[str, Any]) -> SpeechRequest:
        """Build a speech request, unset options keep their defaults."""
        fields = self._present(options, ("model", "voice", "response_format", "speed"))
        try:
            return SpeechRequest(input=input, **fields)
        except ValidationError as e:
            error = e.errors()[0]
            raise RequestConstructionError(
                f"Invalid speech request: {error['msg']}",
                field=str(error["loc"][0]) if error["loc"] else "input",
            ) from e

    def map_chat_payload(self, request: CompletionRequest, stream: bool = False) -> Dict[str, Any]:
        """Map completion request to the chat completions JSON body.

        Optional sampling fields appear only when set.
        """
        payload: Dict[str, Any] = {
            "model": request.model,
            "messages": [
                {"role": message.role.value, "content": message.content}
                for message in request.messages
            ],
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        if stream:
            payload["stream"] = True
        return payload

    def map_chat_request(
        self,
        config: ClientConfig,
        request: CompletionRequest,
        stream: bool = False,
    ) -> WireRequest:
        """Map completion request to a wire request.

        Args:
            config: Client configuration
            request: Canonical completion request
            stream: Ask the API for server-sent events

        Returns:
            Wire request for the chat completions endpoint
        """
        self.logger.debug(
            "Mapping chat completion request",
            extra={
                "model": request.model,
                "messages": len(request.messages),
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
                "stream": stream,
            },
        )
        return WireRequest(
            operation="chat",
            url=self._url(config.base_url, CHAT_COMPLETIONS_PATH),
            options=TransportOptions(
                headers=self._json_headers(config),
                json_body=self.map_chat_payload(request, stream=stream),
            ),
        )

    def map_transcription_request(
        self, config: ClientConfig, request: TranscriptionRequest
    ) -> WireRequest:
        """Map transcription request to a multipart wire request.

        Raises:
            RequestConstructionError: If the audio payload is too small
        """
        if len(request.audio) < MIN_AUDIO_BYTES:
            raise RequestConstructionError(
                f"Audio binary too small ({len(request.audio)} bytes)",
                field="audio",
            )

        data: Dict[str, str] = {
            "model": request.model,
            "response_format": request.response_format or DEFAULT_TRANSCRIPTION_FORMAT,
        }
        if request.language is not None:
            data["language"] = request.language
        if request.prompt is not None:
            data["prompt"] = request.prompt
        if request.temperature is not None:
            data["temperature"] = str(request.temperature)

        self.logger.debug(
            "Mapping transcription request",
            extra={
                "model": request.model,
                "audio_bytes": len(request.audio),
                "fields": sorted(data),
            },
        )
        return WireRequest(
            operation="transcription",
            url=self._url(config.base_url, TRANSCRIPTIONS_PATH),
            options=TransportOptions(
                # Content-Type is left to the multipart encoder
                headers={"Authorization": f"Bearer {config.api_key}"},
                data=data,
                files={"file": (AUDIO_FILENAME, request.audio, AUDIO_CONTENT_TYPE)},
                connect_timeout=self.transcription_timeout,
                receive_timeout=self.transcription_timeout,
            ),
        )

    def map_speech_request(self, config: ClientConfig, request: SpeechRequest) -> WireRequest:
        """Map speech request to a JSON wire request.

        Raises:
            RequestConstructionError: If the input text is empty
        """
        if not request.input:
            raise RequestConstructionError("Speech input must not be empty", field="input")

        payload: Dict[str, Any] = {
            "model": request.model,
            "input": request.input,
            "voice": request.voice,
            "response_format": request.response_format,
        }
        if request.speed is not None:
            payload["speed"] = request.speed

        self.logger.debug(
            "Mapping speech request",
            extra={
                "model": request.model,
                "voice": request.voice,
                "response_format": request.response_format,
                "input_length": len(request.input),
            },
        )
        return WireRequest(
            operation="speech",
            url=self._url(config.base_url, SPEECH_PATH),
            options=TransportOptions(
                headers=self._json_headers(config),
                json_body=payload,
            ),
        )

    def parse_sse_line(self, line: str) -> Optional[Dict[str, Any]]:
        """Parse SSE line into chunk data.

        Args:
            line: Raw SSE line

        Returns:
            Parsed chunk data, ``{"event": "done"}`` for the terminator, or
            None if the line should be skipped
        """
        line = line.strip()
        if not line or line.startswith(":"):
            return None

        if line.startswith("data:"):
            line = line[5:].strip()

        if line == "[DONE]":
            return {"event": "done"}

        try:
            chunk_data = json.loads(line)
        except json.JSONDecodeError:
            return None
        return chunk_data if isinstance(chunk_data, dict) else None

    @staticmethod
    def extract_delta_content(chunk_data: Mapping[str, Any]) -> Optional[str]:
        """Return the content delta of the first choice, if any."""
        choices = chunk_data.get("choices") or []
        if not choices:
            return None
        delta = choices[0].get("delta") or {}
        content = delta.get("content")
        return content if isinstance(content, str) else None
