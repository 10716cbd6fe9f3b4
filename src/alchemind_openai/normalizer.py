"""OpenAI response normalizer.

The three endpoints answer with different body shapes (JSON objects, plain
text, raw audio), so every operation decodes success and failure on its own
terms and keeps its own error shape.
"""
import json
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from alchemind_openai.core.logger import LoggerService
from .models import (
    Choice,
    ChoiceMessage,
    CompletionResponse,
    DecodeError,
    RawResponse,
    UpstreamError,
    parse_role,
)

SPEECH_ERROR_STATUSES = frozenset({400, 401, 429, 500})


def is_success(status: int) -> bool:
    """Whether a status falls into the 200-299 band."""
    return 200 <= status <= 299


def _as_text(body: Any) -> Optional[str]:
    if isinstance(body, str):
        return body
    if isinstance(body, (bytes, bytearray)):
        try:
            return bytes(body).decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


def _try_json(body: Any) -> Any:
    """Decode a text body as JSON, returning None when it is not JSON."""
    text = _as_text(body)
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def error_message(body: Any) -> Optional[str]:
    """Pull ``error.message`` out of a provider error body."""
    if not isinstance(body, Mapping):
        body = _try_json(body)
    if not isinstance(body, Mapping):
        return None
    error = body.get("error")
    if isinstance(error, Mapping) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error, str):
        return error
    return None


class OpenAINormalizer:
    """Normalizer for OpenAI responses."""

    def __init__(self, logger: LoggerService) -> None:
        """Initialize normalizer.

        Args:
            logger: Logger service instance
        """
        self.logger = logger.get_logger(__name__)

    def normalize_chat(self, response: RawResponse) -> CompletionResponse:
        """Decode a chat completions response.

        Raises:
            UpstreamError: Status outside the success band, ``body`` is the raw body
            DecodeError: Success status with a body that does not decode
        """
        if not is_success(response.status):
            self.logger.error(
                "Error response from chat completions",
                extra={"operation": "chat", "status_code": response.status},
            )
            raise UpstreamError(
                code=response.status,
                message=error_message(response.body)
                or f"Chat completion failed (Status: {response.status})",
                body=response.body,
            )

        body = response.body
        if not isinstance(body, Mapping):
            body = _try_json(body)
        if not isinstance(body, Mapping):
            raise DecodeError(
                "Invalid chat completion body",
                details={"body_type": type(response.body).__name__},
            )

        try:
            return CompletionResponse(
                id=body.get("id"),
                object=body.get("object"),
                created=body.get("created"),
                model=body.get("model"),
                choices=self._map_choices(body.get("choices") or []),
            )
        except ValidationError as e:
            raise DecodeError(
                "Invalid chat completion body",
                details={"error": str(e)},
            ) from e

    def _map_choices(self, choices: List[Any]) -> List[Choice]:
        mapped = []
        for choice in choices:
            message = choice.get("message") if isinstance(choice, Mapping) else None
            if not isinstance(message, Mapping):
                raise DecodeError(
                    "Chat completion choice has no message",
                    details={"choice": choice},
                )
            mapped.append(
                Choice(
                    index=choice.get("index"),
                    message=ChoiceMessage(
                        role=parse_role(message.get("role")),
                        content=message.get("content"),
                    ),
                    finish_reason=choice.get("finish_reason"),
                )
            )
        return mapped

    def normalize_transcription(self, response: RawResponse) -> str:
        """Decode a transcription response into the transcript text.

        Raises:
            UpstreamError: Status outside the success band, ``body`` is a mapping
            DecodeError: Success status with neither ``{"text": ...}`` nor text
        """
        body = response.body
        if is_success(response.status):
            if isinstance(body, Mapping) and isinstance(body.get("text"), str):
                return body["text"]
            if isinstance(body, str):
                return body
            raise DecodeError(
                "Invalid response format",
                details={"body_type": type(body).__name__},
            )

        error_body = self._transcription_error_body(body)
        self.logger.error(
            "Error response from transcriptions",
            extra={"operation": "transcription", "status_code": response.status},
        )
        raise UpstreamError(
            code=response.status,
            message=error_message(error_body)
            or f"Transcription failed (Status: {response.status})",
            body=error_body,
        )

    @staticmethod
    def _transcription_error_body(body: Any) -> Dict[str, Any]:
        if isinstance(body, Mapping):
            return dict(body)
        decoded = _try_json(body)
        if isinstance(decoded, Mapping):
            return dict(decoded)
        text = _as_text(body)
        return {"error": {"message": text if text is not None else str(body)}}

    def normalize_speech(self, response: RawResponse) -> bytes:
        """Return synthesized audio.

        Raises:
            UpstreamError: Any status other than 200
        """
        if response.status == 200:
            body = response.body
            if isinstance(body, (bytes, bytearray)):
                return bytes(body)
            if isinstance(body, str):
                return body.encode("utf-8")
            raise UpstreamError(code=response.status, message="Failed to generate speech")

        self.logger.error(
            "Error response from speech",
            extra={"operation": "speech", "status_code": response.status},
        )
        if response.status in SPEECH_ERROR_STATUSES:
            message = error_message(response.body) or (
                f"Failed to generate speech (Status: {response.status})"
            )
        else:
            message = "Failed to generate speech"
        raise UpstreamError(code=response.status, message=message)
