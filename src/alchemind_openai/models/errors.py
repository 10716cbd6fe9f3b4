"""Error models for the OpenAI adapter.

Every failure the adapter knows about is a ``ProviderError`` subclass. Internal
layers raise them; the client facade catches them at the operation boundary and
hands them back inside a ``Result``.
"""
from typing import Any, Dict, Optional


class ProviderError(Exception):
    """Provider error with details."""

    def __init__(
        self,
        code: int,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize provider error.

        Args:
            code: Error code, an HTTP status where one applies
            message: Error message
            details: Optional error details
        """
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code}, message={self.message!r})"


class ConfigError(ProviderError):
    """Client configuration is incomplete, no client is produced."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(code=400, message=message, details={"field": field})


class RequestConstructionError(ProviderError):
    """A request could not be built, nothing was sent."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(code=400, message=message, details={"field": field})


class TransportError(ProviderError):
    """The transport failed before an upstream status was available."""

    def __init__(self, reason: Any, url: Optional[str] = None) -> None:
        """Initialize transport error.

        Args:
            reason: Original failure, usually the transport's exception
            url: Target URL of the failed exchange
        """
        self.reason = reason
        super().__init__(
            code=502,
            message=f"Transport error: {reason}",
            details={"url": url, "error_type": type(reason).__name__},
        )


class UpstreamError(ProviderError):
    """Upstream answered outside the success band.

    ``body`` keeps the error payload in the shape of the operation that
    produced it: the raw body for chat, a ``{"error": {...}}`` mapping for
    transcription and ``None`` for speech, where only ``message`` is kept.
    """

    def __init__(
        self,
        code: int,
        message: str,
        body: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.body = body
        super().__init__(code=code, message=message, details=details)


class DecodeError(ProviderError):
    """A success response could not be decoded into its canonical shape."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(code=502, message=message, details=details)


class StreamTimeoutError(ProviderError):
    """No event arrived for a streaming session within the allowed silence."""

    def __init__(self, token: str, timeout: float) -> None:
        super().__init__(
            code=504,
            message="Streaming timeout",
            details={"token": token, "timeout": timeout},
        )


class StreamUpstreamError(ProviderError):
    """A streaming session ended with an error event."""

    def __init__(self, message: str, token: str) -> None:
        super().__init__(code=502, message=message, details={"token": token})
