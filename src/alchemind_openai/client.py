"""OpenAI client facade.

Every public operation returns a ``Result``. Expected failures (bad
configuration, unresolved fields, transport errors, upstream errors, decode
errors, stream errors) come back as ``Result.failure``; anything unexpected is
logged and converted to an ``UpstreamError`` at the same boundary.
"""
from types import TracebackType
from typing import Any, Awaitable, Callable, Iterable, Optional, Type, TypeVar, Union

from alchemind_openai.core.logger import LoggerService
from alchemind_openai.core.settings import Settings, settings
from .mapper import MessageLike, OpenAIMapper
from .models import (
    ClientConfig,
    CompletionResponse,
    ConfigError,
    ProviderError,
    RequestConstructionError,
    Result,
    UpstreamError,
)
from .normalizer import OpenAINormalizer
from .streaming import (
    HttpStreamBridge,
    Sink,
    StreamBridge,
    StreamHandle,
    StreamingSession,
    start_session,
)
from .transport import HttpxTransport, Transport

T = TypeVar("T")


class OpenAIClient:
    """Client for the OpenAI chat, transcription and speech endpoints.

    The configuration, transport and bridge are fixed at construction, so one
    client can serve concurrent calls.
    """

    provider = "openai"

    def __init__(
        self,
        config: ClientConfig,
        transport: Transport,
        bridge: StreamBridge,
        mapper: OpenAIMapper,
        normalizer: OpenAINormalizer,
        logger: LoggerService,
        stream_timeout: float,
    ) -> None:
        self._config = config
        self._transport = transport
        self._bridge = bridge
        self._mapper = mapper
        self._normalizer = normalizer
        self._logger_service = logger
        self._stream_timeout = stream_timeout
        self.logger = logger.get_logger(__name__)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def api_key(self) -> str:
        return self._config.api_key

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def model(self) -> Optional[str]:
        return self._config.model

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def bridge(self) -> StreamBridge:
        return self._bridge

    def __repr__(self) -> str:
        return f"OpenAIClient(base_url={self.base_url!r}, model={self.model!r})"

    def _config_for(self, options: dict) -> ClientConfig:
        """Client configuration with call-site overrides applied."""
        base_url = options.get("base_url")
        if base_url and base_url.rstrip("/") != self._config.base_url:
            return self._config.model_copy(update={"base_url": base_url.rstrip("/")})
        return self._config

    async def _guard(self, operation: str, call: Callable[[], Awaitable[T]]) -> Result[T]:
        try:
            return Result.success(await call())
        except ProviderError as e:
            self.logger.warning(
                "Operation failed",
                extra={
                    "operation": operation,
                    "error_type": type(e).__name__,
                    "code": e.code,
                    "error": e.message,
                },
            )
            return Result.failure(e)
        except Exception as e:
            self.logger.error(
                "Unexpected error",
                extra={"operation": operation, "error": str(e)},
                exc_info=True,
            )
            return Result.failure(
                UpstreamError(
                    code=500,
                    message=f"Unexpected error: {e}",
                    details={"error": str(e), "operation": operation},
                )
            )

    async def complete(
        self,
        messages: Iterable[MessageLike],
        sink: Optional[Sink] = None,
        **options: Any,
    ) -> Union[Result[CompletionResponse], Result[StreamHandle]]:
        """Complete a conversation.

        Args:
            messages: Conversation, oldest first; ``Message`` objects or dicts
            sink: When given, stream the answer: the sink receives one
                ``StreamDelta`` per chunk and the call returns a
                ``StreamHandle`` as soon as the session has started
            **options: ``model``, ``temperature``, ``max_tokens``, ``base_url``

        Returns:
            ``Result`` with a ``CompletionResponse``, or with a ``StreamHandle``
            when streaming
        """
        if sink is not None:
            return await self._guard("chat_stream", lambda: self._start_stream(messages, sink, options))
        return await self._guard("chat", lambda: self._complete(messages, options))

    async def _complete(self, messages: Iterable[MessageLike], options: dict) -> CompletionResponse:
        config = self._config_for(options)
        request = self._mapper.to_completion_request(config, messages, options)
        wire = self._mapper.map_chat_request(config, request)
        self.logger.info(
            "Sending chat completion",
            extra={"operation": "chat", "url": wire.url, "model": request.model},
        )
        response = await self._transport.send(wire.url, wire.options)
        return self._normalizer.normalize_chat(response)

    async def _start_stream(
        self, messages: Iterable[MessageLike], sink: Sink, options: dict
    ) -> StreamHandle:
        if not callable(sink):
            raise RequestConstructionError("Stream sink must be callable", field="sink")
        config = self._config_for(options)
        request = self._mapper.to_completion_request(config, messages, options)
        session = StreamingSession(
            logger=self._logger_service,
            bridge=self._bridge,
            config=config,
            request=request,
            sink=sink,
            timeout=self._stream_timeout,
        )
        handle = start_session(session)
        self.logger.info(
            "Streaming started",
            extra={"operation": "chat_stream", "token": session.token, "model": request.model},
        )
        return handle

    async def transcribe(self, audio: bytes, **options: Any) -> Result[str]:
        """Transcribe audio to text.

        Args:
            audio: Audio payload
            **options: ``model``, ``language``, ``prompt``, ``response_format``,
                ``temperature``, ``base_url``

        Returns:
            ``Result`` with the transcript
        """
        return await self._guard("transcription", lambda: self._transcribe(audio, options))

    async def _transcribe(self, audio: bytes, options: dict) -> str:
        config = self._config_for(options)
        request = self._mapper.to_transcription_request(audio, options)
        wire = self._mapper.map_transcription_request(config, request)
        self.logger.info(
            "Sending transcription",
            extra={"operation": "transcription", "url": wire.url, "model": request.model},
        )
        response = await self._transport.send(wire.url, wire.options)
        return self._normalizer.normalize_transcription(response)

    async def speech(self, input: str, **options: Any) -> Result[bytes]:
        """Synthesize speech from text.

        Args:
            input: Text to speak
            **options: ``model``, ``voice``, ``response_format``, ``speed``, ``base_url``

        Returns:
            ``Result`` with the audio bytes
        """
        return await self._guard("speech", lambda: self._speech(input, options))

    async def _speech(self, input: str, options: dict) -> bytes:
        config = self._config_for(options)
        request = self._mapper.to_speech_request(input, options)
        wire = self._mapper.map_speech_request(config, request)
        self.logger.info(
            "Sending speech request",
            extra={"operation": "speech", "url": wire.url, "model": request.model},
        )
        response = await self._transport.send(wire.url, wire.options)
        return self._normalizer.normalize_speech(response)

    async def aclose(self) -> None:
        """Close transport and bridge."""
        await self._transport.aclose()
        await self._bridge.aclose()

    async def __aenter__(self) -> "OpenAIClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()


def new(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    model: Optional[str] = None,
    transport: Optional[Transport] = None,
    bridge: Optional[StreamBridge] = None,
    settings_instance: Optional[Settings] = None,
    logger: Optional[LoggerService] = None,
) -> Result[OpenAIClient]:
    """Create an OpenAI client.

    Args:
        api_key: OpenAI API key (required)
        base_url: API base URL, defaults to ``settings.OPENAI_BASE_URL``
        model: Default chat model, can be overridden per call
        transport: Transport for single-shot requests, defaults to httpx
        bridge: Source of streaming chunks, defaults to httpx server-sent events
        settings_instance: Settings supplying defaults
        logger: Logger service instance

    Returns:
        ``Result`` with the client, or a ``ConfigError`` when no key is given
    """
    cfg = settings_instance or settings
    logger = logger or LoggerService(cfg)

    if not api_key:
        logger.get_logger(__name__).error("OpenAI API key not provided")
        return Result.failure(
            ConfigError(
                "OpenAI API key not provided. Please provide an api_key option.",
                field="api_key",
            )
        )

    config = ClientConfig(
        api_key=api_key,
        base_url=base_url or cfg.OPENAI_BASE_URL,
        model=model or cfg.OPENAI_MODEL or None,
    )
    mapper = OpenAIMapper(logger, transcription_timeout=cfg.TRANSCRIPTION_TIMEOUT)
    client = OpenAIClient(
        config=config,
        transport=transport or HttpxTransport(logger, timeout=cfg.PROVIDER_TIMEOUT),
        bridge=bridge or HttpStreamBridge(logger, mapper, timeout=cfg.PROVIDER_TIMEOUT),
        mapper=mapper,
        normalizer=OpenAINormalizer(logger),
        logger=logger,
        stream_timeout=cfg.STREAM_TIMEOUT,
    )
    logger.get_logger(__name__).info(
        "Initialized OpenAIClient",
        extra={
            "base_url": config.base_url,
            "model": config.model,
            "transport_type": type(client.transport).__name__,
            "bridge_type": type(client.bridge).__name__,
        },
    )
    return Result.success(client)
