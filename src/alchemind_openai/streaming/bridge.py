"""Stream bridges: asynchronous producers of tagged chunk events."""
import asyncio
from abc import ABC, abstractmethod
from contextlib import AsyncExitStack
from typing import AsyncIterator, Dict, Optional

from httpx import AsyncClient, HTTPError

from alchemind_openai.core.logger import LoggerService
from ..mapper import OpenAIMapper
from ..models import (
    AnyStreamEvent,
    ChunkEvent,
    ClientConfig,
    CompletionRequest,
    DoneEvent,
    ErrorEvent,
    ProviderError,
    UpstreamError,
)
from ..normalizer import error_message, is_success


class StreamBridge(ABC):
    """Source of chunk events for streaming sessions.

    ``request_next_chunk`` returns immediately; the outcome is delivered later
    as exactly one event tagged with ``token`` on ``channel``.
    """

    @abstractmethod
    def request_next_chunk(
        self,
        config: ClientConfig,
        request: CompletionRequest,
        channel: "asyncio.Queue[AnyStreamEvent]",
        token: str,
    ) -> None:
        """Ask for the next chunk of the stream identified by ``token``."""
        raise NotImplementedError

    async def release(self, token: str) -> None:
        """Forget per-token state once a session has ended."""

    async def aclose(self) -> None:
        """Release bridge resources."""


class _OpenStream:
    """An upstream SSE response held open between chunk requests."""

    def __init__(self, stack: AsyncExitStack, lines: AsyncIterator[str]) -> None:
        self.stack = stack
        self.lines = lines


class HttpStreamBridge(StreamBridge):
    """Bridge reading server-sent events from the chat completions endpoint.

    The first request for a token opens the upstream stream; every request
    then reads lines until it can report one content delta, the end of the
    stream, or a failure.
    """

    def __init__(
        self,
        logger: LoggerService,
        mapper: OpenAIMapper,
        timeout: float = 30.0,
        client: Optional[AsyncClient] = None,
    ) -> None:
        """Initialize bridge.

        Args:
            logger: Logger service instance
            mapper: Mapper used to build the streaming request and parse lines
            timeout: Timeout in seconds for the upstream connection
            client: Preconfigured client, mostly for tests
        """
        self.logger = logger.get_logger(__name__)
        self.mapper = mapper
        self._owns_client = client is None
        self._client = client or AsyncClient(timeout=timeout)
        self._streams: Dict[str, _OpenStream] = {}
        self._pending: Dict[str, "asyncio.Task[None]"] = {}

    def request_next_chunk(
        self,
        config: ClientConfig,
        request: CompletionRequest,
        channel: "asyncio.Queue[AnyStreamEvent]",
        token: str,
    ) -> None:
        task = asyncio.get_running_loop().create_task(
            self._pull(config, request, channel, token)
        )
        self._pending[token] = task
        task.add_done_callback(lambda done: self._forget(token, done))

    def _forget(self, token: str, task: "asyncio.Task[None]") -> None:
        if self._pending.get(token) is task:
            del self._pending[token]

    async def _pull(
        self,
        config: ClientConfig,
        request: CompletionRequest,
        channel: "asyncio.Queue[AnyStreamEvent]",
        token: str,
    ) -> None:
        event: AnyStreamEvent
        try:
            stream = self._streams.get(token)
            if stream is None:
                stream = await self._open(config, request, token)
            event = await self._next_event(stream, token)
        except ProviderError as e:
            event = ErrorEvent(token=token, message=e.message)
        except HTTPError as e:
            self.logger.error(
                "HTTP error in stream request",
                extra={"token": token, "error": str(e), "error_type": type(e).__name__},
            )
            event = ErrorEvent(token=token, message=f"Transport error: {e}")
        except Exception as e:
            self.logger.error(
                "Unexpected error in stream request",
                extra={"token": token, "error": str(e)},
                exc_info=True,
            )
            event = ErrorEvent(token=token, message=f"Unexpected error: {e}")

        if not isinstance(event, ChunkEvent):
            await self.release(token)
        channel.put_nowait(event)

    async def _open(
        self, config: ClientConfig, request: CompletionRequest, token: str
    ) -> _OpenStream:
        wire = self.mapper.map_chat_request(config, request, stream=True)
        self.logger.info(
            "Starting stream request",
            extra={"token": token, "url": wire.url, "model": request.model},
        )

        stack = AsyncExitStack()
        try:
            response = await stack.enter_async_context(
                self._client.stream(
                    "POST",
                    wire.url,
                    headers=wire.options.headers,
                    json=wire.options.json_body,
                )
            )
            if not is_success(response.status_code):
                error_text = await response.aread()
                self.logger.error(
                    "Error response from stream request",
                    extra={"token": token, "status_code": response.status_code},
                )
                raise UpstreamError(
                    code=response.status_code,
                    message=error_message(error_text)
                    or f"Streaming request failed (Status: {response.status_code})",
                    body=error_text,
                )
        except BaseException:
            await stack.aclose()
            raise

        stream = _OpenStream(stack, response.aiter_lines())
        self._streams[token] = stream
        return stream

    async def _next_event(self, stream: _OpenStream, token: str) -> AnyStreamEvent:
        while True:
            try:
                line = await stream.lines.__anext__()
            except StopAsyncIteration:
                self.logger.info("Upstream stream ended", extra={"token": token})
                return DoneEvent(token=token)

            chunk_data = self.mapper.parse_sse_line(line)
            if chunk_data is None:
                continue

            if chunk_data.get("event") == "done":
                self.logger.info("Received [DONE]", extra={"token": token})
                return DoneEvent(token=token)

            if "error" in chunk_data:
                return ErrorEvent(
                    token=token,
                    message=error_message(chunk_data) or "Streaming error",
                )

            content = self.mapper.extract_delta_content(chunk_data)
            if content:
                return ChunkEvent(token=token, content=content)

    async def release(self, token: str) -> None:
        """Cancel an in-flight pull for ``token`` and close its stream.

        A pull still waiting on the upstream response closes what it opened
        when cancelled, so a late response is never left holding a connection.
        """
        task = self._pending.get(token)
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            self.logger.debug("Cancelled pending pull", extra={"token": token})

        stream = self._streams.pop(token, None)
        if stream is not None:
            await stream.stack.aclose()
            self.logger.debug("Released stream", extra={"token": token})

    async def aclose(self) -> None:
        """Close open streams and the HTTP client."""
        for token in set(self._streams) | set(self._pending):
            await self.release(token)
        if self._owns_client:
            await self._client.aclose()
        self.logger.info("Stream bridge closed")
