"""Streaming session: ordered delivery of chunk events to a sink.

A session runs in its own ``asyncio.Task``. The sink is called from that task,
so anything the sink raises ends the session with a failed result instead of
reaching the code that started the stream.
"""
import asyncio
import inspect
import time
import uuid
from typing import Any, Awaitable, Callable, Optional, Set, Union

from alchemind_openai.core.logger import LoggerService
from ..models import (
    AnyStreamEvent,
    Choice,
    ChoiceMessage,
    ChunkEvent,
    ClientConfig,
    CompletionRequest,
    CompletionResponse,
    DoneEvent,
    ErrorEvent,
    FinishReason,
    ProviderError,
    ResponseType,
    Result,
    Role,
    StreamDelta,
    StreamState,
    StreamTimeoutError,
    StreamUpstreamError,
    UpstreamError,
)
from .bridge import StreamBridge

Sink = Callable[[StreamDelta], Union[None, Awaitable[Any]]]

DEFAULT_STREAM_TIMEOUT = 30.0

# Strong references to running sessions; the event loop only keeps weak ones
_background_tasks: Set["asyncio.Task[Result[CompletionResponse]]"] = set()


class StreamingSession:
    """One streaming exchange, identified by a fresh correlation token."""

    def __init__(
        self,
        logger: LoggerService,
        bridge: StreamBridge,
        config: ClientConfig,
        request: CompletionRequest,
        sink: Sink,
        timeout: float = DEFAULT_STREAM_TIMEOUT,
    ) -> None:
        """Initialize session.

        Args:
            logger: Logger service instance
            bridge: Producer of chunk events
            config: Client configuration handed to the bridge
            request: Completion request being streamed
            sink: Called once per delta, in arrival order
            timeout: Seconds of silence after which the session times out
        """
        self.logger = logger.get_logger(__name__)
        self.bridge = bridge
        self.config = config
        self.request = request
        self.sink = sink
        self.timeout = timeout
        self.token = uuid.uuid4().hex
        self.state = StreamState.IDLE
        self.content = ""
        self.chunk_requests = 0
        self.channel: "asyncio.Queue[AnyStreamEvent]" = asyncio.Queue()

    def _request_next_chunk(self) -> None:
        self.state = StreamState.REQUESTING
        self.chunk_requests += 1
        self.bridge.request_next_chunk(self.config, self.request, self.channel, self.token)

    async def _next_event(self, deadline: float) -> AnyStreamEvent:
        """Wait for the next event carrying this session's token."""
        loop = asyncio.get_running_loop()
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise asyncio.TimeoutError
            event = await asyncio.wait_for(self.channel.get(), remaining)
            if event.token == self.token:
                return event
            self.logger.debug(
                "Ignoring event for another session",
                extra={"token": self.token, "event_token": event.token},
            )

    async def _deliver(self, content: str) -> None:
        self.state = StreamState.DELIVERING
        try:
            outcome = self.sink(StreamDelta(content=content))
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            self.logger.error(
                "Stream sink failed",
                extra={"token": self.token, "error": str(e)},
                exc_info=True,
            )
            raise StreamUpstreamError(f"Stream sink failed: {e}", token=self.token) from e
        self.content += content

    def _final_response(self) -> CompletionResponse:
        return CompletionResponse(
            id=f"chatcmpl-{self.token}",
            object=ResponseType.CHAT_COMPLETION.value,
            created=int(time.time()),
            model=self.request.model,
            choices=[
                Choice(
                    index=0,
                    message=ChoiceMessage(role=Role.ASSISTANT, content=self.content),
                    finish_reason=FinishReason.STOP.value,
                )
            ],
        )

    async def _run(self) -> CompletionResponse:
        loop = asyncio.get_running_loop()
        self._request_next_chunk()
        deadline = loop.time() + self.timeout

        while True:
            try:
                event = await self._next_event(deadline)
            except asyncio.TimeoutError:
                self.state = StreamState.TIMED_OUT
                self.logger.error(
                    "Streaming timeout",
                    extra={"token": self.token, "timeout": self.timeout},
                )
                raise StreamTimeoutError(self.token, self.timeout) from None

            if isinstance(event, ChunkEvent):
                try:
                    await self._deliver(event.content)
                except StreamUpstreamError:
                    self.state = StreamState.FAILED
                    raise
                self._request_next_chunk()
                deadline = loop.time() + self.timeout
            elif isinstance(event, DoneEvent):
                self.state = StreamState.COMPLETED
                self.logger.info(
                    "Stream completed",
                    extra={
                        "token": self.token,
                        "model": self.request.model,
                        "content_length": len(self.content),
                        "chunk_requests": self.chunk_requests,
                    },
                )
                return self._final_response()
            elif isinstance(event, ErrorEvent):
                self.state = StreamState.FAILED
                self.logger.error(
                    "Stream failed",
                    extra={"token": self.token, "error": event.message},
                )
                raise StreamUpstreamError(event.message, token=self.token)

    async def run(self) -> Result[CompletionResponse]:
        """Drive the session to a terminal state.

        Returns:
            The accumulated response, or the error that ended the session
        """
        try:
            return Result.success(await self._run())
        except ProviderError as e:
            # Errors raised while requesting a chunk leave the state mid-flight
            if not self.state.is_terminal:
                self.state = StreamState.FAILED
            return Result.failure(e)
        except Exception as e:
            self.state = StreamState.FAILED
            self.logger.error(
                "Unexpected error in streaming session",
                extra={"token": self.token, "error": str(e)},
                exc_info=True,
            )
            return Result.failure(UpstreamError(code=500, message=f"Unexpected error: {e}"))
        finally:
            await self.bridge.release(self.token)


class StreamHandle:
    """Acknowledgement that a streaming session has started.

    The session keeps running in the background; ``result()`` waits for it.
    """

    def __init__(
        self,
        session: StreamingSession,
        task: "asyncio.Task[Result[CompletionResponse]]",
    ) -> None:
        self.session = session
        self._task = task

    @property
    def token(self) -> str:
        return self.session.token

    @property
    def state(self) -> StreamState:
        return self.session.state

    def done(self) -> bool:
        return self._task.done()

    async def result(self) -> Result[CompletionResponse]:
        """Wait for the session to finish and return its outcome."""
        return await asyncio.shield(self._task)

    def __repr__(self) -> str:
        return f"StreamHandle(token={self.token!r}, state={self.state.value!r})"


def start_session(session: StreamingSession, name: Optional[str] = None) -> StreamHandle:
    """Schedule ``session`` on the running loop and return its handle."""
    task = asyncio.get_running_loop().create_task(
        session.run(), name=name or f"stream-{session.token}"
    )
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return StreamHandle(session, task)
