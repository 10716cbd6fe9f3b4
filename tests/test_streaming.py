import asyncio

import pytest

from alchemind_openai.models import (
    ChunkEvent,
    ClientConfig,
    CompletionRequest,
    Message,
    RequestConstructionError,
    Role,
    StreamDelta,
    StreamState,
    StreamTimeoutError,
    StreamUpstreamError,
)
from alchemind_openai.streaming import StreamingSession, start_session
from tests.stubs import ScriptedBridge, chunk, done, error, stray, stray_then

CONFIG = ClientConfig(api_key="sk-test", base_url="https://api.openai.com/v1")
REQUEST = CompletionRequest(
    model="gpt-4o",
    messages=[Message(role=Role.USER, content="Say hello")],
)


def make_session(logger_service, bridge, sink, timeout=1.0) -> StreamingSession:
    return StreamingSession(
        logger=logger_service,
        bridge=bridge,
        config=CONFIG,
        request=REQUEST,
        sink=sink,
        timeout=timeout,
    )


@pytest.mark.asyncio
async def test_chunks_then_done(logger_service):
    bridge = ScriptedBridge([chunk("Hel"), chunk("lo"), done()])
    deltas = []
    session = make_session(logger_service, bridge, deltas.append)

    result = await session.run()

    assert deltas == [StreamDelta(content="Hel"), StreamDelta(content="lo")]
    response = result.unwrap()
    assert response.choices[0].message.content == "Hello"
    assert response.choices[0].message.role is Role.ASSISTANT
    assert response.choices[0].finish_reason == "stop"
    assert response.model == "gpt-4o"
    assert session.state is StreamState.COMPLETED
    assert len(bridge.requests) == 3
    assert set(bridge.requests) == {session.token}
    assert bridge.released == [session.token]


@pytest.mark.asyncio
async def test_deltas_concatenate_to_final_content(logger_service):
    parts = ["The ", "quick ", "brown ", "fox"]
    bridge = ScriptedBridge([chunk(p) for p in parts] + [done()])
    deltas = []

    result = await make_session(logger_service, bridge, deltas.append).run()

    assert "".join(d.content for d in deltas) == result.unwrap().choices[0].message.content


@pytest.mark.asyncio
async def test_async_sink_is_awaited_before_next_request(logger_service):
    bridge = ScriptedBridge([chunk("a"), chunk("b"), done()])
    seen = []

    async def sink(delta):
        requests_before = len(bridge.requests)
        await asyncio.sleep(0)
        seen.append((delta.content, requests_before, len(bridge.requests)))

    result = await make_session(logger_service, bridge, sink).run()

    assert result.ok
    # No chunk is requested while the sink is still running
    assert seen == [("a", 1, 1), ("b", 2, 2)]


@pytest.mark.asyncio
async def test_error_event_fails_session(logger_service):
    bridge = ScriptedBridge([chunk("Hel"), error("upstream exploded")])
    deltas = []
    session = make_session(logger_service, bridge, deltas.append)

    result = await session.run()

    assert not result.ok
    assert isinstance(result.error, StreamUpstreamError)
    assert result.error.message == "upstream exploded"
    assert session.state is StreamState.FAILED
    assert deltas == [StreamDelta(content="Hel")]
    assert len(bridge.requests) == 2


@pytest.mark.asyncio
async def test_timeout_stops_requesting(logger_service):
    bridge = ScriptedBridge([None, chunk("late"), done()])
    session = make_session(logger_service, bridge, lambda delta: None, timeout=0.05)

    result = await session.run()
    await asyncio.sleep(0.1)

    assert isinstance(result.error, StreamTimeoutError)
    assert result.error.message == "Streaming timeout"
    assert session.state is StreamState.TIMED_OUT
    assert len(bridge.requests) == 1


@pytest.mark.asyncio
async def test_timeout_is_per_wait(logger_service):
    bridge = ScriptedBridge([chunk("a"), chunk("b"), chunk("c"), done()])

    async def slow_sink(delta):
        await asyncio.sleep(0.03)

    result = await make_session(logger_service, bridge, slow_sink, timeout=0.05).run()

    assert result.unwrap().choices[0].message.content == "abc"


@pytest.mark.asyncio
async def test_events_for_other_tokens_are_ignored(logger_service):
    bridge = ScriptedBridge([stray_then(chunk("Hi")), stray_then(done())])
    deltas = []

    result = await make_session(logger_service, bridge, deltas.append).run()

    assert deltas == [StreamDelta(content="Hi")]
    assert result.unwrap().choices[0].message.content == "Hi"


@pytest.mark.asyncio
async def test_stray_events_do_not_reset_timeout(logger_service):
    bridge = ScriptedBridge([stray("noise")])
    session = make_session(logger_service, bridge, lambda delta: None, timeout=0.05)

    result = await session.run()

    assert isinstance(result.error, StreamTimeoutError)


@pytest.mark.asyncio
async def test_sink_exception_fails_session(logger_service):
    bridge = ScriptedBridge([chunk("a"), chunk("b"), done()])

    def sink(delta):
        raise RuntimeError("display closed")

    session = make_session(logger_service, bridge, sink)
    result = await session.run()

    assert isinstance(result.error, StreamUpstreamError)
    assert "display closed" in result.error.message
    assert session.state is StreamState.FAILED
    assert len(bridge.requests) == 1


@pytest.mark.asyncio
async def test_start_session_returns_before_delivery(logger_service):
    bridge = ScriptedBridge([None, done()])
    deltas = []
    session = make_session(logger_service, bridge, deltas.append)

    handle = start_session(session)

    assert not handle.done()
    assert handle.token == session.token
    await asyncio.sleep(0)
    assert handle.state is StreamState.REQUESTING

    session.channel.put_nowait(ChunkEvent(token=handle.token, content="late"))
    result = await handle.result()

    assert deltas == [StreamDelta(content="late")]
    assert result.unwrap().choices[0].message.content == "late"
    assert handle.done()


@pytest.mark.asyncio
async def test_tokens_are_unique_per_session(logger_service):
    bridge = ScriptedBridge([])
    first = make_session(logger_service, bridge, lambda delta: None)
    second = make_session(logger_service, bridge, lambda delta: None)

    assert first.token != second.token


@pytest.mark.asyncio
async def test_request_failure_leaves_terminal_state(logger_service):
    class FailingBridge(ScriptedBridge):
        def request_next_chunk(self, config, request, channel, token):
            super().request_next_chunk(config, request, channel, token)
            raise RequestConstructionError("Invalid stream request", field="messages")

    bridge = FailingBridge([])
    session = make_session(logger_service, bridge, lambda delta: None)

    result = await session.run()

    assert isinstance(result.error, RequestConstructionError)
    assert session.state is StreamState.FAILED
    assert session.state.is_terminal
    assert bridge.released == [session.token]


@pytest.mark.parametrize(
    "state, terminal",
    [
        (StreamState.IDLE, False),
        (StreamState.REQUESTING, False),
        (StreamState.DELIVERING, False),
        (StreamState.COMPLETED, True),
        (StreamState.FAILED, True),
        (StreamState.TIMED_OUT, True),
    ],
)
def test_terminal_states(state, terminal):
    assert state.is_terminal is terminal
