import json

import pytest

from alchemind_openai.mapper import MIN_AUDIO_BYTES
from alchemind_openai.models import (
    ClientConfig,
    Message,
    RequestConstructionError,
    Role,
    SpeechRequest,
    TranscriptionRequest,
)

AUDIO = b"\x1aE\xdf\xa3" + b"\x00" * 60

MESSAGES = [
    {"role": "system", "content": "You are helpful"},
    {"role": "user", "content": "Hello"},
]


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(api_key="sk-test", base_url="https://api.openai.com/v1/")


def test_chat_payload_only_has_model_and_messages(mapper, config):
    request = mapper.to_completion_request(config, MESSAGES, {"model": "gpt-4o"})
    wire = mapper.map_chat_request(config, request)

    assert set(wire.options.json_body) == {"model", "messages"}
    assert wire.options.json_body["messages"] == MESSAGES
    assert b"null" not in wire.payload_bytes()


def test_chat_explicit_none_options_are_omitted(mapper, config):
    request = mapper.to_completion_request(
        config, MESSAGES, {"model": "gpt-4o", "temperature": None, "max_tokens": None}
    )

    assert set(mapper.map_chat_payload(request)) == {"model", "messages"}


def test_chat_payload_includes_sampling_options(mapper, config):
    request = mapper.to_completion_request(
        config, MESSAGES, {"model": "gpt-4o", "temperature": 0.0, "max_tokens": 64}
    )
    payload = mapper.map_chat_payload(request)

    assert payload["temperature"] == 0.0
    assert payload["max_tokens"] == 64


def test_chat_request_target_and_headers(mapper, config):
    request = mapper.to_completion_request(config, MESSAGES, {"model": "gpt-4o"})
    wire = mapper.map_chat_request(config, request)

    assert wire.url == "https://api.openai.com/v1/chat/completions"
    assert wire.options.headers == {
        "Authorization": "Bearer sk-test",
        "Content-Type": "application/json",
    }


def test_chat_request_is_deterministic(mapper, config):
    messages = [Message(role=Role.USER, content="Hi")]
    first = mapper.map_chat_request(
        config, mapper.to_completion_request(config, messages, {"model": "gpt-4o"})
    )
    second = mapper.map_chat_request(
        config, mapper.to_completion_request(config, messages, {"model": "gpt-4o"})
    )

    assert first.payload_bytes() == second.payload_bytes()
    assert first == second


def test_stream_payload_sets_stream_flag(mapper, config):
    request = mapper.to_completion_request(config, MESSAGES, {"model": "gpt-4o"})
    payload = mapper.map_chat_request(config, request, stream=True).options.json_body

    assert payload["stream"] is True


@pytest.mark.parametrize(
    "name, default_model, options, expected",
    [
        ("call site only", None, {"model": "gpt-4o"}, "gpt-4o"),
        ("client default only", "gpt-4o-mini", {}, "gpt-4o-mini"),
        ("call site wins", "gpt-4o-mini", {"model": "gpt-4o"}, "gpt-4o"),
    ],
)
def test_resolve_model(mapper, name, default_model, options, expected):
    config = ClientConfig(api_key="k", base_url="https://x", model=default_model)

    assert mapper.resolve_model(config, options) == expected, name


def test_missing_model_is_a_construction_error(mapper, config):
    with pytest.raises(RequestConstructionError) as exc_info:
        mapper.to_completion_request(config, MESSAGES, {})

    assert exc_info.value.details == {"field": "model"}
    assert "No model specified" in exc_info.value.message


def test_unknown_input_role_is_rejected(mapper, config):
    with pytest.raises(RequestConstructionError):
        mapper.to_completion_request(
            config, [{"role": "tool", "content": "x"}], {"model": "gpt-4o"}
        )


def test_transcription_defaults(mapper, config):
    wire = mapper.map_transcription_request(config, TranscriptionRequest(audio=AUDIO))

    assert wire.url == "https://api.openai.com/v1/audio/transcriptions"
    assert wire.options.headers == {"Authorization": "Bearer sk-test"}
    assert wire.options.data == {"model": "whisper-1", "response_format": "text"}
    assert wire.options.files == {"file": ("audio.webm", AUDIO, "audio/webm")}
    assert wire.options.connect_timeout == 60.0
    assert wire.options.receive_timeout == 60.0
    assert wire.options.json_body is None


def test_transcription_optional_fields(mapper, config):
    request = mapper.to_transcription_request(
        AUDIO,
        {"language": "en", "prompt": "names", "response_format": "json", "temperature": 0.2},
    )
    data = mapper.map_transcription_request(config, request).options.data

    assert data == {
        "model": "whisper-1",
        "response_format": "json",
        "language": "en",
        "prompt": "names",
        "temperature": "0.2",
    }


def test_transcription_rejects_tiny_audio(mapper, config):
    with pytest.raises(RequestConstructionError) as exc_info:
        mapper.map_transcription_request(
            config, TranscriptionRequest(audio=b"\x00" * (MIN_AUDIO_BYTES - 1))
        )

    assert exc_info.value.details == {"field": "audio"}


def test_speech_defaults(mapper, config):
    wire = mapper.map_speech_request(config, SpeechRequest(input="hello"))

    assert wire.url == "https://api.openai.com/v1/audio/speech"
    assert wire.options.headers["Content-Type"] == "application/json"
    assert json.loads(wire.payload_bytes()) == {
        "model": "gpt-4o-mini-tts",
        "input": "hello",
        "voice": "alloy",
        "response_format": "mp3",
    }


def test_speech_with_options(mapper, config):
    request = mapper.to_speech_request(
        "hello", {"voice": "nova", "response_format": "opus", "speed": 1.25, "model": None}
    )
    payload = mapper.map_speech_request(config, request).options.json_body

    assert payload["voice"] == "nova"
    assert payload["response_format"] == "opus"
    assert payload["speed"] == 1.25
    assert payload["model"] == "gpt-4o-mini-tts"


def test_speech_rejects_empty_input(mapper, config):
    with pytest.raises(RequestConstructionError):
        mapper.map_speech_request(config, SpeechRequest(input=""))


@pytest.mark.parametrize(
    "line, expected",
    [
        ("", None),
        (": keep-alive", None),
        ("data: [DONE]", {"event": "done"}),
        ('data: {"choices": []}', {"choices": []}),
        ("data: not json", None),
    ],
)
def test_parse_sse_line(mapper, line, expected):
    assert mapper.parse_sse_line(line) == expected


def test_extract_delta_content(mapper):
    assert mapper.extract_delta_content({"choices": [{"delta": {"content": "Hel"}}]}) == "Hel"
    assert mapper.extract_delta_content({"choices": [{"delta": {"role": "assistant"}}]}) is None
    assert mapper.extract_delta_content({"choices": []}) is None
