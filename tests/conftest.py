import pytest

from alchemind_openai.client import OpenAIClient, new
from alchemind_openai.core.logger import LoggerService
from alchemind_openai.core.settings import Settings
from alchemind_openai.mapper import OpenAIMapper
from alchemind_openai.normalizer import OpenAINormalizer
from tests.stubs import ScriptedBridge, StubTransport


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="",
        OPENAI_MODEL="",
        OPENAI_BASE_URL="https://api.openai.com/v1",
        STREAM_TIMEOUT=1.0,
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="text",
    )


@pytest.fixture
def logger_service(settings) -> LoggerService:
    return LoggerService(settings)


@pytest.fixture
def mapper(logger_service) -> OpenAIMapper:
    return OpenAIMapper(logger_service, transcription_timeout=60.0)


@pytest.fixture
def normalizer(logger_service) -> OpenAINormalizer:
    return OpenAINormalizer(logger_service)


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def bridge() -> ScriptedBridge:
    return ScriptedBridge([])


@pytest.fixture
def client(settings, logger_service, transport, bridge) -> OpenAIClient:
    return new(
        api_key="test-key",
        transport=transport,
        bridge=bridge,
        settings_instance=settings,
        logger=logger_service,
    ).unwrap()


@pytest.fixture
def chat_body() -> dict:
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1677652288,
        "model": "gpt-4o",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "Hello there!"},
                "finish_reason": "stop",
            }
        ],
    }
