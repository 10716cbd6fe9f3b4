"""Dependency injection container."""
from dependency_injector import containers, providers

from alchemind_openai.client import new
from alchemind_openai.core.logger import LoggerService
from alchemind_openai.core.settings import Settings
from alchemind_openai.mapper import OpenAIMapper
from alchemind_openai.streaming import HttpStreamBridge
from alchemind_openai.transport import HttpxTransport


class Container(containers.DeclarativeContainer):
    """Adapter container, builds a client from settings."""

    # Settings
    settings = providers.Singleton(Settings)

    # Core services
    logger = providers.Singleton(LoggerService, settings_instance=settings)

    # Request mapping, shared with the stream bridge
    mapper = providers.Singleton(
        OpenAIMapper,
        logger=logger,
        transcription_timeout=settings.provided.TRANSCRIPTION_TIMEOUT,
    )

    # Transports
    transport = providers.Singleton(
        HttpxTransport,
        logger=logger,
        timeout=settings.provided.PROVIDER_TIMEOUT,
    )
    bridge = providers.Singleton(
        HttpStreamBridge,
        logger=logger,
        mapper=mapper,
        timeout=settings.provided.PROVIDER_TIMEOUT,
    )

    # Client, returned as a Result so a missing key stays an explicit failure
    client = providers.Factory(
        new,
        api_key=settings.provided.OPENAI_API_KEY,
        base_url=settings.provided.OPENAI_BASE_URL,
        transport=transport,
        bridge=bridge,
        settings_instance=settings,
        logger=logger,
    )


container = Container()
