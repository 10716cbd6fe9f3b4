"""Transport port."""
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from ..models import RawResponse, TransportOptions


class Transport(ABC):
    """One request/response exchange with the upstream API.

    Implementations return whatever status the upstream answered with and
    raise ``TransportError`` only when no status is available at all.
    """

    @abstractmethod
    async def send(self, url: str, options: TransportOptions) -> RawResponse:
        """Perform one exchange.

        Args:
            url: Absolute target URL
            options: Headers, payload and timeouts

        Returns:
            Raw status and decoded body

        Raises:
            TransportError: If the exchange itself failed
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release transport resources."""


SendFunction = Callable[[str, TransportOptions], Awaitable[RawResponse]]


class FunctionTransport(Transport):
    """Transport backed by a plain coroutine function."""

    def __init__(self, send: SendFunction) -> None:
        self._send = send

    async def send(self, url: str, options: TransportOptions) -> RawResponse:
        return await self._send(url, options)
