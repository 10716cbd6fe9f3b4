"""httpx-backed transport."""
from typing import Any, Optional

from httpx import AsyncClient, HTTPError, Response, Timeout

from alchemind_openai.core.logger import LoggerService
from ..models import RawResponse, TransportError, TransportOptions
from .base import Transport


def decode_body(response: Response) -> Any:
    """Decode a response body by its content type.

    JSON bodies become Python objects, text bodies become ``str`` and anything
    else (audio, octet streams) stays ``bytes``.
    """
    content_type = response.headers.get("content-type", "").lower()
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    if content_type.startswith("text/"):
        return response.text
    return response.content


class HttpxTransport(Transport):
    """Transport performing a single POST with ``httpx.AsyncClient``."""

    def __init__(
        self,
        logger: LoggerService,
        timeout: float = 30.0,
        client: Optional[AsyncClient] = None,
    ) -> None:
        """Initialize transport.

        Args:
            logger: Logger service instance
            timeout: Default timeout in seconds for every phase
            client: Preconfigured client, mostly for tests
        """
        self.logger = logger.get_logger(__name__)
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or AsyncClient(timeout=timeout)
        self.logger.info(
            "Initialized HttpxTransport",
            extra={"timeout": timeout, "client_id": id(self._client)},
        )

    def _timeout_for(self, options: TransportOptions) -> Timeout:
        return Timeout(
            self._timeout,
            connect=options.connect_timeout or self._timeout,
            read=options.receive_timeout or self._timeout,
        )

    async def send(self, url: str, options: TransportOptions) -> RawResponse:
        self.logger.debug(
            "Sending request",
            extra={
                "url": url,
                "has_json": options.json_body is not None,
                "has_files": bool(options.files),
            },
        )
        try:
            response = await self._client.post(
                url,
                headers=options.headers,
                json=options.json_body,
                data=options.data,
                files=options.files,
                timeout=self._timeout_for(options),
            )
        except HTTPError as e:
            self.logger.error(
                "HTTP transport error",
                extra={"url": url, "error": str(e), "error_type": type(e).__name__},
            )
            raise TransportError(e, url=url) from e

        self.logger.info(
            "Got response",
            extra={"url": url, "status_code": response.status_code},
        )
        return RawResponse(
            status=response.status_code,
            body=decode_body(response),
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        """Close HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
            self.logger.info("HTTP transport client closed")
