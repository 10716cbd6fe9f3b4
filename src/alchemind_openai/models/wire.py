"""Wire-level models exchanged with the transport."""
import json
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field

# (filename, content, content type), the shape httpx expects for uploads
FileField = Tuple[str, bytes, str]


class TransportOptions(BaseModel):
    """Everything a transport needs besides the URL."""

    headers: Dict[str, str] = Field(default_factory=dict)
    json_body: Optional[Dict[str, Any]] = Field(
        None, description="JSON payload, mutually exclusive with multipart fields"
    )
    data: Optional[Dict[str, str]] = Field(None, description="Multipart form fields")
    files: Optional[Dict[str, FileField]] = Field(None, description="Multipart files")
    connect_timeout: Optional[float] = None
    receive_timeout: Optional[float] = None


class WireRequest(BaseModel):
    """Request ready to be handed to a transport."""

    operation: str
    url: str
    options: TransportOptions

    def payload_bytes(self) -> bytes:
        """Serialize the JSON payload exactly as it goes on the wire."""
        if self.options.json_body is None:
            return b""
        return json.dumps(self.options.json_body, separators=(",", ":")).encode()


class RawResponse(BaseModel):
    """Status and body as returned by a transport.

    ``body`` is decoded JSON for JSON responses, ``str`` for text responses and
    ``bytes`` for everything else.
    """

    status: int
    body: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)
