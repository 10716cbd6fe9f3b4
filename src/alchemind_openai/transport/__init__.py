"""Transport implementations."""
from .base import FunctionTransport, SendFunction, Transport
from .http import HttpxTransport, decode_body

__all__ = [
    "FunctionTransport",
    "HttpxTransport",
    "SendFunction",
    "Transport",
    "decode_body",
]
