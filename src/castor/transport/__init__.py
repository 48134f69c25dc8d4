"""Transport layer: HTTP client, SSE decoding and the JSON codec."""

from .base import Transport
from .codec import WireCodec
from .http import HttpTransport
from .sse import decode_sse

__all__ = [
    "HttpTransport",
    "Transport",
    "WireCodec",
    "decode_sse",
]
