"""Transport layer: the session that owns sockets and the stream contract."""

from .base import END_OF_STREAM_ERRORS, SOCKET_TYPES, Stream
from .session import TransportSession

__all__ = [
    "END_OF_STREAM_ERRORS",
    "SOCKET_TYPES",
    "Stream",
    "TransportSession",
]
