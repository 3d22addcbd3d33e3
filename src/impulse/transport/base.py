"""Common transport abstractions."""

from __future__ import annotations

import socket
import ssl
from typing import Protocol, runtime_checkable

from ..endpoint import Scheme


SOCKET_TYPES: dict[Scheme, int] = {
    "tcp": socket.SOCK_STREAM,
    "udp": socket.SOCK_DGRAM,
}

# Errors that mean the peer is gone rather than that the write itself failed.
END_OF_STREAM_ERRORS: tuple[type[BaseException], ...] = (
    BrokenPipeError,
    ConnectionResetError,
    ConnectionAbortedError,
    ssl.SSLEOFError,
    ssl.SSLZeroReturnError,
)


@runtime_checkable
class Stream(Protocol):
    """The part of a socket the executor needs; plain and TLS sockets both fit."""

    def send(self, data: bytes) -> int: ...

    def recv(self, bufsize: int) -> bytes: ...

    def close(self) -> None: ...


__all__ = ["END_OF_STREAM_ERRORS", "SOCKET_TYPES", "Stream"]
