"""Transport session: one raw socket and, after an upgrade, the TLS layer on top."""

from __future__ import annotations

import socket
import ssl

from ..endpoint import Endpoint
from ..errors import ConnectError, HandshakeError
from ..logger import BoundLogger, create_logger
from .base import SOCKET_TYPES, Stream
from .tls import create_context, log_peer_chain, log_trust_store


class TransportSession:
    def __init__(
        self,
        endpoint: Endpoint,
        *,
        connect_timeout: float | None = None,
        io_timeout: float | None = None,
        verify: bool = True,
        cafile: str | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._connect_timeout = connect_timeout
        self._io_timeout = io_timeout
        self._verify = verify
        self._cafile = cafile
        self._logger = (logger or create_logger()).child("session")
        self._raw: socket.socket | None = None
        self._secure: ssl.SSLSocket | None = None

    @property
    def connected(self) -> bool:
        return self._raw is not None

    @property
    def secured(self) -> bool:
        return self._secure is not None

    @property
    def stream(self) -> Stream:
        """The stream transactions should use right now."""
        if self._secure is not None:
            return self._secure
        if self._raw is not None:
            return self._raw
        raise ConnectError(f"Impulse session to {self.endpoint} is not connected")

    def connect(self) -> None:
        prefix = "Impulse Net Connect"
        endpoint = self.endpoint
        self._logger.info("%s: connecting to %s", prefix, endpoint)
        try:
            self._raw = self._open_socket()
        except OSError as exc:
            self._logger.error("%s: failed to connect to %s: %s", prefix, endpoint, exc)
            raise ConnectError(f"Cannot connect to {endpoint}: {exc}") from exc
        self._logger.info("%s: connected to %s", prefix, endpoint)

    def upgrade(self) -> None:
        """Run the TLS handshake over the raw socket; no-op when TLS is disabled."""
        endpoint = self.endpoint
        if not endpoint.use_tls:
            return
        prefix = "Impulse TLS Handshake"
        if self._raw is None:
            raise HandshakeError(f"Cannot handshake with {endpoint.host}: not connected")
        if endpoint.scheme != "tcp":
            raise HandshakeError(f"Cannot handshake with {endpoint.host}: TLS is not supported over {endpoint.scheme}")

        self._logger.info("%s: handshaking with %s", prefix, endpoint.host)
        try:
            context = create_context(verify=self._verify, cafile=self._cafile)
        except (OSError, ssl.SSLError) as exc:
            self._logger.error("%s: failed to load trust store: %s", prefix, exc)
            raise HandshakeError(f"Cannot handshake with {endpoint.host}: {exc}") from exc
        log_trust_store(context, self._logger, prefix)

        try:
            secure = context.wrap_socket(
                self._raw,
                server_hostname=endpoint.host,
                do_handshake_on_connect=False,
            )
        except (OSError, ssl.SSLError, ValueError) as exc:
            self._logger.error("%s: failed to handshake with %s: %s", prefix, endpoint.host, exc)
            raise HandshakeError(f"Cannot handshake with {endpoint.host}: {exc}") from exc
        # wrap_socket detaches the raw socket; the TLS socket now owns the fd
        self._raw = secure

        try:
            secure.do_handshake()
        except (OSError, ssl.SSLError) as exc:
            self._logger.error("%s: failed to handshake with %s: %s", prefix, endpoint.host, exc)
            raise HandshakeError(f"Cannot handshake with {endpoint.host}: {exc}") from exc

        self._secure = secure
        self._logger.info(
            "%s: successfully completed handshake with %s (%s, %s)",
            prefix,
            endpoint.host,
            secure.version(),
            (secure.cipher() or ("unknown",))[0],
        )
        try:
            log_peer_chain(secure, self._logger)
        except (ssl.SSLError, ValueError) as exc:
            self._logger.warn("%s: cannot inspect peer certificates: %s", prefix, exc)

    def shutdown(self) -> None:
        prefix = "Impulse Shutdown"
        if self._secure is not None:
            self._logger.info("%s: closing tls connection to %s", prefix, self.endpoint.host)
            self._close(self._secure)
            if self._raw is self._secure:
                self._logger.info("%s: closing net connection to %s", prefix, self.endpoint)
                self._raw = None
            self._secure = None

        if self._raw is not None:
            self._logger.info("%s: closing net connection to %s", prefix, self.endpoint)
            self._close(self._raw)
            self._raw = None

    def _open_socket(self) -> socket.socket:
        endpoint = self.endpoint
        sock_type = SOCKET_TYPES[endpoint.scheme]
        last_error: OSError | None = None
        for family, type_, proto, _, address in socket.getaddrinfo(endpoint.host, endpoint.port, type=sock_type):
            sock = socket.socket(family, type_, proto)
            try:
                sock.settimeout(self._connect_timeout)
                if sock_type == socket.SOCK_STREAM:
                    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                sock.connect(address)
                sock.settimeout(self._io_timeout)
            except OSError as exc:
                last_error = exc
                sock.close()
                continue
            return sock
        raise last_error or OSError(f"no addresses found for {endpoint.host}")

    def _close(self, stream: socket.socket) -> None:
        try:
            stream.close()
        except OSError as exc:
            self._logger.warn("Impulse Shutdown: error while closing %s: %s", self.endpoint, exc)


__all__ = ["TransportSession"]
