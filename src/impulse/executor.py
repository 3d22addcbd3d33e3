"""Send a transaction's request and verify the peer's response."""

from __future__ import annotations

import ssl
from enum import Enum

from .errors import (
    ExecutionError,
    ReceiveError,
    ResponseMismatchError,
    SendError,
    ShortReadError,
    ShortWriteError,
)
from .logger import BoundLogger, create_logger, format_payload
from .transaction import Transaction
from .transport.base import END_OF_STREAM_ERRORS, Stream
from .types import ExecutionResult

DEFAULT_BUFFER_SIZE = 1 * 1024 * 1024

# A TLS close_notify or a truncated TLS stream on read is end of stream.
_READ_EOF_ERRORS = (ssl.SSLZeroReturnError, ssl.SSLEOFError)


class MatchPolicy(Enum):
    """How received bytes are compared with the expected response."""

    PREFIX = "prefix"
    EXACT = "exact"

    def matches(self, expected: bytes, received: bytes) -> bool:
        if self is MatchPolicy.EXACT:
            return received == expected
        return received.startswith(expected)

    @property
    def verb(self) -> str:
        return "equal" if self is MatchPolicy.EXACT else "start with"


class TransactionExecutor:
    """Runs one transaction at a time against a stream it does not own."""

    def __init__(
        self,
        *,
        match_policy: MatchPolicy = MatchPolicy.PREFIX,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        logger: BoundLogger | None = None,
    ) -> None:
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self.match_policy = match_policy
        self.buffer_size = buffer_size
        self._logger = (logger or create_logger()).child("executor")

    def execute(self, stream: Stream, txn: Transaction) -> ExecutionResult:
        result = ExecutionResult(ok=True)
        try:
            if txn.request:
                self._send(stream, txn, result)
            if txn.response:
                self._receive(stream, txn, result)
        except ExecutionError as exc:
            self._logger.error("Impulse Transaction: %s", exc)
            result.ok = False
            result.error = exc
        return result

    def check_sent(self, sent: int, expected: int, *, end_of_stream: bool, response: bytes) -> None:
        """Classify the outcome of the send phase.

        A peer that closes after accepting the whole request is only a
        failure when a response is still expected.
        """
        if sent < expected:
            raise ShortWriteError(sent, expected)
        if end_of_stream and response:
            raise ShortReadError(0, len(response))

    def check_received(self, expected: bytes, received: bytes) -> None:
        if len(received) < len(expected):
            raise ShortReadError(len(received), len(expected))
        if not self.match_policy.matches(expected, received):
            raise ResponseMismatchError(expected, received, policy=self.match_policy.verb)

    def _send(self, stream: Stream, txn: Transaction, result: ExecutionResult) -> None:
        prefix = "Impulse Transaction"
        data = memoryview(txn.request)
        expected = len(data)
        sent = 0
        end_of_stream = False

        self._logger.debug("%s: sending %s", prefix, format_payload(txn.request))
        try:
            while sent < expected:
                n = stream.send(data[sent:])
                if n == 0:
                    end_of_stream = True
                    break
                sent += n
        except END_OF_STREAM_ERRORS as exc:
            self._logger.debug("%s: peer closed the stream while sending: %s", prefix, exc)
            end_of_stream = True
        except OSError as exc:
            result.bytes_sent = sent
            raise SendError(f"Impulse transaction failed on request: {exc}") from exc
        finally:
            self._logger.info("%s: sent %d of %d bytes", prefix, sent, expected)

        result.bytes_sent = sent
        self.check_sent(sent, expected, end_of_stream=end_of_stream, response=txn.response)

    def _receive(self, stream: Stream, txn: Transaction, result: ExecutionResult) -> None:
        prefix = "Impulse Transaction"
        expected = len(txn.response)
        bufsize = max(self.buffer_size, expected)

        self._logger.debug("%s: receiving up to %d bytes", prefix, bufsize)
        try:
            received = stream.recv(bufsize)
        except _READ_EOF_ERRORS:
            received = b""
        except OSError as exc:
            raise ReceiveError(f"Impulse transaction failed on response: {exc}") from exc

        result.received = received
        result.bytes_received = len(received)
        self._logger.info("%s: received %d of %d bytes", prefix, len(received), expected)
        if received:
            self._logger.debug("%s: received %s", prefix, format_payload(received))
        self.check_received(txn.response, received)


__all__ = ["DEFAULT_BUFFER_SIZE", "MatchPolicy", "TransactionExecutor"]
