"""Custom exceptions raised by impulse."""

from __future__ import annotations

from typing import Any


class ImpulseError(Exception):
    """Base error for all impulse failures."""

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context


class EndpointError(ImpulseError):
    """Raised when an endpoint URL cannot be turned into an Endpoint."""


class EmptyInputError(EndpointError):
    """Raised when the endpoint URL is empty."""


class MalformedInputError(EndpointError):
    """Raised when the endpoint URL cannot be parsed."""


class MissingHostError(EndpointError):
    """Raised when the endpoint URL has no host name."""


class MissingPortError(EndpointError):
    """Raised when the endpoint URL has no port number."""


class MissingSchemeError(EndpointError):
    """Raised when the endpoint URL has no protocol."""


class UnsupportedSchemeError(EndpointError):
    """Raised when the endpoint URL names a protocol impulse cannot speak."""


class TransactionError(ImpulseError):
    """Raised when a transaction cannot be queued."""


class EmptyTransactionError(TransactionError):
    """Raised when both the request and the response are empty."""


class TlsDisabledForPhaseError(TransactionError):
    """Raised when a post-TLS transaction is queued with TLS disabled."""


class DeserializationError(TransactionError):
    """Raised when a serialized transaction cannot be decoded."""


class SessionError(ImpulseError):
    """Raised when the transport session cannot be established."""


class ConnectError(SessionError):
    """Raised when the connection to the endpoint fails."""


class HandshakeError(SessionError):
    """Raised when the TLS handshake or peer verification fails."""


class ExecutionError(ImpulseError):
    """Raised when a transaction does not complete as expected."""


class ShortWriteError(ExecutionError):
    """Raised when the stream ends before the whole request was written."""

    def __init__(self, sent: int, expected: int) -> None:
        super().__init__(
            f"Impulse transaction failed: sent {sent} of {expected} bytes",
            context={"sent": sent, "expected": expected},
        )
        self.sent = sent
        self.expected = expected


class SendError(ExecutionError):
    """Raised for write failures other than end of stream."""


class ShortReadError(ExecutionError):
    """Raised when fewer bytes than the expected response were received."""

    def __init__(self, received: int, expected: int) -> None:
        super().__init__(
            f"Impulse transaction failed: received {received} of {expected} bytes",
            context={"received": received, "expected": expected},
        )
        self.received = received
        self.expected = expected


class ResponseMismatchError(ExecutionError):
    """Raised when the received bytes do not match the expected response."""

    def __init__(self, expected: bytes, received: bytes, *, policy: str) -> None:
        super().__init__(
            f"Impulse transaction failed: received response does not {policy} expected response",
            context={"expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received


class ReceiveError(ExecutionError):
    """Raised for read failures other than end of stream."""


__all__ = [
    "ConnectError",
    "DeserializationError",
    "EmptyInputError",
    "EmptyTransactionError",
    "EndpointError",
    "ExecutionError",
    "HandshakeError",
    "ImpulseError",
    "MalformedInputError",
    "MissingHostError",
    "MissingPortError",
    "MissingSchemeError",
    "ReceiveError",
    "ResponseMismatchError",
    "SendError",
    "SessionError",
    "ShortReadError",
    "ShortWriteError",
    "TlsDisabledForPhaseError",
    "TransactionError",
    "UnsupportedSchemeError",
]
