"""Public surface for impulse."""

from .endpoint import SUPPORTED_SCHEMES, Endpoint, parse_endpoint
from .errors import (
    ConnectError,
    DeserializationError,
    EmptyInputError,
    EmptyTransactionError,
    EndpointError,
    ExecutionError,
    HandshakeError,
    ImpulseError,
    MalformedInputError,
    MissingHostError,
    MissingPortError,
    MissingSchemeError,
    ReceiveError,
    ResponseMismatchError,
    SendError,
    SessionError,
    ShortReadError,
    ShortWriteError,
    TlsDisabledForPhaseError,
    TransactionError,
    UnsupportedSchemeError,
)
from .executor import MatchPolicy, TransactionExecutor
from .pipeline import Pipeline, PipelineOptions
from .transaction import Phase, Transaction, TransactionQueue
from .transport import TransportSession
from .types import ExecutionResult, PipelineResult, PipelineState
from .version import __version__

__all__ = [
    "__version__",
    "ConnectError",
    "DeserializationError",
    "EmptyInputError",
    "EmptyTransactionError",
    "Endpoint",
    "EndpointError",
    "ExecutionError",
    "ExecutionResult",
    "HandshakeError",
    "ImpulseError",
    "MalformedInputError",
    "MatchPolicy",
    "MissingHostError",
    "MissingPortError",
    "MissingSchemeError",
    "Phase",
    "Pipeline",
    "PipelineOptions",
    "PipelineResult",
    "PipelineState",
    "ReceiveError",
    "ResponseMismatchError",
    "SUPPORTED_SCHEMES",
    "SendError",
    "SessionError",
    "ShortReadError",
    "ShortWriteError",
    "TlsDisabledForPhaseError",
    "Transaction",
    "TransactionError",
    "TransactionExecutor",
    "TransactionQueue",
    "TransportSession",
    "UnsupportedSchemeError",
    "parse_endpoint",
]
