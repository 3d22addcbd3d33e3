"""Request/response transactions and the queue that orders them."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Union

from .errors import DeserializationError, EmptyTransactionError, TlsDisabledForPhaseError

Payload = Union[str, bytes, bytearray]


class Phase(Enum):
    PRE_TLS = "pre-tls"
    POST_TLS = "post-tls"

    @classmethod
    def from_flag(cls, before_tls: bool) -> "Phase":
        return cls.PRE_TLS if before_tls else cls.POST_TLS


@dataclass(frozen=True)
class Transaction:
    request: bytes
    response: bytes
    phase: Phase = Phase.PRE_TLS

    @property
    def is_receive_only(self) -> bool:
        return not self.request

    @property
    def is_send_only(self) -> bool:
        return not self.response


def to_bytes(payload: Payload | None) -> bytes:
    if payload is None:
        return b""
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return bytes(payload)


class TransactionQueue:
    """Pre-TLS and post-TLS transactions, kept in insertion order."""

    def __init__(self, *, use_tls: bool = False) -> None:
        self.use_tls = use_tls
        self._pre_tls: list[Transaction] = []
        self._post_tls: list[Transaction] = []

    @property
    def pre_tls(self) -> tuple[Transaction, ...]:
        return tuple(self._pre_tls)

    @property
    def post_tls(self) -> tuple[Transaction, ...]:
        return tuple(self._post_tls)

    def for_phase(self, phase: Phase) -> tuple[Transaction, ...]:
        return self.pre_tls if phase is Phase.PRE_TLS else self.post_tls

    def enqueue(self, phase: Phase, request: Payload | None, response: Payload | None) -> Transaction:
        request_bytes = to_bytes(request)
        response_bytes = to_bytes(response)
        # Either side may be empty but not both
        if not request_bytes and not response_bytes:
            raise EmptyTransactionError("Impulse transaction is empty")
        if phase is Phase.POST_TLS and not self.use_tls:
            raise TlsDisabledForPhaseError(
                "Impulse transaction cannot be added to request: TLS is disabled"
            )

        txn = Transaction(request=request_bytes, response=response_bytes, phase=phase)
        if phase is Phase.PRE_TLS:
            self._pre_tls.append(txn)
        else:
            self._post_tls.append(txn)
        return txn

    def enqueue_serialized(self, phase: Phase, text: str | bytes) -> Transaction:
        """Queue a transaction given as ``{"request": "...", "response": "..."}``."""
        request, response = parse_transaction(text)
        return self.enqueue(phase, request, response)

    def __iter__(self) -> Iterator[Transaction]:
        yield from self._pre_tls
        yield from self._post_tls

    def __len__(self) -> int:
        return len(self._pre_tls) + len(self._post_tls)


def parse_transaction(text: str | bytes) -> tuple[str, str]:
    try:
        parsed: Any = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DeserializationError(f"Impulse transaction failed JSON parser: {exc}") from exc

    if not isinstance(parsed, dict):
        raise DeserializationError(
            f"Impulse transaction failed JSON parser: expected an object, got {type(parsed).__name__}"
        )

    fields: list[str] = []
    for key in ("request", "response"):
        value = parsed.get(key)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise DeserializationError(
                f"Impulse transaction failed JSON parser: '{key}' must be a string, got {type(value).__name__}"
            )
        fields.append(value)
    return fields[0], fields[1]


__all__ = ["Payload", "Phase", "Transaction", "TransactionQueue", "parse_transaction", "to_bytes"]
