"""Result types shared by the executor and the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ImpulseError


class PipelineState(Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    PRE_TLS_DONE = "pre-tls-done"
    SECURE_DONE = "secure-done"
    POST_TLS_DONE = "post-tls-done"
    SHUT_DOWN = "shut-down"


@dataclass
class ExecutionResult:
    ok: bool
    error: ImpulseError | None = None
    bytes_sent: int = 0
    bytes_received: int = 0
    received: bytes = b""


@dataclass
class PipelineResult:
    ok: bool
    reached: PipelineState = PipelineState.IDLE
    error: ImpulseError | None = None


__all__ = ["ExecutionResult", "PipelineResult", "PipelineState"]
