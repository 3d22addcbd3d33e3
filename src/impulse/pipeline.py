"""Pipeline controller: connect, pre-TLS transactions, upgrade, post-TLS transactions, shutdown."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .endpoint import Endpoint, parse_endpoint
from .errors import ExecutionError, ImpulseError
from .executor import DEFAULT_BUFFER_SIZE, MatchPolicy, TransactionExecutor
from .logger import BoundLogger, LogLevel, create_logger
from .transaction import Payload, Phase, Transaction, TransactionQueue
from .transport import TransportSession
from .types import PipelineResult, PipelineState


@dataclass
class PipelineOptions:
    match_policy: MatchPolicy = MatchPolicy.PREFIX
    buffer_size: int = DEFAULT_BUFFER_SIZE
    connect_timeout: float | None = None
    io_timeout: float | None = None
    verify: bool = True
    cafile: str | None = None


class Pipeline:
    """Primary entry point: queue transactions, then ``send()`` them to one endpoint."""

    # state -> (next state, step that gets there)
    TRANSITIONS: dict[PipelineState, tuple[PipelineState, Callable[["Pipeline"], None]]] = {}

    def __init__(
        self,
        endpoint: Endpoint | str,
        *,
        use_tls: bool = False,
        options: PipelineOptions | None = None,
        session: TransportSession | None = None,
        executor: TransactionExecutor | None = None,
        logger: object | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        if isinstance(endpoint, str):
            endpoint = parse_endpoint(endpoint, use_tls)
        self.endpoint = endpoint
        self.options = options or PipelineOptions()
        self._logger: BoundLogger = create_logger(logger=logger, level=log_level)
        self._pipeline_logger = self._logger.child("pipeline")
        self._session = session or TransportSession(
            endpoint,
            connect_timeout=self.options.connect_timeout,
            io_timeout=self.options.io_timeout,
            verify=self.options.verify,
            cafile=self.options.cafile,
            logger=self._logger,
        )
        self._executor = executor or TransactionExecutor(
            match_policy=self.options.match_policy,
            buffer_size=self.options.buffer_size,
            logger=self._logger,
        )
        self.queue = TransactionQueue(use_tls=endpoint.use_tls)
        self._state = PipelineState.IDLE
        self._reached = PipelineState.IDLE

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def reached(self) -> PipelineState:
        """Last state completed before the most recent shutdown."""
        return self._reached

    def add_transaction(self, before_tls: bool, request: Payload | None, response: Payload | None) -> Transaction:
        return self.queue.enqueue(Phase.from_flag(before_tls), request, response)

    def add_serialized_transaction(self, before_tls: bool, text: str | bytes) -> Transaction:
        return self.queue.enqueue_serialized(Phase.from_flag(before_tls), text)

    def send(self) -> None:
        result = self.send_safe()
        if not result.ok:
            raise result.error or ImpulseError("Impulse send failed")

    def send_safe(self) -> PipelineResult:
        self._state = PipelineState.IDLE
        self._reached = PipelineState.IDLE
        error: ImpulseError | None = None
        try:
            while self._state in self.TRANSITIONS:
                next_state, step = self.TRANSITIONS[self._state]
                step(self)
                self._state = next_state
                self._reached = next_state
        except ImpulseError as exc:
            self._pipeline_logger.error("Impulse Send: failed after %s: %s", self._state.value, exc)
            error = exc
        finally:
            self._session.shutdown()
            self._state = PipelineState.SHUT_DOWN

        return PipelineResult(ok=error is None, reached=self._reached, error=error)

    def _connect(self) -> None:
        self._session.connect()

    def _run_pre_tls(self) -> None:
        self._run_phase(Phase.PRE_TLS, "Impulse Pre-TLS Handshake")

    def _upgrade(self) -> None:
        self._session.upgrade()

    def _run_post_tls(self) -> None:
        self._run_phase(Phase.POST_TLS, "Impulse Post-TLS Handshake")

    def _run_phase(self, phase: Phase, prefix: str) -> None:
        for index, txn in enumerate(self.queue.for_phase(phase), start=1):
            self._pipeline_logger.info("%s: executing transaction %d", prefix, index)
            # secured stream once upgraded, raw stream otherwise
            result = self._executor.execute(self._session.stream, txn)
            if not result.ok:
                raise result.error or ExecutionError(f"Impulse transaction {index} failed")


Pipeline.TRANSITIONS = {
    PipelineState.IDLE: (PipelineState.CONNECTED, Pipeline._connect),
    PipelineState.CONNECTED: (PipelineState.PRE_TLS_DONE, Pipeline._run_pre_tls),
    PipelineState.PRE_TLS_DONE: (PipelineState.SECURE_DONE, Pipeline._upgrade),
    PipelineState.SECURE_DONE: (PipelineState.POST_TLS_DONE, Pipeline._run_post_tls),
}


__all__ = ["Pipeline", "PipelineOptions"]
