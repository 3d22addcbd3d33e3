"""Logging wrapper used by every impulse component.

Components never talk to :mod:`logging` directly; they take a
:class:`BoundLogger` and derive named children from it, so a caller can hand
in its own ``logging.Logger`` (or any object with ``trace``/``debug``/...
methods) and decide where run output ends up.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any, Callable, Literal, Protocol

LogLevel = Literal["trace", "debug", "info", "warn", "error"]

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

LOG_LEVELS: tuple[LogLevel, ...] = ("trace", "debug", "info", "warn", "error")

_PYTHON_LEVELS: dict[LogLevel, int] = {
    "trace": TRACE_LEVEL,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s %(message)s"
DEFAULT_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

# Longest payload rendered in full before it is cut short in log lines.
PAYLOAD_PREVIEW = 512


class LoggerProtocol(Protocol):
    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def warn(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


class BoundLogger:
    """Wraps a logging.Logger (or duck-typed object) with impulse's log levels."""

    def __init__(
        self,
        logger: Any | None = None,
        *,
        level: LogLevel = "info",
    ) -> None:
        self._logger = logger or default_logger()
        self._level = level
        self._threshold = LOG_LEVELS.index(level)

    @property
    def level(self) -> LogLevel:
        return self._level

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("trace", msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("debug", msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("info", msg, *args, **kwargs)

    def warn(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("warn", msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("error", msg, *args, **kwargs)

    def child(self, name: str) -> "BoundLogger":
        """Create a child logger anchored to the same Python logger."""
        if isinstance(self._logger, logging.Logger):
            base = self._logger.getChild(name)
        else:
            base = self._logger
        return BoundLogger(base, level=self._level)

    def _emit(self, level: LogLevel, msg: str, *args: Any, **kwargs: Any) -> None:
        if LOG_LEVELS.index(level) < self._threshold:
            return
        try:
            if hasattr(self._logger, "log"):
                self._logger.log(_PYTHON_LEVELS[level], msg, *args, **kwargs)
                return
            # Fall back to direct method invocation (duck typing)
            handler: Callable[..., Any] | None = getattr(self._logger, level, None)
            if handler:
                handler(msg, *args, **kwargs)
        except Exception:
            # A broken sink must not abort a run halfway through a transaction
            pass


def default_logger(stream: IO[str] | None = None) -> logging.Logger:
    """The ``impulse`` logger, given a timestamped stream handler on first use."""
    logger = logging.getLogger("impulse")
    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, DEFAULT_DATE_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(TRACE_LEVEL)
    return logger


def create_logger(*, logger: Any | None = None, level: LogLevel = "info") -> BoundLogger:
    if isinstance(logger, BoundLogger):
        return logger
    return BoundLogger(logger, level=level)


def format_payload(data: bytes, limit: int = PAYLOAD_PREVIEW) -> str:
    """Render raw bytes for a log line, escaping control characters."""
    if len(data) <= limit:
        return repr(data)
    return f"{data[:limit]!r}... ({len(data) - limit} more bytes)"


__all__ = [
    "BoundLogger",
    "LOG_LEVELS",
    "LogLevel",
    "LoggerProtocol",
    "TRACE_LEVEL",
    "create_logger",
    "default_logger",
    "format_payload",
]
