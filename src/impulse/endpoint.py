"""Endpoint URL validation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlsplit

from .errors import (
    EmptyInputError,
    MalformedInputError,
    MissingHostError,
    MissingPortError,
    MissingSchemeError,
    UnsupportedSchemeError,
)

Scheme = Literal["tcp", "udp"]

SUPPORTED_SCHEMES: frozenset[str] = frozenset({"tcp", "udp"})


@dataclass(frozen=True)
class Endpoint:
    scheme: Scheme
    host: str
    port: int
    use_tls: bool = False
    url: str = ""

    @property
    def address(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.url or f"{self.scheme}://{self.address}"


def parse_endpoint(url: str, use_tls: bool = False) -> Endpoint:
    """Validate ``scheme://host:port`` and return the matching Endpoint.

    Checks run in a fixed order and the first failure wins: empty input,
    malformed input, missing host, missing port, missing scheme, and finally
    an unsupported scheme.
    """
    if not url:
        raise EmptyInputError("Impulse URL is empty")

    if url != url.strip() or any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url):
        raise MalformedInputError(
            f"Impulse URL, '{url}', cannot be parsed: contains whitespace or control characters"
        )
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise MalformedInputError(f"Impulse URL, '{url}', cannot be parsed: {exc}") from exc

    if not parts.hostname:
        raise MissingHostError(f"Impulse URL, '{url}', is missing a hostname")
    if port is None:
        raise MissingPortError(f"Impulse URL, '{url}', is missing a port number")
    if not parts.scheme:
        raise MissingSchemeError(f"Impulse URL, '{url}', is missing a protocol")
    scheme = parts.scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        raise UnsupportedSchemeError(f"Impulse URL, '{url}', contains an unsupported protocol")

    return Endpoint(scheme=scheme, host=parts.hostname, port=port, use_tls=use_tls, url=url)  # type: ignore[arg-type]


__all__ = ["Endpoint", "SUPPORTED_SCHEMES", "Scheme", "parse_endpoint"]
