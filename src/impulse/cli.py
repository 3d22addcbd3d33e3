"""Command line front end: ``impulse --url tcp://host:port [--tls] ...``."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from .errors import ImpulseError
from .executor import DEFAULT_BUFFER_SIZE, MatchPolicy
from .logger import LOG_LEVELS, create_logger
from .pipeline import Pipeline, PipelineOptions
from .version import __version__

APP_NAME = "impulse"

DEFAULT_REQUEST = "GET /index.html HTTP/1.1\r\n\r\n"
DEFAULT_RESPONSE = "HTTP/1.1 200 OK\r\n\r\n"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Send scripted request/response transactions to a server, optionally upgrading to TLS.",
    )
    parser.add_argument("--url", default="", help="URL of server to receive impulse (e.g., tcp://127.0.0.1:443)")
    parser.add_argument("--tls", action="store_true", help="enable TLS")
    parser.add_argument(
        "--pre",
        action="append",
        default=[],
        metavar="JSON",
        help='transaction to run before the TLS handshake, e.g. \'{"request": "...", "response": "..."}\'',
    )
    parser.add_argument(
        "--post",
        action="append",
        default=[],
        metavar="JSON",
        help="transaction to run after the TLS handshake (requires --tls)",
    )
    parser.add_argument(
        "--match",
        choices=[policy.value for policy in MatchPolicy],
        default=MatchPolicy.PREFIX.value,
        help="how received bytes are compared with the expected response",
    )
    parser.add_argument("--buffer-size", type=int, default=DEFAULT_BUFFER_SIZE, help="receive buffer size in bytes")
    parser.add_argument("--timeout", type=float, default=None, help="connect and I/O timeout in seconds")
    parser.add_argument("--insecure", action="store_true", help="do not verify the peer certificate")
    parser.add_argument("--cafile", default=None, help="CA bundle to verify the peer with instead of the system store")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="debug")
    parser.add_argument("--version", action="store_true", help="print version information")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"{APP_NAME} version {__version__}")
        return 0
    if not args.url:
        parser.print_usage(sys.stderr)
        return 2
    if args.buffer_size <= 0:
        parser.error("--buffer-size must be positive")

    logger = create_logger(level=args.log_level)
    options = PipelineOptions(
        match_policy=MatchPolicy(args.match),
        buffer_size=args.buffer_size,
        connect_timeout=args.timeout,
        io_timeout=args.timeout,
        verify=not args.insecure,
        cafile=args.cafile,
    )
    try:
        pipeline = Pipeline(args.url, use_tls=args.tls, options=options, logger=logger)
        for text in args.pre:
            pipeline.add_serialized_transaction(True, text)
        for text in args.post:
            pipeline.add_serialized_transaction(False, text)
        if not args.pre and not args.post:
            pipeline.add_transaction(not args.tls, DEFAULT_REQUEST, DEFAULT_RESPONSE)
        pipeline.send()
    except ImpulseError as exc:
        logger.error("%s", exc)
        return 1
    return 0


__all__ = ["build_parser", "main"]
