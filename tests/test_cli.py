import json
import socket

import pytest

from impulse import __version__
from impulse.cli import DEFAULT_REQUEST, build_parser, main


def test_version_flag(capsys) -> None:
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == f"impulse version {__version__}"


def test_missing_url_prints_usage(capsys) -> None:
    assert main([]) == 2
    assert "usage:" in capsys.readouterr().err


def test_invalid_url_fails() -> None:
    assert main(["--url", "smb://host:139", "--log-level", "error"]) == 1


def test_post_tls_transaction_requires_tls_flag() -> None:
    txn = json.dumps({"request": "a", "response": "b"})
    assert main(["--url", "tcp://127.0.0.1:1", "--post", txn, "--log-level", "error"]) == 1


def test_malformed_transaction_fails() -> None:
    assert main(["--url", "tcp://127.0.0.1:1", "--pre", "{oops", "--log-level", "error"]) == 1


def test_non_positive_buffer_size_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--url", "tcp://127.0.0.1:1", "--buffer-size", "0"])
    assert excinfo.value.code == 2


def test_scripted_transactions_succeed(loopback_peer) -> None:
    def server(conn: socket.socket) -> None:
        assert conn.recv(1024) == b"PING\r\n"
        conn.sendall(b"PONG\r\n")

    peer = loopback_peer(server)
    txn = json.dumps({"request": "PING\r\n", "response": "PONG"})
    assert main(["--url", peer.url, "--pre", txn, "--timeout", "5", "--log-level", "error"]) == 0


def test_default_transaction_is_sent_without_transactions(loopback_peer) -> None:
    seen: list[bytes] = []

    def server(conn: socket.socket) -> None:
        seen.append(conn.recv(1024))
        conn.sendall(b"HTTP/1.1 200 OK\r\n\r\n<html></html>")

    peer = loopback_peer(server)
    assert main(["--url", peer.url, "--timeout", "5", "--log-level", "error"]) == 0
    assert seen == [DEFAULT_REQUEST.encode()]


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["--url", "tcp://host:1"])
    assert args.tls is False
    assert args.match == "prefix"
    assert args.pre == []
    assert args.timeout is None
