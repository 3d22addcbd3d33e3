import datetime
import ipaddress
import socket
import ssl
import threading
from dataclasses import dataclass
from typing import Callable, Iterator

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

Handler = Callable[[socket.socket], None]


class LoopbackPeer:
    """Accepts a single connection on 127.0.0.1 and hands it to ``handler``."""

    def __init__(self, handler: Handler) -> None:
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self._listener.settimeout(5.0)
        self.port: int = self._listener.getsockname()[1]
        self.accepted = 0
        self._handler = handler
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def url(self) -> str:
        return f"tcp://127.0.0.1:{self.port}"

    def _serve(self) -> None:
        try:
            conn, _ = self._listener.accept()
        except OSError:
            return
        self.accepted += 1
        with conn:
            conn.settimeout(5.0)
            self._handler(conn)

    def close(self) -> None:
        self._thread.join(timeout=5.0)
        self._listener.close()


@dataclass
class TlsCertificates:
    """A throwaway root CA and a ``127.0.0.1``/``localhost`` leaf it signed."""

    cafile: str
    certfile: str
    keyfile: str
    ca_der: bytes
    leaf_der: bytes

    def server_context(self) -> ssl.SSLContext:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(self.certfile, self.keyfile)
        return context


class RecordingLogger:
    """Collects rendered log lines; hand it to ``BoundLogger`` as the sink."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def log(self, level: int, msg: str, *args) -> None:
        self.messages.append(msg % args)

    def matching(self, prefix: str) -> list[str]:
        return [message for message in self.messages if message.startswith(prefix)]


def _name(common_name: str) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Impulse Tests"),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )


def _issue_certificates() -> tuple[x509.Certificate, x509.Certificate, ec.EllipticCurvePrivateKey]:
    now = datetime.datetime.now(datetime.timezone.utc)
    not_before = now - datetime.timedelta(minutes=5)
    not_after = now + datetime.timedelta(days=1)

    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_name = _name("Impulse Test Root")
    ca_ski = x509.SubjectKeyIdentifier.from_public_key(ca_key.public_key())
    ca_cert = (
        x509.CertificateBuilder()
        .subject_name(ca_name)
        .issuer_name(ca_name)
        .public_key(ca_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=False,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(ca_ski, critical=False)
        .sign(ca_key, hashes.SHA256())
    )

    leaf_key = ec.generate_private_key(ec.SECP256R1())
    leaf_cert = (
        x509.CertificateBuilder()
        .subject_name(_name("localhost"))
        .issuer_name(ca_name)
        .public_key(leaf_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .add_extension(
            x509.SubjectAlternativeName(
                [x509.DNSName("localhost"), x509.IPAddress(ipaddress.ip_address("127.0.0.1"))]
            ),
            critical=False,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(leaf_key.public_key()), critical=False)
        .add_extension(x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ca_ski), critical=False)
        .sign(ca_key, hashes.SHA256())
    )
    return ca_cert, leaf_cert, leaf_key


@pytest.fixture(scope="session")
def tls_certificates(tmp_path_factory) -> TlsCertificates:
    ca_cert, leaf_cert, leaf_key = _issue_certificates()
    directory = tmp_path_factory.mktemp("tls")
    cafile = directory / "ca.pem"
    certfile = directory / "cert.pem"
    keyfile = directory / "key.pem"
    cafile.write_bytes(ca_cert.public_bytes(serialization.Encoding.PEM))
    certfile.write_bytes(leaf_cert.public_bytes(serialization.Encoding.PEM))
    keyfile.write_bytes(
        leaf_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return TlsCertificates(
        cafile=str(cafile),
        certfile=str(certfile),
        keyfile=str(keyfile),
        ca_der=ca_cert.public_bytes(serialization.Encoding.DER),
        leaf_der=leaf_cert.public_bytes(serialization.Encoding.DER),
    )


@pytest.fixture
def starttls_server(tls_certificates: TlsCertificates) -> Callable[..., Handler]:
    """Builds a handler that answers plaintext ``STARTTLS``, upgrades, then serves ``replies``.

    Each request read over TLS is appended to ``received``.
    """

    def build(received: list[bytes], replies: list[bytes]) -> Handler:
        context = tls_certificates.server_context()

        def handler(conn: socket.socket) -> None:
            if conn.recv(1024) != b"STARTTLS\r\n":
                return
            conn.sendall(b"220 ready for tls\r\n")
            try:
                secure = context.wrap_socket(conn, server_side=True)
            except (OSError, ssl.SSLError):
                # client rejected the certificate
                return
            with secure:
                for reply in replies:
                    received.append(secure.recv(1024))
                    secure.sendall(reply)

        return handler

    return build


@pytest.fixture
def chain_length() -> int:
    """Certificates the client can see in the verified chain on this interpreter."""
    return 2 if hasattr(ssl.SSLSocket, "get_verified_chain") else 1


@pytest.fixture
def log_sink() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def loopback_peer() -> Iterator[Callable[[Handler], LoopbackPeer]]:
    peers: list[LoopbackPeer] = []

    def start(handler: Handler) -> LoopbackPeer:
        peer = LoopbackPeer(handler)
        peers.append(peer)
        return peer

    yield start
    for peer in peers:
        peer.close()


@pytest.fixture
def stream_pair() -> Iterator[tuple[socket.socket, socket.socket]]:
    client, server = socket.socketpair()
    client.settimeout(5.0)
    server.settimeout(5.0)
    yield client, server
    client.close()
    server.close()
