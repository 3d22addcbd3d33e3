"""TLS context creation and peer certificate inspection."""

from __future__ import annotations

import ssl
from typing import Iterable

from cryptography import x509

from ..logger import BoundLogger


def create_context(*, verify: bool = True, cafile: str | None = None) -> ssl.SSLContext:
    """Client context backed by the system trust store (or ``cafile``)."""
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=cafile)
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def log_trust_store(context: ssl.SSLContext, logger: BoundLogger, prefix: str) -> None:
    # Certificates found through a capath directory are loaded lazily and do
    # not show up here until the first handshake uses them.
    roots = context.get_ca_certs()
    logger.info("%s: found %d certificates in system certificate pool", prefix, len(roots))
    for index, cert in enumerate(roots, start=1):
        logger.trace("%s: certificate %3d subject: %s", prefix, index, format_name(cert.get("subject", ())))


def peer_chain(conn: ssl.SSLSocket) -> list[x509.Certificate]:
    """Certificates presented by the peer, leaf first.

    ``get_verified_chain`` (Python 3.13+) yields the whole verified chain as
    DER; older interpreters only expose the leaf certificate.
    """
    get_verified_chain = getattr(conn, "get_verified_chain", None)
    if get_verified_chain is not None:
        return [x509.load_der_x509_certificate(bytes(der)) for der in get_verified_chain() or []]
    leaf = conn.getpeercert(binary_form=True)
    return [x509.load_der_x509_certificate(leaf)] if leaf else []


def log_peer_chain(conn: ssl.SSLSocket, logger: BoundLogger) -> None:
    chain = peer_chain(conn)
    if not chain:
        logger.info("Peer presented no verified certificate details")
        return
    for cert_num, cert in enumerate(chain, start=1):
        logger.info("Chain 1, Certificate %d details:\n%s", cert_num, certificate_text(cert))


def certificate_text(cert: x509.Certificate) -> str:
    lines = [
        f"Subject: {cert.subject.rfc4514_string()}",
        f"Issuer: {cert.issuer.rfc4514_string()}",
        f"Serial Number: {cert.serial_number:X}",
        f"Validity: {cert.not_valid_before_utc:%Y-%m-%d %H:%M:%S} UTC - {cert.not_valid_after_utc:%Y-%m-%d %H:%M:%S} UTC",
    ]
    try:
        alt_names = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return "\n".join(lines)
    names = [f"DNS:{name}" for name in alt_names.get_values_for_type(x509.DNSName)]
    names += [f"IP:{address}" for address in alt_names.get_values_for_type(x509.IPAddress)]
    if names:
        lines.append("Subject Alternative Name: " + ", ".join(names))
    return "\n".join(lines)


def format_name(rdns: Iterable[Iterable[tuple[str, str]]]) -> str:
    """Render the nested RDN tuples used by ``get_ca_certs`` as ``key=value`` text."""
    return ", ".join(f"{key}={value}" for rdn in rdns for key, value in rdn)


__all__ = [
    "certificate_text",
    "create_context",
    "format_name",
    "log_peer_chain",
    "log_trust_store",
    "peer_chain",
]
