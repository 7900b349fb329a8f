"""
Shared fixtures: a throwaway CA, a client key pair signed by it, and
helpers for building canned HTTP responses.
"""

import io
import ipaddress
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
import requests
from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa


@dataclass
class PKI:
    """PEM text for a CA and a client key pair."""
    ca_cert: str
    client_cert: str
    client_key: str
    other_key: str
    server_cert: str
    server_key: str
    other_ca_cert: str


def _generate_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _key_pem(key: rsa.RSAPrivateKey) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def _cert_pem(cert: x509.Certificate) -> str:
    return cert.public_bytes(serialization.Encoding.PEM).decode()


def _build_cert(subject_cn, issuer_name, public_key, signing_key, is_ca, san=None):
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject_cn)]))
        .issuer_name(issuer_name)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
    )
    if san:
        builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)
    return builder.sign(signing_key, hashes.SHA256())


@pytest.fixture(scope="session")
def pki() -> PKI:
    ca_key = _generate_key()
    ca_name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Puppet CA: test")])
    ca_cert = _build_cert("Puppet CA: test", ca_name, ca_key.public_key(), ca_key, True)

    client_key = _generate_key()
    client_cert = _build_cert("admin", ca_cert.subject, client_key.public_key(), ca_key, False)

    server_key = _generate_key()
    server_cert = _build_cert(
        "localhost",
        ca_cert.subject,
        server_key.public_key(),
        ca_key,
        False,
        san=[x509.DNSName("localhost"), x509.IPAddress(ipaddress.ip_address("127.0.0.1"))],
    )

    other_ca_key = _generate_key()
    other_ca_name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Unrelated CA")])
    other_ca_cert = _build_cert("Unrelated CA", other_ca_name, other_ca_key.public_key(), other_ca_key, True)

    return PKI(
        ca_cert=_cert_pem(ca_cert),
        client_cert=_cert_pem(client_cert),
        client_key=_key_pem(client_key),
        other_key=_key_pem(_generate_key()),
        server_cert=_cert_pem(server_cert),
        server_key=_key_pem(server_key),
        other_ca_cert=_cert_pem(other_ca_cert),
    )


@pytest.fixture
def pki_files(pki, tmp_path):
    """The PKI written to disk; returns absolute paths."""
    paths = {}
    for name, content in (
        ("ca", pki.ca_cert),
        ("cert", pki.client_cert),
        ("key", pki.client_key),
    ):
        path = tmp_path / f"{name}.pem"
        path.write_text(content)
        paths[name] = str(path)
    return paths


def make_response(status_code: int, body: bytes = b"", reason: str = "OK") -> requests.Response:
    """Build a streamed requests.Response backed by an in-memory body."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.raw = io.BytesIO(body)
    return response
