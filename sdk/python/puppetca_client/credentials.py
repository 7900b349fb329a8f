"""
Puppet CA Client - Credential Resolver
Loads the client key pair and CA trust pool from file paths or inline PEM text
"""

import os
import re
import ssl
import tempfile

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from urllib3.util.ssl_ import create_urllib3_context

from .exceptions import (
    CAReadError,
    CredentialLoadError,
    MismatchedCredentialFormError,
)
from .models import CredentialForm, TLSMaterial

logger = structlog.get_logger(__name__)

PEM_MARKERS = ("-BEGIN CERTIFICATE-", "-BEGIN RSA PRIVATE KEY-")
PATH_SUFFIXES = (".pem", ".cer", ".key")
PATH_PREFIXES = ("/", "./", "../")

_PEM_CERT_BLOCK = re.compile(
    rb"-----BEGIN CERTIFICATE-----.+?-----END CERTIFICATE-----",
    re.DOTALL,
)


def classify(value: str) -> CredentialForm:
    """
    Decide whether a credential string is a file path or inline PEM.

    PEM markers win over any path-like shape. Strings that match neither
    a marker nor a path pattern are treated as inline content.
    """
    if any(marker in value for marker in PEM_MARKERS):
        return CredentialForm.INLINE_CONTENT
    if value.endswith(PATH_SUFFIXES) or value.startswith(PATH_PREFIXES):
        return CredentialForm.FILE_PATH
    # Neither PEM nor path-like; loading will most likely fail later
    logger.warning("credential_form_fallback", form=CredentialForm.INLINE_CONTENT.value)
    return CredentialForm.INLINE_CONTENT


def _no_passphrase() -> bytes:
    # Encrypted keys fail to load instead of prompting on the terminal
    return b""


def _load_key_pair(ctx: ssl.SSLContext, cert: str, key: str, form: CredentialForm) -> None:
    """Load the client certificate and its private key into the context."""
    if form.is_file:
        try:
            ctx.load_cert_chain(certfile=cert, keyfile=key, password=_no_passphrase)
        except OSError as e:
            raise CredentialLoadError(
                f"failed to load client cert from file {cert}: {e}",
                source=cert,
                cause=e,
            ) from e
        logger.debug("client_cert_loaded", form=form.value, cert_path=cert, key_path=key)
        return

    # The ssl module only reads key pairs from disk
    try:
        with tempfile.TemporaryDirectory(prefix="puppetca-") as tmp:
            cert_file = os.path.join(tmp, "cert.pem")
            key_file = os.path.join(tmp, "key.pem")
            with open(cert_file, "w") as f:
                f.write(cert)
            fd = os.open(key_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "w") as f:
                f.write(key)
            ctx.load_cert_chain(certfile=cert_file, keyfile=key_file, password=_no_passphrase)
    except OSError as e:
        raise CredentialLoadError(
            f"failed to load client cert from string: {e}",
            source="string",
            cause=e,
        ) from e
    logger.debug("client_cert_loaded", form=form.value)


def _read_ca(ca: str) -> tuple[bytes, CredentialForm]:
    form = classify(ca)
    if not form.is_file:
        return ca.encode(), form
    try:
        with open(ca, "rb") as f:
            return f.read(), form
    except OSError as e:
        raise CAReadError(ca, cause=e) from e


def append_certs_from_pem(ctx: ssl.SSLContext, pem: bytes) -> int:
    """
    Add every parsable CA certificate in the PEM data to the trust pool.

    Blocks that fail to parse are skipped. Returns the number of
    certificates added, which may be zero.
    """
    count = 0
    for block in _PEM_CERT_BLOCK.findall(pem):
        try:
            cert = x509.load_pem_x509_certificate(block)
        except ValueError:
            logger.debug("ca_cert_block_skipped")
            continue
        try:
            ctx.load_verify_locations(cadata=cert.public_bytes(serialization.Encoding.DER))
        except ssl.SSLError:
            logger.debug("ca_cert_block_rejected", subject=cert.subject.rfc4514_string())
            continue
        count += 1
    return count


def create_ssl_context(insecure_skip_verify: bool = False) -> ssl.SSLContext:
    """Create an empty client context; verification is off only in insecure mode."""
    if insecure_skip_verify:
        return create_urllib3_context(cert_reqs=ssl.CERT_NONE)
    return create_urllib3_context(cert_reqs=ssl.CERT_REQUIRED)


def load_tls_material(
    key: str,
    cert: str,
    ca: str,
    insecure_skip_verify: bool = False,
) -> TLSMaterial:
    """
    Build the TLS material for a Puppet CA client.

    Args:
        key: Client private key, as a path or inline PEM
        cert: Client certificate, as a path or inline PEM
        ca: CA certificate bundle, as a path or inline PEM
        insecure_skip_verify: Disable server certificate verification (testing only)

    Returns:
        TLSMaterial wrapping a ready-to-use SSL context

    Raises:
        MismatchedCredentialFormError: cert and key are not supplied the same way
        CredentialLoadError: the key pair cannot be loaded
        CAReadError: the CA file cannot be read
    """
    cert_form = classify(cert)
    key_form = classify(key)
    if cert_form is not key_form:
        raise MismatchedCredentialFormError(cert_form, key_form)

    ctx = create_ssl_context(insecure_skip_verify)
    _load_key_pair(ctx, cert, key, cert_form)

    ca_pem, ca_form = _read_ca(ca)
    ca_count = append_certs_from_pem(ctx, ca_pem)
    if ca_count == 0:
        logger.warning("ca_trust_pool_empty", form=ca_form.value)

    if insecure_skip_verify:
        logger.warning("tls_verification_disabled")

    return TLSMaterial(
        ssl_context=ctx,
        credential_form=cert_form,
        ca_form=ca_form,
        ca_cert_count=ca_count,
    )
