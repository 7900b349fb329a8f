"""
Puppet CA Client
Client SDK for certificate lookup, signing and revocation against a Puppet CA
"""

from .client import PuppetCAClient, MTLSAdapter
from .credentials import classify, load_tls_material
from .logging_config import configure_logging
from .models import (
    ClientSettings,
    CredentialForm,
    TLSMaterial,
)
from .exceptions import (
    PuppetCAError,
    MismatchedCredentialFormError,
    CredentialLoadError,
    CAReadError,
    URLConstructionError,
    TransportError,
    UnexpectedStatusError,
    BodyReadError,
    CertificateOperationError,
)

__version__ = "1.0.0"
__all__ = [
    "PuppetCAClient",
    "MTLSAdapter",
    "classify",
    "load_tls_material",
    "configure_logging",
    "ClientSettings",
    "CredentialForm",
    "TLSMaterial",
    "PuppetCAError",
    "MismatchedCredentialFormError",
    "CredentialLoadError",
    "CAReadError",
    "URLConstructionError",
    "TransportError",
    "UnexpectedStatusError",
    "BodyReadError",
    "CertificateOperationError",
]
