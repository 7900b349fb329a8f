"""
Puppet CA Client - Exception Classes
Custom exceptions for credential loading and CA API requests
"""

from typing import Optional


class PuppetCAError(Exception):
    """Base exception for all Puppet CA client errors"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


# =============================================================================
# Construction errors
# =============================================================================

class MismatchedCredentialFormError(PuppetCAError):
    """Raised when the client certificate and key are not both files or both strings"""

    def __init__(self, cert_form, key_form):
        if cert_form.is_file:
            message = "cert points to a file but key is a string"
        else:
            message = "cert is a string but key points to a file"
        super().__init__(message)
        self.cert_form = cert_form
        self.key_form = key_form


class CredentialLoadError(PuppetCAError):
    """Raised when the client key pair cannot be loaded"""

    def __init__(self, message: str, source: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.source = source


class CAReadError(PuppetCAError):
    """Raised when the CA certificate file cannot be read"""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        super().__init__(f"failed to load CA cert at {path}", cause)
        self.path = path


# =============================================================================
# Request errors
# =============================================================================

class URLConstructionError(PuppetCAError):
    """Raised when the request URL is malformed"""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        super().__init__(f"failed to parse URL {url}", cause)
        self.url = url


class TransportError(PuppetCAError):
    """Raised when the HTTP round-trip fails before a response arrives"""

    def __init__(self, method: str, url: str, cause: Optional[BaseException] = None):
        super().__init__(f"failed to {method} URL {url}", cause)
        self.method = method
        self.url = url


class UnexpectedStatusError(PuppetCAError):
    """Raised when the CA answers with anything but 200 or 204"""

    def __init__(self, method: str, url: str, status_code: int, status_line: str):
        super().__init__(f"failed to {method} URL {url}, got: {status_line}")
        self.method = method
        self.url = url
        self.status_code = status_code
        self.status_line = status_line


class BodyReadError(PuppetCAError):
    """Raised when the response body cannot be read"""

    def __init__(self, method: str, url: str, cause: Optional[BaseException] = None):
        super().__init__(f"failed to read body response from {url}", cause)
        self.method = method
        self.url = url


class CertificateOperationError(PuppetCAError):
    """Raised when a certificate_status operation fails"""

    def __init__(self, operation: str, name: str, cause: PuppetCAError):
        super().__init__(f"failed to {operation} certificate {name}: {cause}", cause)
        self.operation = operation
        self.name = name
