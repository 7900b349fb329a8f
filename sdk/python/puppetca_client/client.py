"""
Puppet CA Client - Main Client
Authenticated access to the Puppet CA certificate_status API
"""

from typing import Optional

import requests
import structlog
from requests.adapters import HTTPAdapter

from .credentials import load_tls_material
from .exceptions import (
    PuppetCAError,
    URLConstructionError,
    TransportError,
    UnexpectedStatusError,
    BodyReadError,
    CertificateOperationError,
)
from .models import ClientSettings

logger = structlog.get_logger(__name__)

API_PREFIX = "puppet-ca/v1"
PSON_CONTENT_TYPE = "text/pson"
SIGN_PAYLOAD = '{"desired_state":"signed"}'
SUCCESS_STATUSES = (requests.codes.ok, requests.codes.no_content)
USER_AGENT = "puppetca-client/1.0"


class MTLSAdapter(HTTPAdapter):
    """
    HTTP adapter for mutual TLS authentication.
    Every pool it creates uses the prepared client SSL context.
    """

    def __init__(self, ssl_context, **kwargs):
        self._ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["ssl_context"] = self._ssl_context
        return super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args, **kwargs):
        kwargs["ssl_context"] = self._ssl_context
        return super().proxy_manager_for(*args, **kwargs)

    def cert_verify(self, conn, url, verify, cert):
        super().cert_verify(conn, url, verify, cert)
        # Trust pool comes from the SSL context only, never the default bundle
        conn.ca_certs = None
        conn.ca_cert_dir = None


class PuppetCAClient:
    """
    Client for the Puppet CA HTTP API.

    Usage:
        client = PuppetCAClient(
            "https://puppet:8140",
            key="/etc/puppetlabs/puppet/ssl/private_keys/admin.pem",
            cert="/etc/puppetlabs/puppet/ssl/certs/admin.pem",
            ca="/etc/puppetlabs/puppet/ssl/certs/ca.pem",
        )

        # Look up a node certificate
        print(client.get_cert_by_name("node1.example.com"))

        # Sign a pending request, or revoke and remove a certificate
        client.sign_cert_by_name("node2.example.com")
        client.delete_cert_by_name("node3.example.com")

        client.close()
    """

    def __init__(
        self,
        base_url: str,
        key: str,
        cert: str,
        ca: str,
        insecure_skip_verify: bool = False,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the Puppet CA client.

        Args:
            base_url: CA server URL, e.g. https://puppet:8140
            key: Client private key, as a path or inline PEM
            cert: Client certificate, as a path or inline PEM
            ca: CA certificate, as a path or inline PEM
            insecure_skip_verify: Skip server certificate verification (testing only)
            timeout: Per-request timeout in seconds, None for no timeout
        """
        material = load_tls_material(key, cert, ca, insecure_skip_verify)

        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.trust_env = False
        self._session.verify = not insecure_skip_verify
        self._session.mount("https://", MTLSAdapter(material.ssl_context))
        self._session.headers.update({"User-Agent": USER_AGENT})

        logger.info(
            "puppetca_client_ready",
            base_url=self._base_url,
            credential_form=material.credential_form.value,
            ca_certs=material.ca_cert_count,
        )

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "PuppetCAClient":
        """Create a client from a ClientSettings object"""
        return cls(
            settings.base_url,
            key=settings.key,
            cert=settings.cert,
            ca=settings.ca,
            insecure_skip_verify=settings.insecure_skip_verify,
            timeout=settings.timeout,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    # =========================================================================
    # Generic requests
    # =========================================================================

    def url_for(self, path: str) -> str:
        """Full URL of a resource below the CA API prefix"""
        return f"{self._base_url}/{API_PREFIX}/{path}"

    def request(self, method: str, path: str, payload: str = "") -> str:
        """
        Make an authenticated request to the CA API.

        Args:
            method: HTTP method
            path: Resource path relative to /puppet-ca/v1/
            payload: PSON request body, empty for none

        Returns:
            Response body as text

        Raises:
            URLConstructionError: The URL could not be built
            TransportError: The request could not be sent
            UnexpectedStatusError: Status other than 200 or 204
            BodyReadError: The response body could not be read
        """
        if self._session is None:
            raise PuppetCAError("client is closed")

        url = self.url_for(path)

        headers = {}
        data = None
        if payload:
            headers["Content-Type"] = PSON_CONTENT_TYPE
            data = payload.encode("utf-8")

        try:
            prepared = self._session.prepare_request(
                requests.Request(method, url, headers=headers, data=data)
            )
        except (
            requests.exceptions.InvalidURL,
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
        ) as e:
            raise URLConstructionError(url, cause=e) from e

        logger.debug("puppetca_request", method=method, url=url, has_payload=bool(payload))

        try:
            response = self._session.send(prepared, stream=True, timeout=self._timeout)
        except requests.exceptions.InvalidSchema as e:
            # Raised at send time when no adapter matches the URL scheme
            raise URLConstructionError(url, cause=e) from e
        except requests.exceptions.RequestException as e:
            logger.warning("puppetca_request_failed", method=method, url=url, error=str(e))
            raise TransportError(method, url, cause=e) from e

        with response:
            if response.status_code not in SUCCESS_STATUSES:
                status_line = f"{response.status_code} {response.reason or ''}".strip()
                logger.warning(
                    "puppetca_unexpected_status",
                    method=method,
                    url=url,
                    status=status_line,
                )
                raise UnexpectedStatusError(method, url, response.status_code, status_line)

            try:
                content = response.content
            except requests.exceptions.RequestException as e:
                raise BodyReadError(method, url, cause=e) from e

        return content.decode("utf-8", errors="replace")

    def get(self, path: str) -> str:
        """Perform a GET request"""
        return self.request("GET", path)

    def delete(self, path: str) -> str:
        """Perform a DELETE request"""
        return self.request("DELETE", path)

    def put(self, path: str, payload: str) -> str:
        """Perform a PUT request"""
        return self.request("PUT", path, payload)

    # =========================================================================
    # Certificate status
    # =========================================================================

    def get_cert_by_name(self, name: str) -> str:
        """
        Get the certificate status of a node.

        Args:
            name: Node certname

        Returns:
            Raw certificate_status document as returned by the CA
        """
        try:
            return self.get(f"certificate_status/{name}")
        except PuppetCAError as e:
            raise CertificateOperationError("retrieve", name, e) from e

    def delete_cert_by_name(self, name: str) -> None:
        """Revoke and delete the certificate of a node."""
        try:
            self.delete(f"certificate_status/{name}")
        except PuppetCAError as e:
            raise CertificateOperationError("delete", name, e) from e

    def sign_cert_by_name(self, name: str) -> None:
        """Sign the pending certificate request of a node."""
        try:
            self.put(f"certificate_status/{name}", SIGN_PAYLOAD)
        except PuppetCAError as e:
            raise CertificateOperationError("sign", name, e) from e

    # =========================================================================
    # Cleanup
    # =========================================================================

    def close(self) -> None:
        """Close the client and release pooled connections."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
