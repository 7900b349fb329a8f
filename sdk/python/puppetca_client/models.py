"""
Puppet CA Client - Data Models
Data classes for credential handling and client configuration
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import json
import ssl


def _parse_flag(value) -> bool:
    """Accept a real bool or the strings "true"/"false"; reject anything else"""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"expected a boolean, got {value!r}")


class CredentialForm(Enum):
    """How a credential string was supplied"""
    FILE_PATH = "file"
    INLINE_CONTENT = "string"

    @property
    def is_file(self) -> bool:
        return self is CredentialForm.FILE_PATH


@dataclass(frozen=True)
class TLSMaterial:
    """
    Loaded client key pair and CA trust pool.
    Only lives long enough to be handed to the HTTP adapter.
    """
    ssl_context: ssl.SSLContext
    credential_form: CredentialForm
    ca_form: CredentialForm
    ca_cert_count: int


@dataclass
class ClientSettings:
    """
    Construction inputs for a PuppetCAClient.
    key, cert and ca each hold either a file path or inline PEM text.
    """
    base_url: str
    key: str
    cert: str
    ca: str
    insecure_skip_verify: bool = False
    timeout: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ClientSettings":
        """Create settings from a dictionary"""
        timeout = data.get("timeout")
        return cls(
            base_url=data["base_url"],
            key=data["key"],
            cert=data["cert"],
            ca=data["ca"],
            insecure_skip_verify=_parse_flag(data.get("insecure_skip_verify", False)),
            timeout=float(timeout) if timeout is not None else None,
        )

    @classmethod
    def from_file(cls, path: str) -> "ClientSettings":
        """Load settings from a JSON file"""
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
