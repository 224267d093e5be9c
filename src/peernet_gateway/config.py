"""Gateway configuration loader.

Loads the gateway settings from the YAML file shared with the Peernet network
backend. Only the gateway keys are read; the backend's own keys are ignored.

The expected YAML format:

    WebListen:
    - "0.0.0.0:443"
    - "[::]:443"
    WebUseSSL: true
    WebCertificateFile: "certificate.pem"
    WebCertificateKey: "key.pem"
    WebTimeoutRead: "10s"
    WebTimeoutWrite: "10m"
    Redirect80: "0.0.0.0"
    WebFiles: "html/"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import yaml
from pydantic import Field, field_validator

from peernet_gateway.types import StrictBaseModel

_DURATION_UNITS: Final[dict[str, float]] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
"""Duration units in seconds."""

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
"""One number-unit pair, e.g. "1.5h" or "250ms"."""


def parse_duration(text: str) -> float:
    """
    Parse a duration string such as "10s", "1m30s" or "250ms".

    Accepts the same syntax as Go's `time.ParseDuration`. Malformed input is
    not an error: it yields zero, which disables the timeout it configures.

    Returns:
        The duration in seconds.
    """
    text = text.strip()
    sign = 1.0
    if text[:1] in ("+", "-"):
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    # A bare zero is the only unit-less duration.
    if text == "0":
        return 0.0
    if not text:
        return 0.0

    total = 0.0
    position = 0
    while position < len(text):
        match = _DURATION_PART.match(text, position)
        if match is None:
            return 0.0
        number, unit = match.groups()
        total += float(number) * _DURATION_UNITS[unit]
        position = match.end()

    return sign * total


def split_host_port(address: str) -> tuple[str | None, int]:
    """
    Split a "host:port" listen address.

    The host may be empty (":8080") to listen on all interfaces, and IPv6 hosts
    are written in brackets ("[::1]:8080").

    Returns:
        Tuple of (host or None for all interfaces, port).

    Raises:
        ValueError: If the port is missing or not a valid port number.
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ValueError(f"Missing port in address '{address}'")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]

    if not port_text.isdigit() or not 0 <= int(port_text) <= 65535:
        raise ValueError(f"Invalid port in address '{address}'")

    return host or None, int(port_text)


@dataclass(frozen=True, slots=True)
class ListenerConfig:
    """Settings for one gateway listener."""

    address: str
    """Listen address in "host:port" form."""

    use_tls: bool = False
    """Serve HTTPS instead of HTTP."""

    certificate_file: str = ""
    """PEM certificate chain, used with TLS."""

    certificate_key: str = ""
    """PEM private key, used with TLS."""

    read_timeout: float = 0.0
    """Seconds allowed for reading a request. Zero means no limit."""

    write_timeout: float = 0.0
    """Seconds allowed for handling a request and writing the response. Zero means no limit."""

    @property
    def scheme(self) -> str:
        """URL scheme served by this listener."""
        return "https" if self.use_tls else "http"


class GatewayConfig(StrictBaseModel):
    """
    Settings of the web gateway.

    Field names use CamelCase aliases to match the keys of the configuration
    file shared with the network backend.
    """

    web_listen: list[str] = Field(default_factory=list, alias="WebListen")
    """Listen addresses in "IP:Port" form. The IP may be omitted to listen on any."""

    web_use_ssl: bool = Field(default=False, alias="WebUseSSL")
    """Serve every listener over TLS."""

    web_certificate_file: str = Field(default="", alias="WebCertificateFile")
    """Certificate from the CA. May include the intermediate certificates."""

    web_certificate_key: str = Field(default="", alias="WebCertificateKey")
    """Private key of the certificate."""

    web_timeout_read: str = Field(default="", alias="WebTimeoutRead")
    """Maximum duration for reading the entire request, including the body."""

    web_timeout_write: str = Field(default="", alias="WebTimeoutWrite")
    """
    Maximum duration before timing out writes of the response.

    Includes processing time, so it is the longest any request may take. File
    transfers are bounded by it too: a large file under a short write timeout
    is cut off.
    """

    redirect_80: str = Field(default="", alias="Redirect80")
    """Host on which port 80 redirects to HTTPS. Empty disables the redirect."""

    web_files: str = Field(default="html/", alias="WebFiles")
    """Directory holding the static files served by the gateway."""

    @field_validator("web_listen", mode="before")
    @classmethod
    def none_as_empty(cls, v: object) -> object:
        """An empty YAML key (`WebListen:`) parses as None."""
        return [] if v is None else v

    def listeners(self) -> list[ListenerConfig]:
        """Build one listener configuration per listen address."""
        read_timeout = parse_duration(self.web_timeout_read)
        write_timeout = parse_duration(self.web_timeout_write)
        return [
            ListenerConfig(
                address=address,
                use_tls=self.web_use_ssl,
                certificate_file=self.web_certificate_file,
                certificate_key=self.web_certificate_key,
                read_timeout=read_timeout,
                write_timeout=write_timeout,
            )
            for address in self.web_listen
        ]

    @property
    def web_files_path(self) -> Path:
        """The static file directory as a path."""
        return Path(self.web_files)

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> GatewayConfig:
        """
        Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            OSError: If the file cannot be read.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the data fails validation.
        """
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml(cls, content: str) -> GatewayConfig:
        """Load configuration from a YAML string."""
        data = yaml.safe_load(content)
        return cls.model_validate(data or {})
