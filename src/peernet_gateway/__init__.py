"""
Peernet web gateway.

Serves the blockchains and shared files of Peernet peers through ordinary
HTTP(S) URLs of the form `/<peer>` and `/<peer>/<file hash>`.
"""

from .backend import Backend, FileReader, MemoryBackend, MemoryPeer, PeerHandle
from .config import GatewayConfig, ListenerConfig, parse_duration
from .errors import (
    ContentNotFoundError,
    GatewayError,
    MalformedHashError,
    MalformedIdentifierError,
    MalformedPathError,
    PeerUnreachableError,
)
from .identity import (
    InvalidIdentifier,
    NodeIdentifier,
    PeerIdentifier,
    PublicKeyIdentifier,
    decode_content_hash,
    resolve_identifier,
)
from .router import GatewayRouter
from .server import GatewayServer

__version__ = "0.1.0"

__all__ = [
    "Backend",
    "ContentNotFoundError",
    "FileReader",
    "GatewayConfig",
    "GatewayError",
    "GatewayRouter",
    "GatewayServer",
    "InvalidIdentifier",
    "ListenerConfig",
    "MalformedHashError",
    "MalformedIdentifierError",
    "MalformedPathError",
    "MemoryBackend",
    "MemoryPeer",
    "NodeIdentifier",
    "PeerHandle",
    "PeerIdentifier",
    "PeerUnreachableError",
    "PublicKeyIdentifier",
    "decode_content_hash",
    "parse_duration",
    "resolve_identifier",
]
