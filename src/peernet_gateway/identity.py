"""
Identity codec for gateway URLs.

Gateway links have the form `/<peer>` or `/<peer>/<file hash>`, everything hex
encoded. The peer segment comes in two flavours:

- Node identifier: the 32-byte BLAKE3 hash used for routing. Most links use it.
- Public key: the 33-byte compressed secp256k1 key of the peer, for links
  created before the node identifier is known.

A segment is tried as a node identifier first. Only if that fails is it parsed
as a public key. The two lengths differ, so no string decodes as both, but the
order keeps the common case cheap and the result deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from cryptography.hazmat.primitives.asymmetric import ec

from .errors import MalformedHashError, MalformedIdentifierError, MalformedPathError
from .types import Bytes32, Bytes33

__all__ = [
    "InvalidIdentifier",
    "NodeIdentifier",
    "PeerIdentifier",
    "PublicKeyIdentifier",
    "RequestPath",
    "decode_content_hash",
    "parse_request_path",
    "resolve_identifier",
]


@dataclass(frozen=True, slots=True)
class NodeIdentifier:
    """Peer addressed by its routing identifier."""

    node_id: Bytes32


@dataclass(frozen=True, slots=True)
class PublicKeyIdentifier:
    """Peer addressed by its compressed public key."""

    public_key: Bytes33


@dataclass(frozen=True, slots=True)
class InvalidIdentifier:
    """Segment that is neither form."""

    text: str


PeerIdentifier = NodeIdentifier | PublicKeyIdentifier | InvalidIdentifier
"""Result of resolving the peer segment of a URL."""


def decode_content_hash(text: str) -> Bytes32 | None:
    """
    Decode a hex-encoded BLAKE3 file hash.

    Returns:
        The 32-byte hash, or None if `text` is not hex or has the wrong length.
    """
    return Bytes32.from_hex(text)


def _decode_public_key(text: str) -> Bytes33 | None:
    key = Bytes33.from_hex(text)
    if key is None:
        return None

    # Length alone is not enough: the prefix byte and x coordinate must
    # describe a point on the curve.
    try:
        ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), bytes(key))
    except ValueError:
        return None
    return key


def resolve_identifier(text: str) -> PeerIdentifier:
    """
    Resolve the peer segment of a URL.

    Tries the node identifier form first, then the public key form.

    Args:
        text: Hex-encoded node identifier or compressed public key.

    Returns:
        The resolved identifier, or `InvalidIdentifier` if neither form matches.
    """
    node_id = Bytes32.from_hex(text)
    if node_id is not None:
        return NodeIdentifier(node_id=node_id)

    public_key = _decode_public_key(text)
    if public_key is not None:
        return PublicKeyIdentifier(public_key=public_key)

    return InvalidIdentifier(text=text)


MAX_SEGMENTS: Final = 2
"""Peer plus optional file hash."""


@dataclass(frozen=True, slots=True)
class RequestPath:
    """A parsed gateway path."""

    identifier: NodeIdentifier | PublicKeyIdentifier
    """The addressed peer."""

    file_hash: Bytes32 | None = None
    """Requested file. None requests the peer's blockchain summary."""


def parse_request_path(path: str) -> RequestPath:
    """
    Parse `/<peer>` or `/<peer>/<file hash>`.

    One leading and one trailing slash are ignored. The segment count is checked
    before anything is decoded.

    Raises:
        MalformedPathError: Not one or two non-empty segments.
        MalformedIdentifierError: The peer segment does not resolve.
        MalformedHashError: The file hash segment does not decode.
    """
    trimmed = path.removesuffix("/").removeprefix("/")
    parts = trimmed.split("/")
    if len(parts) > MAX_SEGMENTS or not all(parts):
        raise MalformedPathError()

    identifier = resolve_identifier(parts[0])
    if isinstance(identifier, InvalidIdentifier):
        raise MalformedIdentifierError()

    if len(parts) == 1:
        return RequestPath(identifier=identifier)

    file_hash = decode_content_hash(parts[1])
    if file_hash is None:
        raise MalformedHashError()

    return RequestPath(identifier=identifier, file_hash=file_hash)
