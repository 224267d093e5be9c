"""
Exception hierarchy for gateway requests.

Every failure a request can hit is one of these. Each carries the HTTP status
and the plain-text message the client receives; the router turns them into
responses. None of them is fatal to the process.
"""

from __future__ import annotations

from typing import ClassVar


class GatewayError(Exception):
    """
    Base exception for all request failures.

    Attributes:
        message: Client-facing description, written as the response body.
    """

    status: ClassVar[int] = 404
    """HTTP status code reported to the client."""

    default_message: ClassVar[str] = "404 not found"
    """Message used when none is given."""

    def __init__(self, message: str | None = None) -> None:
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class MalformedPathError(GatewayError):
    """The path does not have one or two non-empty segments."""


class MalformedIdentifierError(GatewayError):
    """The first segment is neither a node identifier nor a public key."""


class MalformedHashError(GatewayError):
    """The second segment is not a hex-encoded 32-byte file hash."""

    status = 400
    default_message = "Invalid hash. Expected a hex-encoded 32-byte BLAKE3 file hash."


class PeerUnreachableError(GatewayError):
    """The connection attempt timed out or was refused."""

    default_message = "Could not connect to remote peer."


class ContentNotFoundError(GatewayError):
    """
    The peer could not serve the requested file.

    Unknown hash, refusal and I/O failure on the peer side all end up here.
    """

    default_message = "File not found."
