"""
Interfaces the gateway expects from the Peernet network stack.

Peer discovery, routing, NAT traversal, the blockchain engine and the file
warehouse all live behind these protocols. Uses structural subtyping: any
object with matching members can serve as a backend.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from peernet_gateway.types import Bytes32, Bytes33


class PeerHandle(Protocol):
    """
    A live session with a remote peer.

    Created by the backend, borrowed by the gateway for one request and closed
    by the gateway when the response is done.
    """

    node_id: bytes
    """Routing identifier of the peer."""

    blockchain_height: int
    """Number of blocks in the peer's blockchain."""

    blockchain_version: int
    """Format version of the peer's blockchain."""

    user_agent: str
    """Client string the peer advertises."""

    async def close(self) -> None:
        """Release the session."""
        ...


class FileReader(Protocol):
    """Read cursor over a file on a remote peer."""

    async def read(self, n: int = -1) -> bytes:
        """
        Read up to `n` bytes.

        Returns:
            The data read. Empty bytes at end of stream.
        """
        ...

    async def close(self) -> None:
        """Release the cursor and any transfer state on the peer."""
        ...


class Backend(Protocol):
    """
    Protocol for the network collaborator.

    Connection Model
    ----------------
    - Peers are reached either by node identifier or by public key
    - Both connect calls receive the caller's timeout as a deadline hint; the
      gateway still enforces the timeout on its side
    - File streams are opened on an already connected peer
    """

    async def connect_by_node_id(self, node_id: Bytes32, timeout: float) -> PeerHandle:
        """
        Connect to a peer by its routing identifier.

        Raises:
            Exception: Any failure; the gateway reports the peer as unreachable.
        """
        ...

    async def connect_by_public_key(self, public_key: Bytes33, timeout: float) -> PeerHandle:
        """
        Connect to a peer by its compressed public key.

        Raises:
            Exception: Any failure; the gateway reports the peer as unreachable.
        """
        ...

    async def open_file_stream(
        self,
        peer: PeerHandle,
        file_hash: Bytes32,
        offset: int,
        limit: int,
        cancelled: asyncio.Event,
    ) -> tuple[FileReader | None, int, int]:
        """
        Start reading a file from a connected peer.

        Args:
            peer: Connected peer.
            file_hash: BLAKE3 hash of the file.
            offset: First byte to transfer.
            limit: Maximum bytes to transfer. Zero means until end of file.
            cancelled: Set by the gateway when the client goes away.

        Returns:
            Tuple of (reader, file size, transfer size). The reader may be None
            when the peer cannot serve the file.
        """
        ...
