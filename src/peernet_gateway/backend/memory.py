"""
In-process backend.

Serves a fixed set of peers and files from memory. Used when the gateway runs
without a network stack (local development) and throughout the test suite.
"""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass, field

from peernet_gateway.types import Bytes32, Bytes33

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MemoryPeer:
    """A peer known to the in-process backend."""

    node_id: Bytes32
    """Routing identifier."""

    public_key: Bytes33 | None = None
    """Compressed public key, if the peer can be reached by key."""

    blockchain_height: int = 0
    """Number of blocks."""

    blockchain_version: int = 0
    """Blockchain format version."""

    user_agent: str = ""
    """Advertised client string."""

    files: dict[Bytes32, bytes] = field(default_factory=dict)
    """Shared files by BLAKE3 hash."""

    connect_delay: float = 0.0
    """Seconds a connect takes. Lets tests exercise timeouts."""


@dataclass(slots=True)
class MemoryPeerHandle:
    """Session with a `MemoryPeer`."""

    peer: MemoryPeer
    closed: bool = False

    @property
    def node_id(self) -> bytes:
        return bytes(self.peer.node_id)

    @property
    def blockchain_height(self) -> int:
        return self.peer.blockchain_height

    @property
    def blockchain_version(self) -> int:
        return self.peer.blockchain_version

    @property
    def user_agent(self) -> str:
        return self.peer.user_agent

    async def close(self) -> None:
        self.closed = True


@dataclass(slots=True)
class MemoryFileReader:
    """Reader over an in-memory file slice. Stops at once when cancelled."""

    _buffer: io.BytesIO
    _cancelled: asyncio.Event
    closed: bool = False

    async def read(self, n: int = -1) -> bytes:
        if self.closed:
            raise ValueError("read from closed reader")
        if self._cancelled.is_set():
            return b""
        # Yield to the loop so transfers interleave like real network reads.
        await asyncio.sleep(0)
        return self._buffer.read(n)

    async def close(self) -> None:
        self.closed = True


@dataclass(slots=True)
class MemoryBackend:
    """
    Backend holding every peer in a dictionary.

    Peers are looked up by node identifier or public key. Unknown peers fail
    to connect with `ConnectionRefusedError`; unknown files open as no reader.
    """

    _peers: dict[Bytes32, MemoryPeer] = field(default_factory=dict)
    """Known peers by node identifier."""

    sessions: list[MemoryPeerHandle] = field(default_factory=list)
    """Every session handed out, in order. Closed sessions stay listed."""

    def add_peer(self, peer: MemoryPeer) -> None:
        """Register a peer."""
        self._peers[peer.node_id] = peer

    @property
    def open_sessions(self) -> int:
        """Number of sessions not yet closed."""
        return sum(1 for session in self.sessions if not session.closed)

    async def _connect(self, peer: MemoryPeer | None, label: str) -> MemoryPeerHandle:
        if peer is None:
            raise ConnectionRefusedError(f"unknown peer {label}")
        if peer.connect_delay:
            await asyncio.sleep(peer.connect_delay)

        session = MemoryPeerHandle(peer=peer)
        self.sessions.append(session)
        logger.debug("Connected to in-memory peer %s", peer.node_id.hex())
        return session

    async def connect_by_node_id(self, node_id: Bytes32, timeout: float) -> MemoryPeerHandle:
        return await self._connect(self._peers.get(node_id), node_id.hex())

    async def connect_by_public_key(self, public_key: Bytes33, timeout: float) -> MemoryPeerHandle:
        peer = next((p for p in self._peers.values() if p.public_key == public_key), None)
        return await self._connect(peer, public_key.hex())

    async def open_file_stream(
        self,
        peer: MemoryPeerHandle,
        file_hash: Bytes32,
        offset: int,
        limit: int,
        cancelled: asyncio.Event,
    ) -> tuple[MemoryFileReader | None, int, int]:
        data = peer.peer.files.get(file_hash)
        if data is None:
            return None, 0, 0

        chunk = data[offset:]
        if limit > 0:
            chunk = chunk[:limit]

        reader = MemoryFileReader(_buffer=io.BytesIO(chunk), _cancelled=cancelled)
        return reader, len(data), len(chunk)
