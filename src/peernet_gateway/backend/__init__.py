"""
Network backend interfaces.

The gateway never talks to the P2P network directly. It calls a `Backend`
that connects to peers and opens file streams on them.
"""

from .memory import MemoryBackend, MemoryFileReader, MemoryPeer, MemoryPeerHandle
from .protocols import Backend, FileReader, PeerHandle

__all__ = [
    "Backend",
    "FileReader",
    "MemoryBackend",
    "MemoryFileReader",
    "MemoryPeer",
    "MemoryPeerHandle",
    "PeerHandle",
]
