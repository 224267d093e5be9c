"""
Content streamer.

Produces response bodies from a connected peer: either a one-line summary of
its blockchain or the bytes of a shared file.

File transfers follow the backend's commitment exactly. When a stream opens,
the backend reports a transfer size, and the gateway copies at most that many
bytes. The read cursor is closed exactly once, whether the copy completes,
the client disconnects or something fails.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .errors import ContentNotFoundError

if TYPE_CHECKING:
    from .backend import Backend, FileReader, PeerHandle
    from .types import Bytes32

logger = logging.getLogger(__name__)

CHUNK_SIZE: Final = 64 * 1024
"""Bytes moved per read/write step of a file transfer."""


@dataclass(frozen=True, slots=True)
class LedgerSummary:
    """Blockchain metadata of a connected peer."""

    node_id: bytes
    blockchain_height: int
    blockchain_version: int
    user_agent: str

    def render(self) -> str:
        """Render the plain-text response body."""
        return (
            f"Peer {self.node_id.hex()} blockchain height {self.blockchain_height} "
            f"version {self.blockchain_version}\nUser Agent: {self.user_agent}\n"
        )


def fetch_ledger_summary(peer: PeerHandle) -> LedgerSummary:
    """Read the blockchain metadata the peer announced when connecting."""
    return LedgerSummary(
        node_id=bytes(peer.node_id),
        blockchain_height=peer.blockchain_height,
        blockchain_version=peer.blockchain_version,
        user_agent=peer.user_agent,
    )


@dataclass(frozen=True, slots=True)
class StreamWindow:
    """
    Byte range of a file transfer.

    The gateway always requests the whole file. The fields are kept so range
    requests can be mapped onto them.
    """

    offset: int = 0
    """First byte to transfer."""

    limit: int = 0
    """Maximum bytes to transfer. Zero means until the end of the file."""


FULL_FILE: Final = StreamWindow()
"""Window covering the whole file."""


@dataclass(frozen=True, slots=True)
class FileTransfer:
    """An open file stream."""

    reader: FileReader
    """Read cursor on the peer."""

    file_size: int
    """Total size of the file."""

    transfer_size: int
    """Bytes the backend commits to deliver for this window."""


@asynccontextmanager
async def open_file(
    backend: Backend,
    peer: PeerHandle,
    file_hash: Bytes32,
    window: StreamWindow,
    cancelled: asyncio.Event,
) -> AsyncIterator[FileTransfer]:
    """
    Open a file on a connected peer for the duration of a block.

    Args:
        backend: Network collaborator.
        peer: Connected peer.
        file_hash: BLAKE3 hash of the file.
        window: Byte range to transfer.
        cancelled: Set when the client aborts; passed through to the backend.

    Raises:
        ContentNotFoundError: The backend failed or returned no reader.
    """
    try:
        reader, file_size, transfer_size = await backend.open_file_stream(
            peer, file_hash, window.offset, window.limit, cancelled
        )
    except Exception as e:
        logger.debug("Error opening file %s: %s", file_hash.hex(), e)
        raise ContentNotFoundError() from e

    if reader is None:
        raise ContentNotFoundError()

    try:
        yield FileTransfer(reader=reader, file_size=file_size, transfer_size=transfer_size)
    finally:
        await reader.close()


async def copy_transfer(
    transfer: FileTransfer,
    write: Callable[[bytes], Awaitable[None]],
    chunk_size: int = CHUNK_SIZE,
) -> int:
    """
    Copy a file transfer to the client.

    Copies at most `transfer_size` bytes, stopping early if the reader ends.

    Args:
        transfer: The open file stream.
        write: Coroutine writing one chunk to the client.
        chunk_size: Maximum bytes per read.

    Returns:
        Number of bytes copied.
    """
    remaining = transfer.transfer_size
    copied = 0
    while remaining > 0:
        data = await transfer.reader.read(min(chunk_size, remaining))
        if not data:
            break

        # Never trust the reader to respect the requested size.
        data = data[:remaining]
        await write(data)
        copied += len(data)
        remaining -= len(data)

    if copied < transfer.transfer_size:
        logger.debug("Transfer ended early: %d of %d bytes", copied, transfer.transfer_size)
    return copied
