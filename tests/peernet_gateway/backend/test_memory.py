"""Tests for the in-process backend."""

from __future__ import annotations

import asyncio

import pytest

from peernet_gateway.backend import MemoryBackend, MemoryPeer
from peernet_gateway.types import Bytes32, Bytes33


def test_unknown_public_key_refused(backend: MemoryBackend) -> None:
    """A key no peer owns cannot be dialed."""

    async def run_test() -> None:
        with pytest.raises(ConnectionRefusedError):
            await backend.connect_by_public_key(Bytes33.zero(), timeout=1.0)

    asyncio.run(run_test())


def test_window_slices_file(backend: MemoryBackend, peer: MemoryPeer, file_hash: Bytes32) -> None:
    """Offset and limit select the transferred part; the file size stays whole."""

    async def run_test() -> bytes:
        handle = await backend.connect_by_node_id(peer.node_id, timeout=1.0)
        reader, file_size, transfer_size = await backend.open_file_stream(
            handle, file_hash, offset=10, limit=5, cancelled=asyncio.Event()
        )
        assert reader is not None
        assert file_size == len(peer.files[file_hash])
        assert transfer_size == 5
        return await reader.read(100)

    assert asyncio.run(run_test()) == peer.files[file_hash][10:15]


def test_cancelled_reader_stops(
    backend: MemoryBackend, peer: MemoryPeer, file_hash: Bytes32
) -> None:
    """Once the cancel signal fires the reader returns no more data."""

    async def run_test() -> None:
        handle = await backend.connect_by_node_id(peer.node_id, timeout=1.0)
        cancelled = asyncio.Event()
        reader, _, _ = await backend.open_file_stream(handle, file_hash, 0, 0, cancelled)
        assert reader is not None

        assert await reader.read(4) != b""
        cancelled.set()
        assert await reader.read(4) == b""

        await reader.close()
        with pytest.raises(ValueError):
            await reader.read(4)

    asyncio.run(run_test())
