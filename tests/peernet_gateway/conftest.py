"""
Shared pytest fixtures for the gateway tests.

Provides an in-memory backend with one well-known peer, a static file
directory and a helper that runs the gateway on a free localhost port.
"""

from __future__ import annotations

import socket
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from peernet_gateway.backend import MemoryBackend, MemoryPeer
from peernet_gateway.config import ListenerConfig
from peernet_gateway.router import GatewayRouter
from peernet_gateway.server import GatewayServer
from peernet_gateway.types import Bytes32, Bytes33

_PRIVATE_KEY = ec.derive_private_key(0xC0FFEE, ec.SECP256K1())

PUBLIC_KEY = Bytes33(
    _PRIVATE_KEY.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.CompressedPoint,
    )
)
"""Compressed public key of the test peer."""

NODE_ID = Bytes32("a1b2" * 16)
"""Node identifier of the test peer."""

FILE_HASH = Bytes32(b"\x11" * 32)
"""Hash of the file the test peer shares."""

FILE_DATA = bytes(range(256)) * 1024
"""Shared file content. Several transfer chunks long."""

INDEX_HTML = b"<html><body>Peernet Web Gateway</body></html>"
"""Landing page served from the static directory."""


@pytest.fixture
def file_hash() -> Bytes32:
    """Hash of the shared test file."""
    return FILE_HASH


@pytest.fixture
def file_data() -> bytes:
    """Content of the shared test file."""
    return FILE_DATA


@pytest.fixture
def index_html() -> bytes:
    """Content of the landing page."""
    return INDEX_HTML


@pytest.fixture
def peer() -> MemoryPeer:
    """The well-known test peer."""
    return MemoryPeer(
        node_id=NODE_ID,
        public_key=PUBLIC_KEY,
        blockchain_height=42,
        blockchain_version=3,
        user_agent="test/1.0",
        files={FILE_HASH: FILE_DATA},
    )


@pytest.fixture
def backend(peer: MemoryPeer) -> MemoryBackend:
    """In-memory backend knowing only the test peer."""
    backend = MemoryBackend()
    backend.add_peer(peer)
    return backend


@pytest.fixture
def web_files(tmp_path: Path) -> Path:
    """Static file directory with an index page and no favicon."""
    directory = tmp_path / "html"
    directory.mkdir()
    (directory / "index.html").write_bytes(INDEX_HTML)
    return directory


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def free_port() -> Callable[[], int]:
    """Factory returning a currently unused localhost port."""
    return _free_port


@pytest.fixture
def run_gateway(
    backend: MemoryBackend, web_files: Path
) -> Callable[..., AbstractAsyncContextManager[str]]:
    """
    Run the gateway on one plain HTTP listener.

    Usage inside a coroutine::

        async with run_gateway() as base_url:
            ...
    """

    @asynccontextmanager
    async def _run(
        write_timeout: float = 0.0, connect_timeout: float = 10.0
    ) -> AsyncIterator[str]:
        address = f"127.0.0.1:{_free_port()}"
        router = GatewayRouter(
            backend=backend, web_files=web_files, connect_timeout=connect_timeout
        )
        server = GatewayServer(
            router=router,
            listeners=[ListenerConfig(address=address, write_timeout=write_timeout)],
        )
        await server.start()
        try:
            yield f"http://{address}"
        finally:
            await server.close()

    return _run
