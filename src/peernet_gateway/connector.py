"""
Peer connector.

Turns a resolved identifier into a live peer session, bounded by a timeout.
The backend is given the timeout as a hint, but the connector enforces it
itself so a slow backend can never hold a request past the deadline.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Final

from .errors import MalformedIdentifierError, PeerUnreachableError
from .identity import NodeIdentifier, PeerIdentifier, PublicKeyIdentifier

if TYPE_CHECKING:
    from .backend import Backend, PeerHandle

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS: Final = 10.0
"""Connect timeout for every gateway request. Not configurable per request."""


async def _dial(backend: Backend, identifier: PeerIdentifier, timeout: float) -> PeerHandle:
    match identifier:
        case NodeIdentifier(node_id=node_id):
            attempt = backend.connect_by_node_id(node_id, timeout)
        case PublicKeyIdentifier(public_key=public_key):
            attempt = backend.connect_by_public_key(public_key, timeout)
        case _:
            raise MalformedIdentifierError()

    try:
        return await asyncio.wait_for(attempt, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.debug("Timeout connecting to %s after %.1fs", identifier, timeout)
        raise PeerUnreachableError() from e
    except Exception as e:
        logger.debug("Error connecting to %s: %s", identifier, e)
        raise PeerUnreachableError() from e


@asynccontextmanager
async def connect(
    backend: Backend,
    identifier: PeerIdentifier,
    timeout: float = CONNECT_TIMEOUT_SECONDS,
) -> AsyncIterator[PeerHandle]:
    """
    Connect to a peer for the duration of a block.

    Exactly one backend entry point is called, chosen by the identifier form.
    The session is closed when the block exits, however it exits.

    Args:
        backend: Network collaborator.
        identifier: Resolved peer identifier.
        timeout: Seconds to wait for the connection.

    Raises:
        PeerUnreachableError: The connect timed out or failed.
        MalformedIdentifierError: The identifier is `InvalidIdentifier`.
    """
    peer = await _dial(backend, identifier, timeout)
    try:
        yield peer
    finally:
        await peer.close()
