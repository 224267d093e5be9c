"""
Request router for the web gateway.

Maps a request path to one of:

- `/`, `/index.html`, `/favicon.ico`: static files from the web directory
- `/<peer>`: blockchain summary of a peer
- `/<peer>/<file hash>`: raw bytes of a file shared by a peer
- anything else: 404

The static paths are hard-coded. Request paths are never joined onto the web
directory, so user input cannot reach other local files.

Every request is independent: nothing is remembered between requests.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

from aiohttp import hdrs, web

from .connector import CONNECT_TIMEOUT_SECONDS, connect
from .errors import GatewayError
from .identity import RequestPath, parse_request_path
from .streamer import FULL_FILE, copy_transfer, fetch_ledger_summary, open_file

if TYPE_CHECKING:
    from .backend import Backend

logger = logging.getLogger(__name__)

STATIC_FILES: Final[dict[str, str]] = {
    "/": "index.html",
    "/index.html": "index.html",
    "/favicon.ico": "favicon.ico",
}
"""Static paths and the file each one serves."""

RESPONSE_KEY: Final = "peernet_gateway.response"
"""Request key holding a response once streaming has begun."""


def error_response(status: int, message: str) -> web.Response:
    """Plain-text error response, newline terminated."""
    return web.Response(
        status=status,
        text=f"{message}\n",
        headers={"X-Content-Type-Options": "nosniff"},
    )


@dataclass(frozen=True, slots=True)
class GatewayRouter:
    """
    HTTP handler for the gateway.

    Immutable and shared by every listener.
    """

    backend: Backend
    """Network collaborator."""

    web_files: Path
    """Directory holding the static files."""

    connect_timeout: float = CONNECT_TIMEOUT_SECONDS
    """Seconds to wait for a peer connection."""

    async def handle(self, request: web.Request) -> web.StreamResponse:
        """Handle any request."""
        if request.method != hdrs.METH_GET:
            return error_response(404, "404 not found")

        static_name = STATIC_FILES.get(request.path)
        if static_name is not None:
            return self._serve_static(static_name)

        try:
            parsed = parse_request_path(request.path)
            if parsed.file_hash is None:
                return await self._show_blockchain(parsed)
            return await self._show_file(request, parsed)
        except GatewayError as e:
            logger.debug("%s %s: %d %s", request.method, request.path, e.status, e.message)
            return error_response(e.status, e.message)

    def _serve_static(self, name: str) -> web.StreamResponse:
        path = self.web_files / name
        if not path.is_file():
            return error_response(404, "404 page not found")
        return web.FileResponse(path)

    async def _show_blockchain(self, parsed: RequestPath) -> web.Response:
        async with connect(self.backend, parsed.identifier, self.connect_timeout) as peer:
            summary = fetch_ledger_summary(peer)

        return web.Response(
            text=summary.render(),
            headers={"X-Content-Type-Options": "nosniff"},
        )

    async def _show_file(self, request: web.Request, parsed: RequestPath) -> web.StreamResponse:
        assert parsed.file_hash is not None

        cancelled = asyncio.Event()
        async with connect(self.backend, parsed.identifier, self.connect_timeout) as peer:
            async with open_file(
                self.backend, peer, parsed.file_hash, FULL_FILE, cancelled
            ) as transfer:
                response = web.StreamResponse()
                response.content_type = "application/octet-stream"
                response.content_length = transfer.transfer_size
                request[RESPONSE_KEY] = response

                try:
                    await response.prepare(request)
                    await copy_transfer(transfer, response.write)
                except asyncio.CancelledError:
                    cancelled.set()
                    logger.debug("Client cancelled transfer of %s", parsed.file_hash.hex())
                    raise
                except ConnectionResetError:
                    cancelled.set()
                    logger.debug("Client went away during transfer of %s", parsed.file_hash.hex())

        return response


async def redirect_to_https(request: web.Request) -> web.StreamResponse:
    """Redirect any plain HTTP request to the same URL over HTTPS."""
    raise web.HTTPMovedPermanently(f"https://{request.host}{request.rel_url}")
