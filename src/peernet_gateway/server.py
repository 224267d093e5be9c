"""
Listener supervisor for the web gateway.

Starts one aiohttp site per configured listen address, each serving the same
router, plus an optional plain HTTP listener on port 80 that redirects to
HTTPS. Listeners are independent tasks: one that fails to bind is logged and
ends, the others keep serving.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from aiohttp import web

from .config import ListenerConfig, split_host_port
from .router import RESPONSE_KEY, GatewayRouter, redirect_to_https

logger = logging.getLogger(__name__)

REDIRECT_PORT = 80
"""Port of the HTTP to HTTPS redirect listener."""

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def create_tls_context(certificate_file: str, certificate_key: str) -> ssl.SSLContext:
    """
    Build the server TLS context.

    TLS 1.0 and 1.1 are refused.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.load_cert_chain(certificate_file, certificate_key)
    return context


def timeout_middleware(
    read_timeout: float, write_timeout: float
) -> Callable[..., Awaitable[web.StreamResponse]]:
    """
    Bound every request on a listener.

    - `read_timeout` limits reading the request body.
    - `write_timeout` limits the whole handler, response writing included.

    When the write timeout fires after the response has started, the
    connection is closed and the client sees a truncated body. Zero disables
    either limit.
    """

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if read_timeout > 0 and request.can_read_body:
            try:
                await asyncio.wait_for(request.read(), timeout=read_timeout)
            except asyncio.TimeoutError as e:
                raise web.HTTPRequestTimeout() from e

        if write_timeout <= 0:
            return await handler(request)

        try:
            return await asyncio.wait_for(handler(request), timeout=write_timeout)
        except asyncio.TimeoutError:
            started = request.get(RESPONSE_KEY)
            logger.warning(
                "Write timeout after %.1fs on %s %s", write_timeout, request.method, request.path
            )
            if started is None:
                raise web.HTTPServiceUnavailable(reason="Write timeout") from None
            if request.transport is not None:
                request.transport.close()
            return started

    return middleware


def create_app(
    handler: Handler, read_timeout: float = 0.0, write_timeout: float = 0.0
) -> web.Application:
    """Build an application routing every path and method to `handler`."""
    app = web.Application(middlewares=[timeout_middleware(read_timeout, write_timeout)])
    app.add_routes([web.route("*", "/{tail:.*}", handler)])
    return app


@dataclass(slots=True)
class GatewayServer:
    """
    Runs every gateway listener concurrently.

    Listener failures are contained: a listener that cannot start logs the
    error and ends, the process and other listeners carry on.
    """

    router: GatewayRouter
    """Handler shared by all listeners."""

    listeners: list[ListenerConfig]
    """One entry per listen address."""

    redirect_host: str = ""
    """Host for the port 80 redirect listener. Empty disables it."""

    redirect_port: int = REDIRECT_PORT
    """Port of the redirect listener."""

    _runners: list[web.AppRunner] = field(default_factory=list, init=False)
    """Runners of every listener that started."""

    _tasks: list[asyncio.Task[None]] = field(default_factory=list, init=False)
    """Listener tasks."""

    _stopped: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    """Set when shutdown is requested."""

    async def _serve(
        self,
        app: web.Application,
        host: str | None,
        port: int,
        ssl_context: ssl.SSLContext | None,
        label: str,
    ) -> None:
        runner = web.AppRunner(app, handler_cancellation=True)
        await runner.setup()

        site = web.TCPSite(runner, host, port, ssl_context=ssl_context)
        try:
            await site.start()
        except OSError as e:
            logger.error("Error listening on '%s': %s", label, e)
            await runner.cleanup()
            return

        self._runners.append(runner)
        logger.info("Web gateway listening on %s", label)

    async def _start_listener(self, listener: ListenerConfig) -> None:
        logger.info("Web gateway to listen on '%s'", listener.address)
        try:
            host, port = split_host_port(listener.address)
            ssl_context = (
                create_tls_context(listener.certificate_file, listener.certificate_key)
                if listener.use_tls
                else None
            )
        except (ValueError, OSError, ssl.SSLError) as e:
            logger.error("Error listening on '%s': %s", listener.address, e)
            return

        app = create_app(self.router.handle, listener.read_timeout, listener.write_timeout)
        await self._serve(app, host, port, ssl_context, f"{listener.scheme}://{listener.address}")

    async def _start_redirect(self) -> None:
        app = create_app(redirect_to_https)
        label = f"http://{self.redirect_host}:{self.redirect_port}"
        await self._serve(app, self.redirect_host, self.redirect_port, None, label)

    async def start(self) -> None:
        """Start every listener and wait until each has bound or failed."""
        self._tasks = [
            asyncio.create_task(self._start_listener(listener)) for listener in self.listeners
        ]
        if self.redirect_host:
            self._tasks.append(asyncio.create_task(self._start_redirect()))

        await asyncio.gather(*self._tasks)

        if not self._runners:
            logger.warning("No web gateway listener is running")

    async def run(self) -> None:
        """
        Run the gateway until shutdown.

        This method blocks until stop() is called.
        """
        await self.start()
        try:
            await self._stopped.wait()
        finally:
            await self.close()

    def stop(self) -> None:
        """Request graceful shutdown."""
        self._stopped.set()

    async def close(self) -> None:
        """Shut down every running listener."""
        for runner in self._runners:
            await runner.cleanup()
        self._runners.clear()
        logger.info("Web gateway stopped")

    @property
    def running_listeners(self) -> int:
        """Number of listeners currently serving."""
        return len(self._runners)
