"""
CORS Relay - single-endpoint HTTP forwarding relay.
Lets browser clients call third-party APIs that send no cross-origin headers.
"""

import asyncio

import uvloop
from aiohttp import web

from .config import Settings, get_settings
from .handlers import RelayHandler
from .logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> web.Application:
    """
    Create the relay application for ``settings`` (environment by default).

    Caller-disconnect cancellation of the upstream request depends on the
    runner: ``RelayServer`` enables it, other runners must pass
    ``handler_cancellation=True`` themselves (for example
    ``web.run_app(create_app(), handler_cancellation=True)``).
    """
    settings = settings or get_settings()
    handler = RelayHandler(settings)

    app = web.Application()
    app.cleanup_ctx.append(handler.client_session_ctx)

    app.router.add_route("*", settings.route_path, handler.handle)
    if settings.route_path != "/":
        app.router.add_route("*", "/", handler.handle)

    return app


class RelayServer:
    """Runs the relay application on the configured address."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    async def start(self) -> None:
        """Start the relay server."""
        app = create_app(self.settings)

        # cancel the upstream call when the caller goes away
        runner = web.AppRunner(app, handler_cancellation=True)
        await runner.setup()

        site = web.TCPSite(runner, self.settings.host, self.settings.port)
        await site.start()

        logger.info(f"CORS relay started on http://{self.settings.host}:{self.settings.port}{self.settings.route_path}")
        if self.settings.allowed_hosts:
            logger.info(f"Allowed hosts: {', '.join(sorted(self.settings.allowed_hosts))}")
        else:
            logger.info("No ALLOWLIST configured, all hosts are permitted")

        try:
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()


def main() -> None:
    """Entry point for the relay."""
    uvloop.install()

    settings = get_settings()
    setup_logging(settings.log_level, settings.aiohttp_log_level)
    server = RelayServer(settings)

    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Relay stopped by user")


if __name__ == "__main__":
    main()
