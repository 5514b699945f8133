"""Main application entry point."""

import asyncio
import signal
import sys
from datetime import datetime, timezone
from typing import Optional

from aiohttp import web, web_runner

from .config.settings import AppSettings, get_settings
from .core.connector import DestinationConnector
from .destinations.base import BaseDestination
from .destinations.factory import DestinationFactory
from .protocol.codec import encode_error
from .protocol.dispatcher import MethodDispatcher
from .protocol.errors import INVALID_REQUEST
from .utils.logging import setup_logging, get_logger


DISPATCHER_KEY = web.AppKey("dispatcher", MethodDispatcher)
SETTINGS_KEY = web.AppKey("settings", AppSettings)

logger = get_logger(__name__)


async def rpc_handler(request: web.Request) -> web.Response:
    """Answer one JSON-RPC request.

    The HTTP status is always 200; failures travel in the JSON-RPC body.
    """
    try:
        body = await request.read()
    except web.HTTPRequestEntityTooLarge:
        logger.warning("Rejected oversized request", max_size=request.client_max_size)
        return web.Response(
            text=encode_error(
                None,
                INVALID_REQUEST,
                f"Request body exceeds the maximum size of {request.client_max_size} bytes"
            ),
            content_type="application/json"
        )

    response_body = await request.app[DISPATCHER_KEY].dispatch(body)
    return web.Response(text=response_body, content_type="application/json")


async def health_handler(request: web.Request) -> web.Response:
    """Health check endpoint."""
    settings = request.app[SETTINGS_KEY]
    return web.json_response({
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
    })


def create_web_app(settings: AppSettings, destination: BaseDestination) -> web.Application:
    """Build the aiohttp application serving the connector."""
    connector = DestinationConnector(destination=destination, settings=settings.sync)

    app = web.Application(client_max_size=settings.server.client_max_size)
    app[DISPATCHER_KEY] = MethodDispatcher(connector)
    app[SETTINGS_KEY] = settings

    app.router.add_post(settings.server.rpc_path, rpc_handler)
    app.router.add_get('/health', health_handler)

    return app


class ConnectorApp:
    """Main connector application."""

    def __init__(self, settings: Optional[AppSettings] = None):
        """Initialize the application."""
        self.settings = settings or get_settings()
        self.logger = get_logger("ConnectorApp")
        self.running = False
        self.destination: Optional[BaseDestination] = None
        self.web_runner: Optional[web_runner.AppRunner] = None

    async def startup(self):
        """Application startup."""
        self.logger.info(
            "Starting connector",
            version=self.settings.version,
            environment=self.settings.environment,
            destination_type=self.settings.destination.type
        )

        self.destination = DestinationFactory.create_destination(self.settings.destination)

        web_app = create_web_app(self.settings, self.destination)
        self.web_runner = web_runner.AppRunner(web_app)
        await self.web_runner.setup()

        site = web_runner.TCPSite(self.web_runner, self.settings.server.host, self.settings.server.port)
        await site.start()

        self.running = True
        self.logger.info(
            "Connector started",
            host=self.settings.server.host,
            port=self.settings.server.port,
            rpc_path=self.settings.server.rpc_path
        )

    async def shutdown(self):
        """Application shutdown."""
        self.logger.info("Shutting down connector")
        self.running = False

        if self.web_runner:
            await self.web_runner.cleanup()

        if self.destination:
            await self.destination.close()

        self.logger.info("Connector stopped")

    async def run(self):
        """Run until a shutdown signal arrives."""
        await self.startup()

        try:
            while self.running:
                await asyncio.sleep(1)
        finally:
            await self.shutdown()


def setup_signal_handlers(app: ConnectorApp):
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(signum, frame):
        app.logger.info(f"Received signal {signum}")
        app.running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


async def main():
    """Main entry point."""
    settings = get_settings()
    setup_logging(settings.logging)

    app = ConnectorApp(settings)
    setup_signal_handlers(app)

    await app.run()


def run():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(0)
    except Exception as e:
        print(f"Application failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
