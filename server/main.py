"""
Server main entry point.

Runs the payment notification HTTP server (aiohttp).
"""

import asyncio
import sys

from aiohttp import web
from loguru import logger

from paylink.api.app import create_app, header_session_resolver
from paylink.config.settings import get_settings
from server.initialization.logging import setup_logging
from server.initialization.services import initialize_all_services


async def main() -> None:
    """Initialize services and serve until cancelled."""
    settings = get_settings()
    setup_logging(settings)

    services = initialize_all_services(settings)
    app = create_app(
        reconciler=services.reconciler,
        directory=services.directory,
        session_resolver=header_session_resolver(settings.session_address_header),
    )

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.server_host, settings.server_port)
    await site.start()

    logger.info(f"Notification server started on {settings.server_host}:{settings.server_port}")
    logger.info(f"  - Payment: http://{settings.server_host}:{settings.server_port}/api/notifications/payment")
    logger.info(f"  - Health: http://{settings.server_host}:{settings.server_port}/health")

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Stopping notification server...")
        await runner.cleanup()
        logger.info("Notification server stopped")


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Server stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"Server crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
