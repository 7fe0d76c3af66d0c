"""
HTTP application factory.

Builds the aiohttp application exposing the payment notification
endpoint and the health checks.
"""

from aiohttp import web
from loguru import logger

from paylink.services.directory.client import DirectoryClient
from paylink.services.notification.reconciler import PaymentReconciler
from paylink.utils.validation import is_evm_address, normalize_address

from .health import HealthAPI
from .notifications import PaymentNotificationAPI, SessionResolver


def header_session_resolver(header_name: str) -> SessionResolver:
    """
    Session resolver reading the authenticated address from a request header.

    For deployments behind a gateway that authenticates the user and sets
    the header; malformed addresses count as no session.
    """

    async def resolve(request: web.Request) -> str | None:
        address = normalize_address(request.headers.get(header_name))
        return address if is_evm_address(address) else None

    return resolve


def create_app(
    reconciler: PaymentReconciler,
    directory: DirectoryClient,
    session_resolver: SessionResolver,
) -> web.Application:
    """
    Create the PayLink HTTP application.

    Args:
        reconciler: Payment reconciler behind the notification endpoint
        directory: Directory client (health reporting and cleanup)
        session_resolver: Maps a request to the sender address or None

    Returns:
        Configured aiohttp Application
    """
    notifications = PaymentNotificationAPI(reconciler, session_resolver)
    health = HealthAPI(directory)

    app = web.Application()
    app.router.add_post("/api/notifications/payment", notifications.post_payment)
    app.router.add_get("/health", health.health_handler)
    app.router.add_get("/readiness", health.readiness_handler)
    app.router.add_get("/liveness", health.liveness_handler)

    async def close_directory(app: web.Application) -> None:
        await directory.close()
        logger.info("Directory client closed")

    app.on_cleanup.append(close_directory)
    return app
