"""
Payment notification endpoint.

POST /api/notifications/payment

The caller (sender's session) reports a transaction hash right after
broadcast and again after confirmation. The sender address always comes
from the session, never from the body.
"""

from collections.abc import Awaitable, Callable

from aiohttp import web
from loguru import logger

from paylink.services.notification.reconciler import PaymentReconciler
from paylink.utils.exceptions import PayLinkError
from paylink.utils.security import mask_address

SessionResolver = Callable[[web.Request], Awaitable[str | None]]


def error_response(message: str, status: int) -> web.Response:
    """JSON error body in the endpoint's {success, message} shape."""
    return web.json_response({"success": False, "message": message}, status=status)


class PaymentNotificationAPI:
    """Handlers for the payment notification endpoint."""

    def __init__(
        self,
        reconciler: PaymentReconciler,
        session_resolver: SessionResolver,
    ) -> None:
        self._reconciler = reconciler
        self._session_resolver = session_resolver

    async def post_payment(self, request: web.Request) -> web.Response:
        """
        POST /api/notifications/payment

        Body: {"toAddress" | "to", "txHash" | "hash", "note"?}

        Returns:
            200 {success: true, message, data?} once the recipient is notified;
            401 without a session; 400 / 409 / 500 / 502 per error kind
        """
        sender = await self._session_resolver(request)
        if not sender:
            return error_response("Unauthorized.", 401)

        try:
            body = await request.json()
        except ValueError:
            return error_response("Invalid JSON body.", 400)

        if not isinstance(body, dict):
            body = {}

        recipient = body.get("toAddress") or body.get("to")
        tx_hash = body.get("txHash") or body.get("hash")

        try:
            result = await self._reconciler.reconcile(
                sender=sender if isinstance(sender, str) else "",
                recipient=recipient if isinstance(recipient, str) else "",
                transaction_id=tx_hash if isinstance(tx_hash, str) else "",
                note=body.get("note"),
            )
        except PayLinkError as e:
            if e.http_status >= 500:
                logger.warning(
                    f"[Notification API] {type(e).__name__} for sender "
                    f"{mask_address(sender)}: {e.message}"
                )
            return error_response(e.message, e.http_status)

        payload = {"success": True, "message": result.message}
        if result.data is not None:
            payload["data"] = result.data
        return web.json_response(payload)
