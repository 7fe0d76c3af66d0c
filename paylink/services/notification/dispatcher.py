"""
Notification Dispatcher.

Delivers a decoded payment event to the directory service, which upserts
the recipient's notification keyed by (transaction_id, log_index). Repeated
delivery of the same payload is therefore harmless.
"""

import aiohttp
from loguru import logger

from paylink.models.notification import DeliveryResult, NotificationPayload
from paylink.services.directory.client import DirectoryClient
from paylink.utils.exceptions import ConfigurationMissing
from paylink.utils.security import mask_tx_hash


class NotificationDispatcher:
    """Authenticated, idempotent notification delivery. Never raises."""

    def __init__(self, directory: DirectoryClient) -> None:
        self.directory = directory

    @property
    def is_configured(self) -> bool:
        return self.directory.is_configured and self.directory.has_internal_key

    async def deliver(self, payload: NotificationPayload) -> DeliveryResult:
        """
        Deliver a payment notification.

        Args:
            payload: Decoded transfer event and note

        Returns:
            DeliveryResult; success only on 2xx with success=true
        """
        tx_label = f"{mask_tx_hash(payload.transaction_id)}#{payload.log_index}"

        try:
            status, body = await self.directory.send_payment_notification(
                payload.to_request_body()
            )
        except ConfigurationMissing as e:
            logger.warning(f"[Notification] Delivery skipped for {tx_label}: {e.message}")
            return DeliveryResult(success=False, message=e.message, status_code=e.http_status)
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.warning(f"[Notification] Delivery transport failure for {tx_label}: {e}")
            return DeliveryResult(
                success=False,
                message="Failed to deliver notification.",
                status_code=502,
            )

        body = body if isinstance(body, dict) else {}
        if not (200 <= status < 300) or not body.get("success"):
            message = body.get("message") or "Failed to deliver notification."
            logger.warning(f"[Notification] Delivery rejected for {tx_label}: HTTP {status} {message}")
            return DeliveryResult(success=False, message=message, status_code=502)

        logger.info(f"[Notification] Delivered {tx_label}")
        return DeliveryResult(
            success=True,
            message="OK",
            data=body.get("data"),
            status_code=200,
        )
