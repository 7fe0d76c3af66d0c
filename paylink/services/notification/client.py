"""
Payment notification client.

Caller side of POST /api/notifications/payment, used by the send flow when
reconciliation runs in a separate server process.
"""

from typing import Protocol

import aiohttp
from loguru import logger

from paylink.config.constants import DIRECTORY_TIMEOUT
from paylink.models.notification import DeliveryResult
from paylink.utils.security import mask_tx_hash


class PaymentNotifier(Protocol):
    """Anything that can reconcile a payment without raising."""

    async def notify(
        self,
        sender: str,
        recipient: str,
        transaction_id: str,
        note: object = None,
    ) -> DeliveryResult: ...


class PaymentNotificationClient:
    """
    HTTP client for the notification endpoint.

    The server takes the sender from the caller's session, so the session
    headers (cookie or bearer token) are supplied at construction time.
    """

    def __init__(
        self,
        endpoint_url: str,
        headers: dict[str, str] | None = None,
        session: aiohttp.ClientSession | None = None,
        timeout: float = DIRECTORY_TIMEOUT * 3,
    ) -> None:
        """
        Initialize notification client.

        Args:
            endpoint_url: Full URL of the notification endpoint
            headers: Session authentication headers
            session: Optional externally managed aiohttp session
            timeout: Total request timeout; covers the server's receipt polling
        """
        self.endpoint_url = endpoint_url
        self._headers = dict(headers or {})
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def notify(
        self,
        sender: str,
        recipient: str,
        transaction_id: str,
        note: object = None,
    ) -> DeliveryResult:
        """
        Ask the server to reconcile a payment. Never raises.

        Args:
            sender: Unused; the server authenticates the sender itself
            recipient: Recipient settlement address
            transaction_id: Transaction hash
            note: Optional note

        Returns:
            DeliveryResult carrying the server's status code
        """
        body = {"toAddress": recipient, "txHash": transaction_id, "note": note}
        try:
            session = await self._get_session()
            async with session.post(self.endpoint_url, json=body, headers=self._headers) as response:
                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    payload = None
                status = response.status
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.warning(
                f"[Notification Client] Request failed for {mask_tx_hash(transaction_id)}: {e}"
            )
            return DeliveryResult(success=False, message="Failed to deliver notification.")

        payload = payload if isinstance(payload, dict) else {}
        success = 200 <= status < 300 and bool(payload.get("success"))
        message = payload.get("message") or ("OK" if success else "Failed to deliver notification.")
        return DeliveryResult(
            success=success,
            message=message,
            data=payload.get("data"),
            status_code=status,
        )
