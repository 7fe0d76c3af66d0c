"""
Notification models.

The directory service owns the notification record; this side only builds
the payload it upserts, keyed by (transaction_id, log_index).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from paylink.config.constants import NOTIFICATION_TYPE_PAYMENT_RECEIVED
from paylink.models.transfer import DecodedTransferEvent
from paylink.utils.datetime_utils import to_iso


@dataclass(frozen=True)
class NotificationPayload:
    """Decoded payment event to deliver to the recipient's inbox."""

    sender: str
    recipient: str
    token_contract: str
    transaction_id: str
    log_index: int
    amount_base_units: int
    event_at: datetime
    note: str | None = None
    chain_id: int | None = None
    token_symbol: str = "USDC"
    token_decimals: int = 6

    @classmethod
    def from_event(
        cls,
        event: DecodedTransferEvent,
        sender: str,
        recipient: str,
        token_contract: str,
        transaction_id: str,
        **extra: Any,
    ) -> "NotificationPayload":
        """
        Build the payload of a decoded transfer event.

        The event must carry its resolved time.
        """
        if event.event_at is None:
            raise ValueError("Transfer event has no resolved time")
        return cls(
            sender=sender,
            recipient=recipient,
            token_contract=token_contract,
            transaction_id=transaction_id,
            log_index=event.log_index,
            amount_base_units=event.amount_base_units,
            event_at=event.event_at,
            **extra,
        )

    @property
    def idempotency_key(self) -> tuple[str, int]:
        return (self.transaction_id, self.log_index)

    def to_request_body(self) -> dict[str, Any]:
        """Serialize for the directory service notification endpoint."""
        return {
            "toAddress": self.recipient,
            "fromAddress": self.sender,
            "type": NOTIFICATION_TYPE_PAYMENT_RECEIVED,
            "chainId": self.chain_id,
            "contractAddress": self.token_contract,
            "txHash": self.transaction_id,
            "logIndex": self.log_index,
            # String keeps full precision across JSON consumers
            "value": str(self.amount_base_units),
            "tokenSymbol": self.token_symbol,
            "tokenDecimal": self.token_decimals,
            "note": self.note,
            "eventAt": to_iso(self.event_at),
        }


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a notification delivery attempt."""

    success: bool
    message: str
    data: Any = None
    status_code: int | None = None
