"""
Services.

Payment flow business logic.
"""

from paylink.services.amount_normalizer import (
    build_amount_spec,
    check_balance,
    to_base_units,
    to_display,
)
from paylink.services.exchange_rate_service import ExchangeRateService

# Collaborator adapters
from paylink.services.directory import DirectoryClient
from paylink.services.blockchain import (
    EventTimeResolver,
    ReceiptPoller,
    TransferSubmitter,
    Web3LedgerClient,
    extract_transfer_event,
)

# Reconciliation and notification
from paylink.services.notification import (
    NotificationDispatcher,
    PaymentNotificationClient,
    PaymentReconciler,
)

# Client-side state machines
from paylink.services.recipient_resolver import RecipientResolver
from paylink.services.send_flow import SendFlow


__all__ = [
    "DirectoryClient",
    "EventTimeResolver",
    "ExchangeRateService",
    "NotificationDispatcher",
    "PaymentNotificationClient",
    "PaymentReconciler",
    "ReceiptPoller",
    "RecipientResolver",
    "SendFlow",
    "TransferSubmitter",
    "Web3LedgerClient",
    "build_amount_spec",
    "check_balance",
    "extract_transfer_event",
    "to_base_units",
    "to_display",
]
