"""
Models package.

Frozen dataclasses and enums describing recipients, amounts, ledger
transfers and notifications.
"""

from paylink.models.amount import AmountSpec
from paylink.models.notification import DeliveryResult, NotificationPayload
from paylink.models.recipient import DirectoryUser, RecipientIdentifier, ResolvedRecipient
from paylink.models.transfer import (
    DecodedTransferEvent,
    LogEntry,
    TransferReceipt,
    TransferReference,
)
from paylink.models.types import (
    DisplayCurrency,
    NoticeLevel,
    RecipientKind,
    ResolutionStatus,
    SendStep,
)


__all__ = [
    "AmountSpec",
    "DecodedTransferEvent",
    "DeliveryResult",
    "DirectoryUser",
    "DisplayCurrency",
    "LogEntry",
    "NoticeLevel",
    "NotificationPayload",
    "RecipientIdentifier",
    "RecipientKind",
    "ResolutionStatus",
    "ResolvedRecipient",
    "SendStep",
    "TransferReceipt",
    "TransferReference",
]
