"""
Blockchain services module.

Ledger access and the receipt -> transfer event pipeline used by
notification reconciliation.
"""

from .core_constants import ERC20_ABI, TRANSFER_EVENT_TOPIC
from .event_time_resolver import EventTimeResolver
from .ledger_client import LedgerReader, LedgerWriter, Web3LedgerClient, receipt_from_rpc
from .receipt_poller import ReceiptPoller
from .transfer_event_extractor import extract_transfer_event, is_matching_transfer
from .transfer_submitter import TransferSubmitter


__all__ = [
    "ERC20_ABI",
    "TRANSFER_EVENT_TOPIC",
    "EventTimeResolver",
    "LedgerReader",
    "LedgerWriter",
    "ReceiptPoller",
    "TransferSubmitter",
    "Web3LedgerClient",
    "extract_transfer_event",
    "is_matching_transfer",
    "receipt_from_rpc",
]
