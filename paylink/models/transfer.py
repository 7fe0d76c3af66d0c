"""
Ledger transfer models.

Read-only views of ledger data used by reconciliation.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class TransferReference:
    """Opaque ledger handle of a submitted transfer."""

    transaction_id: str


@dataclass(frozen=True)
class LogEntry:
    """Single log emitted during a transaction."""

    emitter_address: str
    topics: tuple[str, ...]
    data_payload: str
    log_index: int | str | None = None  # ledger-reported position, if any


@dataclass(frozen=True)
class TransferReceipt:
    """Ledger confirmation record of a transaction."""

    succeeded: bool
    block_reference: str
    log_entries: tuple[LogEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DecodedTransferEvent:
    """The one transfer log matching the expected contract and parties."""

    amount_base_units: int
    log_index: int
    event_at: datetime | None = None
