"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings; never points at real services
os.environ.setdefault("PAYLINK_ENVIRONMENT", "test")
os.environ.setdefault("PAYLINK_NETWORK", "sepolia")
os.environ.setdefault("PAYLINK_RPC_URL", "http://127.0.0.1:8545")
os.environ.setdefault("PAYLINK_DIRECTORY_API_URL", "")
os.environ.setdefault("PAYLINK_INTERNAL_API_KEY", "")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unittest.mock import AsyncMock, MagicMock

import pytest

from paylink.config.constants import USDC_ADDRESSES
from paylink.models.recipient import DirectoryUser
from paylink.models.transfer import LogEntry, TransferReceipt
from paylink.services.blockchain.core_constants import TRANSFER_EVENT_TOPIC


SENDER = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x2222222222222222222222222222222222222222"
OTHER = "0x3333333333333333333333333333333333333333"
TOKEN = USDC_ADDRESSES["sepolia"]
TX_HASH = "0x" + "ab" * 32
BLOCK_TIMESTAMP = 1_700_000_000


def address_topic(address: str) -> str:
    """Left-pad an address into a 32-byte indexed topic."""
    return "0x" + "0" * 24 + address[2:].lower()


def transfer_log(
    sender: str = SENDER,
    recipient: str = RECIPIENT,
    amount: int = 1_500_000,
    emitter: str = TOKEN,
    log_index: int | str | None = "0x3",
) -> LogEntry:
    """Build an ERC-20 Transfer log entry."""
    return LogEntry(
        emitter_address=emitter,
        topics=(TRANSFER_EVENT_TOPIC, address_topic(sender), address_topic(recipient)),
        data_payload="0x" + format(amount, "064x"),
        log_index=log_index,
    )


def make_receipt(*logs: LogEntry, succeeded: bool = True, block: str = "0x10") -> TransferReceipt:
    return TransferReceipt(succeeded=succeeded, block_reference=block, log_entries=tuple(logs))


@pytest.fixture
def sender_address():
    return SENDER


@pytest.fixture
def recipient_address():
    return RECIPIENT


@pytest.fixture
def token_contract():
    return TOKEN


@pytest.fixture
def tx_hash():
    return TX_HASH


@pytest.fixture
def receipt():
    """Successful receipt carrying one matching transfer."""
    return make_receipt(transfer_log())


@pytest.fixture
def mock_ledger(receipt):
    """Mock ledger collaborator (reads, writes and confirmation)."""
    ledger = AsyncMock()
    ledger.get_receipt = AsyncMock(return_value=receipt)
    ledger.get_block_timestamp = AsyncMock(return_value=BLOCK_TIMESTAMP)
    ledger.submit_transfer = AsyncMock(return_value=TX_HASH)
    ledger.wait_for_confirmation = AsyncMock(return_value=receipt)
    return ledger


@pytest.fixture
def mock_directory():
    """Mock configured directory client."""
    directory = MagicMock()
    directory.is_configured = True
    directory.has_internal_key = True
    directory.lookup = AsyncMock(
        return_value=DirectoryUser(address=RECIPIENT, handle="alice", internal_id="DP123456")
    )
    directory.get_by_address = AsyncMock(return_value=None)
    directory.send_payment_notification = AsyncMock(
        return_value=(200, {"success": True, "message": "OK", "data": {"id": 1}})
    )
    directory.check_connection = AsyncMock(return_value=True)
    directory.close = AsyncMock()
    return directory


@pytest.fixture
def make_transfer_log():
    """Factory for ERC-20 Transfer log entries."""
    return transfer_log


@pytest.fixture
def make_receipt_with():
    """Factory for receipts built from log entries."""
    return make_receipt


@pytest.fixture
def other_address():
    return OTHER
