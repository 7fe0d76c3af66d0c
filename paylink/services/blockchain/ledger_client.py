"""
Ledger client.

Read/write access to the settlement ledger:
- Token transfer submission (signed with the configured sender key)
- Transaction receipt lookup
- Block timestamp lookup
- Confirmation wait

Receipts are converted to plain TransferReceipt values so the rest of the
pipeline never touches web3 types.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Protocol

from eth_account import Account
from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import BlockNotFound, TransactionNotFound

from paylink.config.constants import (
    BLOCKCHAIN_RPC_TIMEOUT,
    BLOCKCHAIN_TIMEOUT,
    DEFAULT_TOKEN_GAS_LIMIT,
    GAS_LIMIT_MULTIPLIER,
)
from paylink.models.transfer import LogEntry, TransferReceipt
from paylink.utils.exceptions import ConfigurationMissing
from paylink.utils.security import mask_address, mask_tx_hash
from paylink.utils.validation import hex_to_int, normalize_address

from .core_constants import ERC20_ABI, RECEIPT_STATUS_SUCCESS


class LedgerReader(Protocol):
    """Read side of the ledger used by reconciliation."""

    async def get_receipt(self, transaction_id: str) -> TransferReceipt | None: ...

    async def get_block_timestamp(self, block_reference: str) -> int | None: ...


class LedgerWriter(Protocol):
    """Write side of the ledger used by the send flow."""

    async def submit_transfer(
        self, token_contract: str, recipient: str, amount_base_units: int
    ) -> str: ...

    async def wait_for_confirmation(self, transaction_id: str) -> TransferReceipt: ...


def _to_hex(value: Any) -> str:
    """Hex-encode bytes (HexBytes included); strings pass through."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return str(value)


def receipt_from_rpc(raw: Mapping[str, Any]) -> TransferReceipt:
    """
    Convert a receipt from web3 or raw JSON-RPC into a TransferReceipt.

    Args:
        raw: Receipt mapping (status/blockNumber as int or hex string)

    Returns:
        TransferReceipt with lowercase hex fields
    """
    block_number = raw.get("blockNumber")
    if isinstance(block_number, int):
        block_reference = hex(block_number)
    else:
        block_reference = _to_hex(block_number).lower()

    entries = []
    for log in raw.get("logs") or []:
        entries.append(
            LogEntry(
                emitter_address=normalize_address(_to_hex(log.get("address"))),
                topics=tuple(_to_hex(topic).lower() for topic in log.get("topics") or []),
                data_payload=_to_hex(log.get("data")),
                log_index=log.get("logIndex"),
            )
        )

    return TransferReceipt(
        succeeded=hex_to_int(raw.get("status")) == RECEIPT_STATUS_SUCCESS,
        block_reference=block_reference,
        log_entries=tuple(entries),
    )


class Web3LedgerClient:
    """
    Ledger client backed by AsyncWeb3 over HTTP.

    Features:
    - Receipt and block reads
    - Signed ERC-20 transfers with capped gas estimation
    - Unbounded confirmation wait (cancel the awaiting task to stop)
    """

    def __init__(
        self,
        rpc_url: str,
        sender_private_key: str | None = None,
        web3: AsyncWeb3 | None = None,
        confirmation_timeout: float | None = None,
    ) -> None:
        """
        Initialize ledger client.

        Args:
            rpc_url: HTTP RPC endpoint
            sender_private_key: Key used to sign transfers (None for read-only)
            web3: Optional preconfigured AsyncWeb3 instance
            confirmation_timeout: Seconds to wait for a receipt (None = no limit)
        """
        self.web3 = web3 or AsyncWeb3(
            AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": BLOCKCHAIN_RPC_TIMEOUT})
        )
        self._private_key = sender_private_key
        self._confirmation_timeout = confirmation_timeout
        self._nonce_lock = asyncio.Lock()

    @property
    def sender_address(self) -> str | None:
        """Address derived from the configured key."""
        if not self._private_key:
            return None
        return Account.from_key(self._private_key).address.lower()

    async def get_receipt(self, transaction_id: str) -> TransferReceipt | None:
        """
        Get a transaction receipt.

        Returns:
            TransferReceipt, or None if the receipt is not indexed yet
        """
        try:
            raw = await asyncio.wait_for(
                self.web3.eth.get_transaction_receipt(transaction_id),
                timeout=BLOCKCHAIN_TIMEOUT,
            )
        except TransactionNotFound:
            return None

        if not raw:
            return None
        return receipt_from_rpc(raw)

    async def get_block_timestamp(self, block_reference: str) -> int | None:
        """
        Get the unix timestamp of a block.

        Args:
            block_reference: 0x-prefixed block number

        Returns:
            Timestamp in seconds, or None if the block is unknown
        """
        block_number = hex_to_int(block_reference)
        if block_number is None:
            return None

        try:
            block = await asyncio.wait_for(
                self.web3.eth.get_block(block_number),
                timeout=BLOCKCHAIN_TIMEOUT,
            )
        except BlockNotFound:
            return None

        return hex_to_int(block.get("timestamp"))

    async def get_token_balance(self, token_contract: str, owner: str) -> int:
        """Get an ERC-20 balance in base units."""
        contract = self.web3.eth.contract(
            address=Web3.to_checksum_address(token_contract), abi=ERC20_ABI
        )
        return await asyncio.wait_for(
            contract.functions.balanceOf(Web3.to_checksum_address(owner)).call(),
            timeout=BLOCKCHAIN_TIMEOUT,
        )

    async def submit_transfer(
        self, token_contract: str, recipient: str, amount_base_units: int
    ) -> str:
        """
        Sign and broadcast an ERC-20 transfer.

        Args:
            token_contract: Token contract address
            recipient: Recipient settlement address
            amount_base_units: Amount in base units

        Returns:
            0x-prefixed transaction hash

        Raises:
            ConfigurationMissing: If no sender key is configured
        """
        if not self._private_key:
            raise ConfigurationMissing("Sender key is not configured.")

        sender = Web3.to_checksum_address(self.sender_address)
        contract = self.web3.eth.contract(
            address=Web3.to_checksum_address(token_contract), abi=ERC20_ABI
        )
        transfer_function = contract.functions.transfer(
            Web3.to_checksum_address(recipient), int(amount_base_units)
        )

        # Lock nonce acquisition and sending to prevent nonce reuse
        async with self._nonce_lock:
            try:
                gas_estimate = await asyncio.wait_for(
                    transfer_function.estimate_gas({"from": sender}),
                    timeout=BLOCKCHAIN_TIMEOUT,
                )
                gas_limit = int(gas_estimate * GAS_LIMIT_MULTIPLIER)
            except TimeoutError:
                logger.warning("[Ledger] Timeout estimating gas, using default")
                gas_limit = DEFAULT_TOKEN_GAS_LIMIT

            nonce = await asyncio.wait_for(
                self.web3.eth.get_transaction_count(sender, "pending"),
                timeout=BLOCKCHAIN_TIMEOUT,
            )
            gas_price = await asyncio.wait_for(
                self.web3.eth.gas_price, timeout=BLOCKCHAIN_TIMEOUT
            )
            transaction = await transfer_function.build_transaction(
                {
                    "from": sender,
                    "gas": gas_limit,
                    "gasPrice": gas_price,
                    "nonce": nonce,
                }
            )

            signed_tx = Account.sign_transaction(transaction, self._private_key)
            tx_hash = await asyncio.wait_for(
                self.web3.eth.send_raw_transaction(signed_tx.raw_transaction),
                timeout=BLOCKCHAIN_TIMEOUT,
            )

        tx_hash_hex = Web3.to_hex(tx_hash).lower()
        logger.info(
            f"[Ledger] Transfer broadcast: {mask_tx_hash(tx_hash_hex)} "
            f"to={mask_address(recipient)} amount={amount_base_units}"
        )
        return tx_hash_hex

    async def wait_for_confirmation(self, transaction_id: str) -> TransferReceipt:
        """
        Wait until the transaction is mined.

        Returns:
            TransferReceipt of the mined transaction
        """
        raw = await self.web3.eth.wait_for_transaction_receipt(
            transaction_id, timeout=self._confirmation_timeout
        )
        return receipt_from_rpc(raw)
