"""
Receipt Poller.

Waits for a transaction receipt to be indexed after broadcast.
"""

import asyncio

from loguru import logger

from paylink.config.constants import RECEIPT_POLL_ATTEMPTS, RECEIPT_POLL_DELAY_SECONDS
from paylink.models.transfer import TransferReceipt
from paylink.utils.exceptions import ReceiptNotYetAvailable, is_transient
from paylink.utils.security import mask_tx_hash

from .ledger_client import LedgerReader


class ReceiptPoller:
    """
    Polls the ledger for a transaction receipt.

    Features:
    - Bounded attempts with a fixed delay (no backoff; total wait is short)
    - Transport failures counted as ordinary misses
    - Exhaustion reported as "absent", not as an error
    """

    def __init__(
        self,
        ledger: LedgerReader,
        attempts: int = RECEIPT_POLL_ATTEMPTS,
        delay: float = RECEIPT_POLL_DELAY_SECONDS,
    ) -> None:
        """
        Initialize receipt poller.

        Args:
            ledger: Ledger read collaborator
            attempts: Maximum receipt lookups
            delay: Seconds between lookups
        """
        if attempts < 1:
            raise ValueError("attempts must be >= 1")
        self.ledger = ledger
        self.attempts = attempts
        self.delay = delay

    async def poll(self, transaction_id: str) -> TransferReceipt | None:
        """
        Poll for a receipt.

        Args:
            transaction_id: Transaction hash

        Returns:
            TransferReceipt, or None if every attempt came back empty
        """
        for attempt in range(self.attempts):
            try:
                receipt = await self.ledger.get_receipt(transaction_id)
            except Exception as e:
                log = logger.warning if is_transient(e) else logger.error
                log(
                    f"[Receipt Poller] Attempt {attempt + 1}/{self.attempts} for "
                    f"{mask_tx_hash(transaction_id)} failed: {e}"
                )
                receipt = None

            if receipt is not None:
                if attempt > 0:
                    logger.info(
                        f"[Receipt Poller] Receipt for {mask_tx_hash(transaction_id)} "
                        f"found on attempt {attempt + 1}"
                    )
                return receipt

            if attempt < self.attempts - 1:
                await asyncio.sleep(self.delay)

        logger.info(
            f"[Receipt Poller] No receipt for {mask_tx_hash(transaction_id)} "
            f"after {self.attempts} attempts"
        )
        return None

    async def require(self, transaction_id: str) -> TransferReceipt:
        """
        Poll for a receipt, raising when it is still absent.

        Raises:
            ReceiptNotYetAvailable: If every attempt came back empty
        """
        receipt = await self.poll(transaction_id)
        if receipt is None:
            raise ReceiptNotYetAvailable()
        return receipt
