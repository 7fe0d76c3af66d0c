"""
Transfer Submitter.

Wraps the single ledger write of a token transfer.
"""

from loguru import logger
from web3.exceptions import Web3Exception

from paylink.models.transfer import TransferReference
from paylink.utils.exceptions import PayLinkError, SubmissionFailed, is_transient
from paylink.utils.security import mask_address, mask_tx_hash
from paylink.utils.validation import normalize_tx_hash, validate_transaction_hash

from .ledger_client import LedgerWriter


class TransferSubmitter:
    """Submits one token transfer and returns its reference."""

    def __init__(self, ledger: LedgerWriter, token_contract: str) -> None:
        """
        Initialize transfer submitter.

        Args:
            ledger: Ledger write collaborator (signing included)
            token_contract: Token contract address
        """
        self.ledger = ledger
        self.token_contract = token_contract

    async def submit(self, recipient: str, amount_base_units: int) -> TransferReference:
        """
        Submit a transfer.

        Args:
            recipient: Recipient settlement address
            amount_base_units: Positive amount in base units

        Returns:
            TransferReference of the broadcast transaction

        Raises:
            SubmissionFailed: If signing or broadcasting fails
        """
        if amount_base_units <= 0:
            raise SubmissionFailed("Amount must be greater than 0.")

        logger.info(
            f"[Transfer Submitter] Sending {amount_base_units} base units "
            f"to {mask_address(recipient)}"
        )

        try:
            tx_hash = await self.ledger.submit_transfer(
                self.token_contract, recipient, amount_base_units
            )
        except PayLinkError as e:
            raise SubmissionFailed(e.message) from e
        except (Web3Exception, ValueError) as e:
            logger.error(f"[Transfer Submitter] Ledger rejected transfer: {e}")
            raise SubmissionFailed(str(e) or None) from e
        except Exception as e:
            if not is_transient(e):
                raise
            logger.error(f"[Transfer Submitter] Transport failure: {e}")
            raise SubmissionFailed() from e

        tx_hash = normalize_tx_hash(tx_hash)
        if not validate_transaction_hash(tx_hash):
            raise SubmissionFailed("Ledger returned an invalid transaction hash.")

        logger.success(f"[Transfer Submitter] Submitted {mask_tx_hash(tx_hash)}")
        return TransferReference(transaction_id=tx_hash)
