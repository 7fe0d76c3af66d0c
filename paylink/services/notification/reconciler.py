"""
Payment Reconciler.

Server-side reconciliation of a bare transaction reference:
1. Validate sender, recipient and transaction hash
2. Check that notification delivery is configured
3. Poll the ledger for the receipt
4. Extract the transfer leg the sender authorized
5. Resolve the event time
6. Deliver the notification to the directory service

Each failure maps to one error kind of the taxonomy in
paylink.utils.exceptions, so callers can translate it to a status.
"""

from dataclasses import replace

from loguru import logger

from paylink.config.constants import NOTE_MAX_LENGTH, TOKEN_DECIMALS, TOKEN_SYMBOL
from paylink.models.notification import DeliveryResult, NotificationPayload
from paylink.services.blockchain.event_time_resolver import EventTimeResolver
from paylink.services.blockchain.receipt_poller import ReceiptPoller
from paylink.services.blockchain.transfer_event_extractor import extract_transfer_event
from paylink.utils.exceptions import (
    ConfigurationMissing,
    DeliveryFailure,
    InvalidInput,
    PayLinkError,
)
from paylink.utils.formatters import normalize_note
from paylink.utils.security import mask_address, mask_tx_hash
from paylink.utils.validation import (
    is_evm_address,
    normalize_address,
    normalize_tx_hash,
    validate_transaction_hash,
)

from .dispatcher import NotificationDispatcher


class PaymentReconciler:
    """Turns a transaction reference into a delivered notification."""

    def __init__(
        self,
        poller: ReceiptPoller,
        time_resolver: EventTimeResolver,
        dispatcher: NotificationDispatcher,
        token_contract: str,
        chain_id: int | None = None,
        token_symbol: str = TOKEN_SYMBOL,
        token_decimals: int = TOKEN_DECIMALS,
        note_max_length: int = NOTE_MAX_LENGTH,
    ) -> None:
        """
        Initialize payment reconciler.

        Args:
            poller: Receipt poller
            time_resolver: Block time resolver
            dispatcher: Notification dispatcher
            token_contract: Token contract the transfer must come from
            chain_id: Chain ID included in the payload
            token_symbol: Token symbol included in the payload
            token_decimals: Token precision included in the payload
            note_max_length: Maximum note length
        """
        self.poller = poller
        self.time_resolver = time_resolver
        self.dispatcher = dispatcher
        self.token_contract = normalize_address(token_contract)
        self.chain_id = chain_id
        self.token_symbol = token_symbol
        self.token_decimals = token_decimals
        self.note_max_length = note_max_length

    def _check_configured(self) -> None:
        if not self.dispatcher.directory.is_configured:
            raise ConfigurationMissing("Backend API is not configured.")
        if not self.dispatcher.directory.has_internal_key:
            raise ConfigurationMissing("Internal API key is not configured.")

    async def reconcile(
        self,
        sender: str,
        recipient: str,
        transaction_id: str,
        note: object = None,
    ) -> DeliveryResult:
        """
        Reconcile a submitted payment and notify the recipient.

        Args:
            sender: Authenticated sender address
            recipient: Claimed recipient address
            transaction_id: Claimed transaction hash
            note: Optional free-text note

        Returns:
            Successful DeliveryResult

        Raises:
            InvalidInput: Malformed sender, recipient or hash
            ConfigurationMissing: Directory URL or internal key not set
            ReceiptNotYetAvailable: Receipt not indexed yet
            OnChainFailure, NoMatchingTransfer, InvalidEventData: Final for this hash
            DeliveryFailure: Directory refused or could not be reached
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        transaction_id = normalize_tx_hash(transaction_id)
        note = normalize_note(note, self.note_max_length)

        if not is_evm_address(sender):
            raise InvalidInput("Invalid sender address.")
        if not is_evm_address(recipient):
            raise InvalidInput("Invalid recipient address.")
        if not validate_transaction_hash(transaction_id):
            raise InvalidInput("Invalid transaction hash.")

        self._check_configured()

        receipt = await self.poller.require(transaction_id)
        event = extract_transfer_event(receipt, self.token_contract, sender, recipient)
        event = replace(
            event, event_at=await self.time_resolver.resolve(receipt.block_reference)
        )

        payload = NotificationPayload.from_event(
            event,
            sender=sender,
            recipient=recipient,
            token_contract=self.token_contract,
            transaction_id=transaction_id,
            note=note,
            chain_id=self.chain_id,
            token_symbol=self.token_symbol,
            token_decimals=self.token_decimals,
        )

        result = await self.dispatcher.deliver(payload)
        if not result.success:
            raise DeliveryFailure(result.message)

        logger.success(
            f"[Reconciler] Notified {mask_address(recipient)} of "
            f"{event.amount_base_units} base units from {mask_address(sender)} "
            f"(tx {mask_tx_hash(transaction_id)}, log {event.log_index})"
        )
        return result

    async def notify(
        self,
        sender: str,
        recipient: str,
        transaction_id: str,
        note: object = None,
    ) -> DeliveryResult:
        """
        Reconcile without raising; errors become a failed DeliveryResult.

        In-process counterpart of PaymentNotificationClient.notify.
        """
        try:
            return await self.reconcile(sender, recipient, transaction_id, note)
        except PayLinkError as e:
            logger.info(
                f"[Reconciler] {type(e).__name__} for {mask_tx_hash(transaction_id)}: {e.message}"
            )
            return DeliveryResult(success=False, message=e.message, status_code=e.http_status)
