"""
Send flow.

Client-side state machine of one compose session:

    compose -> review -> submitting -> submitted -> confirmed

review -> compose (edit) is the only backward transition. A failed
submission returns to compose with the error kept in last_error.

After a successful submission two background tasks run independently of
the UI state: a first, best-effort notification attempt and a wait for
ledger confirmation, which on success triggers the second notification
attempt. The "submitted" state is shown before the ledger confirms it.
"""

import asyncio
from collections.abc import Callable
from decimal import Decimal
from typing import Protocol

from loguru import logger

from paylink.config.constants import NOTE_MAX_LENGTH, TOKEN_DECIMALS, TOKEN_SYMBOL
from paylink.models.amount import AmountSpec
from paylink.models.notification import DeliveryResult
from paylink.models.recipient import ResolvedRecipient
from paylink.models.transfer import TransferReceipt, TransferReference
from paylink.models.types import DisplayCurrency, NoticeLevel, SendStep
from paylink.services.amount_normalizer import build_amount_spec, check_balance
from paylink.services.blockchain.transfer_submitter import TransferSubmitter
from paylink.services.notification.client import PaymentNotifier
from paylink.services.recipient_resolver import RecipientResolver
from paylink.utils.exceptions import (
    FlowStateError,
    InvalidAmount,
    InvalidInput,
    OnChainFailure,
    PayLinkError,
    SelfSendBlocked,
)
from paylink.utils.formatters import explorer_link, normalize_note
from paylink.utils.security import mask_address, mask_tx_hash

NoticeCallback = Callable[[NoticeLevel, str], None]

STEP_LABELS = {
    SendStep.COMPOSE: "",
    SendStep.REVIEW: "Review payment",
    SendStep.SUBMITTING: "Sending…",
    SendStep.SUBMITTED: "Submitted",
    SendStep.CONFIRMED: "Confirmed",
}


class ConfirmationWaiter(Protocol):
    """Waits until a broadcast transaction is mined."""

    async def wait_for_confirmation(self, transaction_id: str) -> TransferReceipt: ...


class SendFlow:
    """
    One compose session of the payment form.

    Single flight: a new submission cannot start while one is submitting.
    """

    def __init__(
        self,
        resolver: RecipientResolver,
        submitter: TransferSubmitter,
        notifier: PaymentNotifier,
        confirmer: ConfirmationWaiter,
        sender_address: str | None = None,
        balance: int | None = None,
        rate: Decimal | None = None,
        token_symbol: str = TOKEN_SYMBOL,
        token_decimals: int = TOKEN_DECIMALS,
        note_max_length: int = NOTE_MAX_LENGTH,
        explorer_url: str | None = None,
        on_notice: NoticeCallback | None = None,
    ) -> None:
        """
        Initialize send flow.

        Args:
            resolver: Recipient resolver bound to the recipient field
            submitter: Transfer submitter
            notifier: Payment notification caller
            confirmer: Ledger confirmation waiter
            sender_address: Connected wallet address
            balance: Known token balance in base units (None = unknown)
            rate: Local units per token
            token_symbol: Token symbol for messages
            token_decimals: Token precision
            note_max_length: Maximum note length
            explorer_url: Block explorer transaction URL prefix
            on_notice: Receives user-visible notices
        """
        self.resolver = resolver
        self.submitter = submitter
        self.notifier = notifier
        self.confirmer = confirmer
        self.sender_address = sender_address
        self.balance = balance
        self.rate = rate
        self.token_symbol = token_symbol
        self.token_decimals = token_decimals
        self.note_max_length = note_max_length
        self.explorer_url = explorer_url
        self._on_notice = on_notice

        self.step = SendStep.COMPOSE
        self.display_value = ""
        self.display_currency = DisplayCurrency.TOKEN
        self.note: str | None = None

        self.recipient: ResolvedRecipient | None = None
        self.amount_base_units: int | None = None
        self.reference: TransferReference | None = None
        self.last_error: PayLinkError | None = None
        self.confirmation_error: Exception | None = None
        self.first_notification: DeliveryResult | None = None
        self.second_notification: DeliveryResult | None = None

        self._session = 0
        self._background: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Compose
    # ------------------------------------------------------------------

    @property
    def amount(self) -> AmountSpec:
        """Amount derived from the typed value and the rate at read time."""
        return build_amount_spec(
            self.display_value, self.display_currency, self.rate, self.token_decimals
        )

    def set_amount(
        self,
        display_value: str,
        currency: DisplayCurrency | None = None,
    ) -> AmountSpec:
        """Update the typed amount (and optionally its currency)."""
        self._require_step(SendStep.COMPOSE)
        self.display_value = display_value or ""
        if currency is not None:
            self.display_currency = DisplayCurrency(currency)
        return self.amount

    def set_note(self, note: str | None) -> None:
        self._require_step(SendStep.COMPOSE)
        self.note = normalize_note(note, self.note_max_length)

    def check_ready(self) -> tuple[ResolvedRecipient, int]:
        """
        Evaluate the compose -> review guards.

        Returns:
            Resolved recipient and amount in base units

        Raises:
            InvalidInput: No wallet connected or recipient not resolved
            SelfSendBlocked: Recipient is the sender
            InvalidAmount: Amount missing, invalid or above balance
        """
        if not self.sender_address:
            raise InvalidInput("Connect your wallet first.")

        if not self.resolver.is_resolved:
            raise InvalidInput(self.resolver.message or "Select a recipient.")

        if self.resolver.is_self_send(self.sender_address):
            raise SelfSendBlocked()

        spec = self.amount
        if spec.error:
            raise InvalidAmount(spec.error)
        if not spec.is_positive:
            raise InvalidAmount("Enter an amount.")

        check_balance(spec.token_base_units, self.balance, self.token_symbol)
        return self.resolver.resolved, spec.token_base_units

    @property
    def can_continue(self) -> bool:
        if self.step != SendStep.COMPOSE:
            return False
        try:
            self.check_ready()
        except PayLinkError:
            return False
        return True

    def continue_to_review(self) -> None:
        """Move from compose to review, freezing recipient and amount."""
        self._require_step(SendStep.COMPOSE)
        self.recipient, self.amount_base_units = self.check_ready()
        self.last_error = None
        self.step = SendStep.REVIEW

    def edit(self) -> None:
        """Go back from review to compose."""
        self._require_step(SendStep.REVIEW)
        self.step = SendStep.COMPOSE

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    async def submit(self) -> TransferReference | None:
        """
        Submit the reviewed transfer exactly once.

        Returns:
            TransferReference on success, None when submission failed

        Raises:
            FlowStateError: Not in review, or a submission is in flight
        """
        if self.step == SendStep.SUBMITTING:
            raise FlowStateError("A payment is already being submitted.")
        self._require_step(SendStep.REVIEW)

        self.step = SendStep.SUBMITTING
        try:
            reference = await self.submitter.submit(
                self.recipient.settlement_address, self.amount_base_units
            )
        except PayLinkError as e:
            logger.warning(f"[Send Flow] Submission failed: {e.message}")
            self.step = SendStep.COMPOSE
            self.last_error = e
            self._notice(NoticeLevel.ERROR, e.message)
            return None
        except Exception:
            self.step = SendStep.COMPOSE
            raise

        self.reference = reference
        self.step = SendStep.SUBMITTED
        self._notice(NoticeLevel.SUCCESS, "Payment sent.")

        logger.info(
            f"[Send Flow] Submitted {mask_tx_hash(reference.transaction_id)} "
            f"to {mask_address(self.recipient.settlement_address)}"
        )

        request = (self.sender_address, self.recipient.settlement_address, self.note)
        self._spawn(self._first_notification(self._session, reference, *request))
        self._spawn(self._await_confirmation(self._session, reference, *request))
        return reference

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _first_notification(
        self,
        session: int,
        reference: TransferReference,
        sender: str,
        recipient: str,
        note: str | None,
    ) -> None:
        # Receipt is usually not indexed yet; failure here is expected and silent
        result = await self.notifier.notify(sender, recipient, reference.transaction_id, note)
        logger.debug(
            f"[Send Flow] First notification for {mask_tx_hash(reference.transaction_id)}: "
            f"success={result.success} {result.message}"
        )
        if session == self._session:
            self.first_notification = result

    async def _await_confirmation(
        self,
        session: int,
        reference: TransferReference,
        sender: str,
        recipient: str,
        note: str | None,
    ) -> None:
        tx_label = mask_tx_hash(reference.transaction_id)

        try:
            receipt = await self.confirmer.wait_for_confirmation(reference.transaction_id)
        except Exception as e:
            # Already broadcast; the flow keeps showing "submitted"
            logger.warning(f"[Send Flow] Confirmation wait failed for {tx_label}: {e}")
            if session == self._session:
                self.confirmation_error = e
            return

        if not receipt.succeeded:
            logger.error(f"[Send Flow] Transaction {tx_label} reverted on-chain")
            if session == self._session:
                self.last_error = OnChainFailure()
                self._notice(NoticeLevel.ERROR, self.last_error.message)
            return

        if session == self._session:
            self.step = SendStep.CONFIRMED
            self._notice(NoticeLevel.SUCCESS, "Payment confirmed.")
        logger.info(f"[Send Flow] Confirmed {tx_label}")

        result = await self.notifier.notify(sender, recipient, reference.transaction_id, note)
        if session != self._session:
            return

        self.second_notification = result
        if not result.success and note:
            self._notice(
                NoticeLevel.ERROR,
                f"Payment sent, but the note could not be delivered: {result.message}",
            )

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """
        Start a fresh compose session.

        Background tasks of the previous session keep running (the
        recipient still gets notified) but no longer touch this state.
        """
        if self.step == SendStep.SUBMITTING:
            raise FlowStateError("A payment is already being submitted.")

        self._session += 1
        self.step = SendStep.COMPOSE
        self.display_value = ""
        self.note = None
        self.recipient = None
        self.amount_base_units = None
        self.reference = None
        self.last_error = None
        self.confirmation_error = None
        self.first_notification = None
        self.second_notification = None
        self.resolver.clear()

    async def wait_background(self) -> None:
        """Wait for background notification and confirmation tasks."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    @property
    def display_status(self) -> str:
        return STEP_LABELS[self.step]

    @property
    def transaction_link(self) -> str | None:
        """Explorer link of the submitted transaction."""
        if not self.explorer_url or self.reference is None:
            return None
        return explorer_link(self.explorer_url, self.reference.transaction_id)

    def _require_step(self, expected: SendStep) -> None:
        if self.step != expected:
            raise FlowStateError(f"Action not available while {self.step.value}.")

    def _notice(self, level: NoticeLevel, message: str) -> None:
        if self._on_notice is not None:
            self._on_notice(level, message)
