"""
Server Initialization - Services Module.

Module: services.py
Constructs the process-wide collaborators once and wires them together.
Builds per-user send sessions from the same settings.
Validates environment variables.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from paylink.config.settings import Settings
from paylink.services.blockchain import (
    EventTimeResolver,
    ReceiptPoller,
    TransferSubmitter,
    Web3LedgerClient,
)
from paylink.services.directory import DirectoryClient
from paylink.services.notification import (
    NotificationDispatcher,
    PaymentNotifier,
    PaymentReconciler,
)
from paylink.services.recipient_resolver import DirectoryLookup, RecipientResolver
from paylink.services.send_flow import NoticeCallback, SendFlow
from paylink.utils.security import mask_sensitive


@dataclass
class ServiceContainer:
    """Collaborators shared by every request of the process."""

    directory: DirectoryClient
    ledger: Web3LedgerClient
    dispatcher: NotificationDispatcher
    reconciler: PaymentReconciler


def validate_environment(settings: Settings) -> None:
    """Log configuration gaps; the server still starts and answers 500 for them."""
    if not settings.rpc_url:
        logger.error("PAYLINK_RPC_URL is not configured")
    if not settings.directory_api_url:
        logger.warning(
            "PAYLINK_DIRECTORY_API_URL is not configured. "
            "Payment notifications will be rejected until it is set."
        )
    if not settings.internal_api_key:
        logger.warning("PAYLINK_INTERNAL_API_KEY is not configured")
    else:
        logger.info(f"Internal API key: {mask_sensitive(settings.internal_api_key)}")


def initialize_all_services(settings: Settings) -> ServiceContainer:
    """Construct directory, ledger and reconciliation services."""
    validate_environment(settings)

    directory = DirectoryClient(
        base_url=settings.directory_api_url,
        internal_key=settings.internal_api_key,
    )
    ledger = Web3LedgerClient(rpc_url=settings.rpc_url)
    dispatcher = NotificationDispatcher(directory)

    reconciler = PaymentReconciler(
        poller=ReceiptPoller(
            ledger,
            attempts=settings.receipt_poll_attempts,
            delay=settings.receipt_poll_delay,
        ),
        time_resolver=EventTimeResolver(ledger),
        dispatcher=dispatcher,
        token_contract=settings.token_contract_address,
        chain_id=settings.chain_id,
        token_symbol=settings.token_symbol,
        token_decimals=settings.token_decimals,
        note_max_length=settings.note_max_length,
    )

    logger.info(
        f"Services initialized (chain {settings.chain_id}, "
        f"token {settings.token_symbol} {settings.token_contract_address})"
    )
    return ServiceContainer(
        directory=directory,
        ledger=ledger,
        dispatcher=dispatcher,
        reconciler=reconciler,
    )


def create_send_session(
    settings: Settings,
    directory: DirectoryLookup,
    notifier: PaymentNotifier,
    ledger: Web3LedgerClient | None = None,
    balance: int | None = None,
    rate: Decimal | None = None,
    on_notice: NoticeCallback | None = None,
) -> SendFlow:
    """
    Build one compose session of the payment form.

    Args:
        settings: Application settings
        directory: Directory used for recipient lookups
        notifier: Notification endpoint caller
        ledger: Signing ledger client (built from settings when omitted)
        balance: Sender's token balance in base units, if known
        rate: Local units per token, if known
        on_notice: Receives user-visible notices

    Returns:
        SendFlow in the compose step
    """
    if ledger is None:
        ledger = Web3LedgerClient(
            rpc_url=settings.rpc_url,
            sender_private_key=settings.sender_private_key,
        )
    if ledger.sender_address is None:
        logger.warning("PAYLINK_SENDER_PRIVATE_KEY is not configured; submissions will fail")

    resolver = RecipientResolver(directory, debounce=settings.lookup_debounce_seconds)
    return SendFlow(
        resolver=resolver,
        submitter=TransferSubmitter(ledger, settings.token_contract_address),
        notifier=notifier,
        confirmer=ledger,
        sender_address=ledger.sender_address,
        balance=balance,
        rate=rate,
        token_symbol=settings.token_symbol,
        token_decimals=settings.token_decimals,
        note_max_length=settings.note_max_length,
        explorer_url=settings.explorer_tx_url,
        on_notice=on_notice,
    )
