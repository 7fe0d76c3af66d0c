"""
Exception handling utilities.

Defines categorized exception types for proper error handling.
Every error carries a short human message, the HTTP-equivalent status it
maps to, and whether the user should be offered a retry.
"""

from aiohttp import ClientError
from web3.exceptions import Web3Exception


class PayLinkError(Exception):
    """Base class for all payment flow errors."""

    http_status: int = 500
    retryable: bool = False
    default_message: str = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(PayLinkError):
    """Local validation failure. Raised before any I/O."""

    http_status = 400
    default_message = "Invalid input."


class InvalidAmount(InvalidInput):
    """Amount is empty, malformed, non-positive or exceeds the balance."""

    default_message = "Enter a valid amount."


class RateUnavailable(InvalidInput):
    """No usable exchange rate for a local-currency amount."""

    http_status = 503
    retryable = True
    default_message = "Exchange rate unavailable."


class SelfSendBlocked(InvalidInput):
    """Recipient resolved to the sender's own address."""

    default_message = "You can't send to your own wallet."


class RecipientNotFound(PayLinkError):
    """Identifier is well-formed but the directory has no match."""

    http_status = 404
    default_message = "No user found for that identifier."


class DirectoryLookupError(PayLinkError):
    """Directory service is unreachable or the call itself failed."""

    http_status = 502
    retryable = True
    default_message = "Could not lookup recipient. Try again."


class ConfigurationMissing(PayLinkError):
    """A required collaborator is not configured."""

    http_status = 500
    default_message = "Backend API is not configured."


class SubmissionFailed(PayLinkError):
    """Ledger rejected the transfer or signing failed."""

    http_status = 400
    retryable = True
    default_message = "Payment failed."


class OnChainFailure(PayLinkError):
    """The settlement transaction reverted."""

    http_status = 400
    default_message = "Transaction failed on-chain."


class NoMatchingTransfer(PayLinkError):
    """Receipt holds no transfer for the expected contract and parties."""

    http_status = 400
    default_message = "No matching transfer found for this transaction."


class InvalidEventData(PayLinkError):
    """Matched transfer log could not be decoded."""

    http_status = 400
    default_message = "Invalid transfer event data."


class ReceiptNotYetAvailable(PayLinkError):
    """Receipt is not indexed yet; retry shortly."""

    http_status = 409
    retryable = True
    default_message = "Transaction receipt not available yet. Try again in a few seconds."


class DeliveryFailure(PayLinkError):
    """Notification could not be delivered. The payment itself succeeded."""

    http_status = 502
    retryable = True
    default_message = "Failed to deliver notification."


class FlowStateError(PayLinkError):
    """Operation is not allowed in the current send flow state."""

    http_status = 409
    default_message = "Action not available right now."


# Exception categories based on handling strategy

# Transport failures - retried or degraded, never surfaced raw
TRANSIENT_ERRORS = (
    ClientError,       # Directory / HTTP transport errors
    Web3Exception,     # Ledger RPC errors
    ConnectionError,
    TimeoutError,
    OSError,
)


def is_transient(exc: BaseException) -> bool:
    """
    Check if exception is a transport-level failure.

    Args:
        exc: Exception to check

    Returns:
        True if the operation may succeed when retried
    """
    if isinstance(exc, PayLinkError):
        return exc.retryable
    return isinstance(exc, TRANSIENT_ERRORS)

