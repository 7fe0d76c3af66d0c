"""
Standard enum definitions shared across the payment flow.
"""

from enum import StrEnum


class RecipientKind(StrEnum):
    """How the sender identifies the recipient."""

    INTERNAL_ID = "internal_id"  # Directory-issued ID (DP123456789) or handle
    HANDLE = "handle"
    WALLET = "wallet"  # Settlement address
    EMAIL = "email"
    PHONE = "phone"


class ResolutionStatus(StrEnum):
    """Recipient resolver states."""

    IDLE = "idle"
    VALIDATING = "validating"
    INVALID = "invalid"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    LOOKUP_ERROR = "lookup_error"


class DisplayCurrency(StrEnum):
    """Currency the amount is typed in."""

    LOCAL = "LOCAL"
    TOKEN = "TOKEN"


class SendStep(StrEnum):
    """Send flow states."""

    COMPOSE = "compose"
    REVIEW = "review"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"


class NoticeLevel(StrEnum):
    """Severity of a user-visible notice."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
