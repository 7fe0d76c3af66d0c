"""
Validators package.

Provides shape checks for recipient identifiers.
"""

from paylink.validators.unified import (
    normalize_phone,
    validate_email,
    validate_handle,
    validate_internal_id,
    validate_phone,
    validate_recipient_identifier,
    validate_wallet_address,
)


__all__ = [
    "normalize_phone",
    "validate_email",
    "validate_handle",
    "validate_internal_id",
    "validate_phone",
    "validate_recipient_identifier",
    "validate_wallet_address",
]
