"""Unified recipient identifier validators."""
import re

from web3 import Web3

from paylink.config.constants import (
    EMAIL_PATTERN,
    EVM_ADDRESS_PATTERN,
    HANDLE_PATTERN,
    INTERNAL_ID_PATTERN,
    PHONE_MIN_DIGITS,
)
from paylink.models.types import RecipientKind


def validate_wallet_address(address: str) -> tuple[bool, str | None]:
    """
    Single settlement address validator.

    Args:
        address: Wallet address to validate

    Returns:
        Tuple of (is_valid, error_message)
        - (True, None) if valid
        - (False, error_message) if invalid

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("invalid")
        (False, 'Enter a valid wallet address (0x…).')
    """
    message = "Enter a valid wallet address (0x…)."
    if not address or not isinstance(address, str):
        return False, message

    address = address.strip()

    if not re.match(EVM_ADDRESS_PATTERN, address):
        return False, message

    # Mixed-case input is accepted as-is; the checksum is not enforced
    try:
        Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        from loguru import logger
        logger.debug(f"Address validation failed for {address}: {e}")
        return False, message

    return True, None


def validate_email(email: str) -> tuple[bool, str | None]:
    """
    Single email validator: two parts around '@', a dot in the domain.

    Examples:
        >>> validate_email("user@example.com")
        (True, None)
    """
    message = "Enter a valid email address."
    if not email or not isinstance(email, str):
        return False, message

    email = email.strip()

    if len(email) > 255:
        return False, "Email is too long (maximum 255 characters)"

    if not re.match(EMAIL_PATTERN, email):
        return False, message

    return True, None


def normalize_phone(phone: str) -> str:
    """Strip spaces, parentheses and dashes."""
    return re.sub(r"[\s()-]", "", phone.strip())


def validate_phone(phone: str) -> tuple[bool, str | None]:
    """
    Single phone validator.

    Requires at least seven digits once separators are removed.

    Examples:
        >>> validate_phone("+254 712 345 678")
        (True, None)
        >>> validate_phone("12-34")
        (False, 'Enter a valid phone number.')
    """
    message = "Enter a valid phone number."
    if not phone or not isinstance(phone, str):
        return False, message

    if len(phone) > 50:
        return False, "Phone is too long (maximum 50 characters)"

    digits = re.sub(r"\D", "", normalize_phone(phone))
    if len(digits) < PHONE_MIN_DIGITS:
        return False, message

    return True, None


def validate_handle(handle: str) -> tuple[bool, str | None]:
    """
    Handle validator: optional @, then 3-20 letters, digits or underscores.
    """
    message = "Enter a valid @username."
    if not handle or not isinstance(handle, str):
        return False, message

    if not re.match(HANDLE_PATTERN, handle.strip(), re.IGNORECASE):
        return False, message

    return True, None


def validate_internal_id(value: str) -> tuple[bool, str | None]:
    """
    Directory ID validator.

    Accepts a directory-issued ID (DP followed by at least six digits) or a
    handle, since both are typed into the same field.
    """
    message = "Enter @username or an ID (DP…)."
    if not value or not isinstance(value, str):
        return False, message

    value = value.strip()
    looks_like_id = re.match(INTERNAL_ID_PATTERN, value, re.IGNORECASE)
    looks_like_handle = re.match(HANDLE_PATTERN, value, re.IGNORECASE)
    if not looks_like_id and not looks_like_handle:
        return False, message

    return True, None


_VALIDATORS = {
    RecipientKind.WALLET: validate_wallet_address,
    RecipientKind.EMAIL: validate_email,
    RecipientKind.PHONE: validate_phone,
    RecipientKind.HANDLE: validate_handle,
    RecipientKind.INTERNAL_ID: validate_internal_id,
}


def validate_recipient_identifier(
    kind: RecipientKind, raw_value: str
) -> tuple[bool, str | None]:
    """
    Shape check for a recipient identifier of the given kind.

    Args:
        kind: Declared identifier kind
        raw_value: Identifier as typed

    Returns:
        Tuple of (is_valid, error_message)
    """
    return _VALIDATORS[RecipientKind(kind)](raw_value)
