"""
Formatters utility.

Utility functions for formatting data for display and payloads.
"""

import re

from paylink.config.constants import NOTE_MAX_LENGTH


def short_address(address: str) -> str:
    """
    Shorten a settlement address for display: 0x1234…abcd

    Args:
        address: Full 0x-prefixed address

    Returns:
        First 6 and last 4 characters joined by an ellipsis
    """
    return f"{address[:6]}…{address[-4:]}"


def format_recipient_name(
    address: str,
    handle: str | None = None,
    internal_id: str | None = None,
) -> str:
    """
    Format recipient as @handle, internal ID or shortened address.

    Args:
        address: Settlement address
        handle: Directory handle without the leading @
        internal_id: Directory-issued identifier

    Returns:
        Display name, most specific first
    """
    if handle:
        return f"@{handle.lstrip('@')}"
    if internal_id:
        return internal_id
    return short_address(address)


def normalize_note(value: object, max_length: int = NOTE_MAX_LENGTH) -> str | None:
    """
    Collapse whitespace in a payment note and cap its length.

    Args:
        value: Raw note (anything that is not a string is dropped)
        max_length: Maximum number of characters kept

    Returns:
        Normalized note or None when empty
    """
    if not isinstance(value, str):
        return None
    collapsed = re.sub(r"\s+", " ", value).strip()
    if not collapsed:
        return None
    return collapsed[:max_length]


def explorer_link(base_url: str, tx_hash: str | None) -> str | None:
    """Get block explorer URL for transaction."""
    if not tx_hash:
        return None
    return f"{base_url.rstrip('/')}/{tx_hash}"
