"""Address, transaction hash and hex payload helpers."""

import re

from eth_utils import to_int

from paylink.config.constants import EVM_ADDRESS_PATTERN, TX_HASH_PATTERN

_EVM_ADDRESS_RE = re.compile(EVM_ADDRESS_PATTERN)
_TX_HASH_RE = re.compile(TX_HASH_PATTERN)
_HEX_RE = re.compile(r"^0x[0-9a-fA-F]+$")

UINT256_MAX = 2**256 - 1


def is_evm_address(value: object) -> bool:
    """
    Check settlement address shape (0x + 40 hex characters).

    Args:
        value: Candidate address

    Returns:
        True if the value matches the fixed-length hex pattern
    """
    return isinstance(value, str) and bool(_EVM_ADDRESS_RE.match(value.strip()))


def validate_transaction_hash(tx_hash: object) -> bool:
    """
    Validate transaction hash (0x + 64 hex characters).

    Args:
        tx_hash: Transaction hash

    Returns:
        True if valid
    """
    return isinstance(tx_hash, str) and bool(_TX_HASH_RE.match(tx_hash.strip()))


def normalize_address(value: object) -> str:
    """Trim and lowercase an address; anything that is not a string becomes ''."""
    return value.strip().lower() if isinstance(value, str) else ""


def normalize_tx_hash(value: object) -> str:
    """Trim and lowercase a transaction hash; anything that is not a string becomes ''."""
    return value.strip().lower() if isinstance(value, str) else ""


def addresses_equal(left: str | None, right: str | None) -> bool:
    """Case-insensitive address comparison; empty values never match."""
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()


def topic_to_address(topic: object) -> str | None:
    """
    Decode an indexed address topic.

    Topics are 32-byte words; addresses are right-aligned in the last 20 bytes.

    Args:
        topic: 0x-prefixed 32-byte hex string

    Returns:
        Lowercase 0x-prefixed address or None if the topic is malformed
    """
    if not isinstance(topic, str):
        return None
    t = topic.lower()
    if not t.startswith("0x") or len(t) != 66:
        return None
    return f"0x{t[-40:]}"


def hex_to_int(value: object) -> int | None:
    """
    Decode a 0x-prefixed hex quantity as a non-negative integer.

    Integers are passed through (web3 already decodes quantities).

    Returns:
        Decoded integer or None if the value is malformed
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if not isinstance(value, str) or not _HEX_RE.match(value.strip()):
        return None
    return to_int(hexstr=value.strip())


def hex_to_uint256(value: object) -> int | None:
    """Decode an ABI uint256 word; values wider than 256 bits are rejected."""
    decoded = hex_to_int(value)
    if decoded is None or decoded > UINT256_MAX:
        return None
    return decoded
