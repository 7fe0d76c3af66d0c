"""
Recipient models.

Values produced by the recipient resolver; never mutated in place.
"""

from dataclasses import dataclass

from paylink.models.types import RecipientKind


@dataclass(frozen=True)
class RecipientIdentifier:
    """Identifier as typed by the sender."""

    kind: RecipientKind
    raw_value: str

    @property
    def query(self) -> str:
        """Trimmed lookup query."""
        return self.raw_value.strip()


@dataclass(frozen=True)
class ResolvedRecipient:
    """Canonical recipient with a settlement address."""

    settlement_address: str  # lowercase 0x + 40 hex
    display_name: str
    handle: str | None = None
    internal_id: str | None = None


@dataclass(frozen=True)
class DirectoryUser:
    """User record as returned by the directory service."""

    address: str
    handle: str | None = None
    internal_id: str | None = None
    email: str | None = None
    phone: str | None = None
    id: str | None = None
