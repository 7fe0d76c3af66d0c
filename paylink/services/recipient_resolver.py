"""
Recipient resolution.

Resolves a typed recipient identifier to a settlement address:
- Shape validation per identifier kind (no I/O on invalid input)
- Debounced directory lookups
- Sequence numbers so only the latest input's response is applied
- Non-blocking directory enrichment of raw wallet addresses

Every input change takes a new sequence number. A lookup response is
applied only while its number is still the latest; older in-flight
responses are discarded when they arrive.
"""

import asyncio
from collections.abc import Callable
from typing import Protocol

from loguru import logger

from paylink.config.constants import LOOKUP_DEBOUNCE_SECONDS
from paylink.models.recipient import DirectoryUser, RecipientIdentifier, ResolvedRecipient
from paylink.models.types import RecipientKind, ResolutionStatus
from paylink.utils.exceptions import (
    ConfigurationMissing,
    DirectoryLookupError,
    PayLinkError,
    RecipientNotFound,
)
from paylink.utils.formatters import format_recipient_name, short_address
from paylink.utils.security import mask_identifier
from paylink.utils.validation import addresses_equal, normalize_address
from paylink.validators.unified import validate_recipient_identifier


class DirectoryLookup(Protocol):
    """Directory operations needed for resolution."""

    @property
    def is_configured(self) -> bool: ...

    async def lookup(self, query: str) -> DirectoryUser | None: ...

    async def get_by_address(self, address: str) -> DirectoryUser | None: ...


def recipient_from_user(user: DirectoryUser, fallback_address: str = "") -> ResolvedRecipient:
    """Build a ResolvedRecipient from a directory record."""
    address = normalize_address(user.address) or fallback_address
    return ResolvedRecipient(
        settlement_address=address,
        display_name=format_recipient_name(address, user.handle, user.internal_id),
        handle=user.handle,
        internal_id=user.internal_id,
    )


class RecipientResolver:
    """
    Per-field recipient resolution state machine.

    States: idle -> validating -> invalid | resolving -> resolved | not_found | lookup_error.
    Wallet addresses skip "resolving" and are resolved synchronously.
    """

    def __init__(
        self,
        directory: DirectoryLookup,
        debounce: float = LOOKUP_DEBOUNCE_SECONDS,
        on_change: Callable[["RecipientResolver"], None] | None = None,
    ) -> None:
        """
        Initialize recipient resolver.

        Args:
            directory: Directory lookup collaborator
            debounce: Quiet period (seconds) before a lookup is issued
            on_change: Called after every state change
        """
        self.directory = directory
        self.debounce = debounce
        self._on_change = on_change

        self.identifier: RecipientIdentifier | None = None
        self.status = ResolutionStatus.IDLE
        self.resolved: ResolvedRecipient | None = None
        self.message: str | None = None
        self.error: PayLinkError | None = None

        self._sequence = 0
        self._debounce_task: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def sequence(self) -> int:
        """Latest issued sequence number."""
        return self._sequence

    @property
    def is_resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED and self.resolved is not None

    @property
    def can_retry(self) -> bool:
        return self.status == ResolutionStatus.LOOKUP_ERROR and bool(
            self.error and self.error.retryable
        )

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def _set_state(
        self,
        status: ResolutionStatus,
        resolved: ResolvedRecipient | None = None,
        message: str | None = None,
        error: PayLinkError | None = None,
    ) -> None:
        self.status = status
        self.resolved = resolved
        self.message = message
        self.error = error
        self._changed()

    def cancel_pending(self) -> None:
        """Cancel a pending debounce timer. In-flight lookups keep running."""
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    def set_input(self, kind: RecipientKind, raw_value: str) -> ResolutionStatus:
        """
        Update the identifier and start resolving it.

        Must be called from a running event loop when a lookup may be needed.

        Args:
            kind: Declared identifier kind
            raw_value: Identifier as typed

        Returns:
            Status right after the synchronous part of resolution
        """
        self.cancel_pending()
        self._sequence += 1
        kind = RecipientKind(kind)
        self.identifier = RecipientIdentifier(kind=kind, raw_value=raw_value or "")
        query = self.identifier.query

        if not query:
            self._set_state(ResolutionStatus.IDLE)
            return self.status

        self.status = ResolutionStatus.VALIDATING
        is_valid, error_message = validate_recipient_identifier(kind, query)
        if not is_valid:
            self._set_state(ResolutionStatus.INVALID, message=error_message)
            return self.status

        if kind == RecipientKind.WALLET:
            address = query.lower()
            self._set_state(
                ResolutionStatus.RESOLVED,
                resolved=ResolvedRecipient(
                    settlement_address=address,
                    display_name=short_address(address),
                ),
            )
            if self.directory.is_configured:
                self._schedule(self._sequence, address, enrich=True)
            return self.status

        if not self.directory.is_configured:
            error = ConfigurationMissing(
                "Recipient lookup is unavailable (backend not configured)."
            )
            self._set_state(ResolutionStatus.LOOKUP_ERROR, message=error.message, error=error)
            return self.status

        self._set_state(ResolutionStatus.RESOLVING)
        self._schedule(self._sequence, query, enrich=False)
        return self.status

    def clear(self) -> None:
        """Clear the input and cancel any pending lookup."""
        kind = self.identifier.kind if self.identifier else RecipientKind.INTERNAL_ID
        self.set_input(kind, "")

    def retry(self) -> ResolutionStatus:
        """Re-issue the lookup for the current input."""
        if self.identifier is None:
            return self.status
        return self.set_input(self.identifier.kind, self.identifier.raw_value)

    def is_self_send(self, sender_address: str | None) -> bool:
        """True when the resolved recipient is the sender's own address."""
        if self.resolved is None:
            return False
        return addresses_equal(self.resolved.settlement_address, sender_address)

    def _schedule(self, sequence: int, query: str, enrich: bool) -> None:
        self._debounce_task = asyncio.create_task(self._debounced(sequence, query, enrich))

    async def _debounced(self, sequence: int, query: str, enrich: bool) -> None:
        await asyncio.sleep(self.debounce)

        task = asyncio.create_task(self._run_lookup(sequence, query, enrich))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

        if self._debounce_task is asyncio.current_task():
            self._debounce_task = None

    async def _run_lookup(self, sequence: int, query: str, enrich: bool) -> None:
        try:
            if enrich:
                user = await self.directory.get_by_address(query)
            else:
                user = await self.directory.lookup(query)
        except PayLinkError as e:
            error = e
            user = None
        except Exception as e:
            logger.error(f"[Recipient Resolver] Lookup failed unexpectedly: {e}")
            error = DirectoryLookupError()
            user = None
        else:
            error = None

        if sequence != self._sequence:
            logger.debug(
                f"[Recipient Resolver] Discarding stale response #{sequence} "
                f"(latest #{self._sequence})"
            )
            return

        if enrich:
            # Best effort: the address-derived resolution already stands
            if error is not None:
                logger.debug(f"[Recipient Resolver] Enrichment skipped: {error.message}")
            elif user is not None and user.address:
                self._set_state(
                    ResolutionStatus.RESOLVED,
                    resolved=recipient_from_user(user, fallback_address=query),
                )
            return

        if error is not None:
            logger.warning(
                f"[Recipient Resolver] Lookup for {mask_identifier(query)} failed: {error.message}"
            )
            self._set_state(ResolutionStatus.LOOKUP_ERROR, message=error.message, error=error)
            return

        if user is None or not user.address:
            not_found = RecipientNotFound()
            self._set_state(ResolutionStatus.NOT_FOUND, message=not_found.message, error=not_found)
            return

        self._set_state(ResolutionStatus.RESOLVED, resolved=recipient_from_user(user))

    async def wait_settled(self) -> None:
        """Wait for the pending debounce timer and all in-flight lookups."""
        while True:
            pending = list(self._in_flight)
            if self._debounce_task is not None and not self._debounce_task.done():
                pending.append(self._debounce_task)
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        """Cancel the timer and in-flight lookups (end of session)."""
        tasks = list(self._in_flight)
        if self._debounce_task is not None:
            tasks.append(self._debounce_task)
        self.cancel_pending()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
