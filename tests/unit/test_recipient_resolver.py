"""Unit tests for the recipient resolver state machine."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from paylink.models.recipient import DirectoryUser
from paylink.models.types import RecipientKind, ResolutionStatus
from paylink.services.recipient_resolver import RecipientResolver
from paylink.utils.exceptions import (
    ConfigurationMissing,
    DirectoryLookupError,
    RecipientNotFound,
)


class TestWalletResolution:
    """Settlement addresses resolve locally, then enrich."""

    @pytest.mark.asyncio
    async def test_wallet_resolves_synchronously(self, mock_directory, recipient_address):
        """No network call is needed to reach resolved."""
        mock_directory.is_configured = False
        resolver = RecipientResolver(mock_directory, debounce=0)

        status = resolver.set_input(RecipientKind.WALLET, recipient_address.upper().replace("0X", "0x"))

        assert status == ResolutionStatus.RESOLVED
        assert resolver.resolved.settlement_address == recipient_address
        assert resolver.resolved.display_name == "0x2222…2222"

        await resolver.wait_settled()
        mock_directory.lookup.assert_not_called()
        mock_directory.get_by_address.assert_not_called()

    @pytest.mark.asyncio
    async def test_wallet_enrichment_supersedes_display_name(
        self, mock_directory, recipient_address
    ):
        mock_directory.get_by_address = AsyncMock(
            return_value=DirectoryUser(address=recipient_address, handle="alice")
        )
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.WALLET, recipient_address)
        assert resolver.resolved.display_name == "0x2222…2222"

        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.RESOLVED
        assert resolver.resolved.display_name == "@alice"
        mock_directory.get_by_address.assert_awaited_once_with(recipient_address)

    @pytest.mark.asyncio
    async def test_wallet_enrichment_failure_is_ignored(self, mock_directory, recipient_address):
        mock_directory.get_by_address = AsyncMock(side_effect=DirectoryLookupError())
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.WALLET, recipient_address)
        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.RESOLVED
        assert resolver.resolved.display_name == "0x2222…2222"
        assert resolver.error is None

    @pytest.mark.asyncio
    async def test_invalid_wallet_never_triggers_lookup(self, mock_directory):
        resolver = RecipientResolver(mock_directory, debounce=0)

        status = resolver.set_input(RecipientKind.WALLET, "0x1234")
        await resolver.wait_settled()

        assert status == ResolutionStatus.INVALID
        assert resolver.message == "Enter a valid wallet address (0x…)."
        mock_directory.get_by_address.assert_not_called()
        mock_directory.lookup.assert_not_called()


class TestDirectoryResolution:
    """Handles, IDs, emails and phones go through the directory."""

    @pytest.mark.asyncio
    async def test_handle_resolves(self, mock_directory, recipient_address):
        resolver = RecipientResolver(mock_directory, debounce=0)

        status = resolver.set_input(RecipientKind.HANDLE, " @alice ")
        assert status == ResolutionStatus.RESOLVING

        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.RESOLVED
        assert resolver.resolved.settlement_address == recipient_address
        assert resolver.resolved.display_name == "@alice"
        assert resolver.resolved.internal_id == "DP123456"
        mock_directory.lookup.assert_awaited_once_with("@alice")

    @pytest.mark.asyncio
    async def test_invalid_handle_fails_fast(self, mock_directory):
        resolver = RecipientResolver(mock_directory, debounce=0)

        status = resolver.set_input(RecipientKind.HANDLE, "a!")
        await resolver.wait_settled()

        assert status == ResolutionStatus.INVALID
        assert resolver.message == "Enter a valid @username."
        mock_directory.lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_found_is_a_normal_outcome(self, mock_directory):
        mock_directory.lookup = AsyncMock(return_value=None)
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.EMAIL, "nobody@example.com")
        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.NOT_FOUND
        assert isinstance(resolver.error, RecipientNotFound)
        assert resolver.resolved is None
        assert not resolver.can_retry

    @pytest.mark.asyncio
    async def test_lookup_error_is_retryable(self, mock_directory):
        mock_directory.lookup = AsyncMock(side_effect=DirectoryLookupError())
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.PHONE, "+254 712 345 678")
        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.LOOKUP_ERROR
        assert resolver.message == "Could not lookup recipient. Try again."
        assert resolver.can_retry

    @pytest.mark.asyncio
    async def test_unexpected_failure_becomes_lookup_error(self, mock_directory):
        mock_directory.lookup = AsyncMock(side_effect=RuntimeError("boom"))
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.HANDLE, "alice")
        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.LOOKUP_ERROR
        assert isinstance(resolver.error, DirectoryLookupError)

    @pytest.mark.asyncio
    async def test_unconfigured_directory_is_distinct_from_lookup_error(self, mock_directory):
        mock_directory.is_configured = False
        resolver = RecipientResolver(mock_directory, debounce=0)

        status = resolver.set_input(RecipientKind.HANDLE, "alice")
        await resolver.wait_settled()

        assert status == ResolutionStatus.LOOKUP_ERROR
        assert isinstance(resolver.error, ConfigurationMissing)
        assert resolver.message == "Recipient lookup is unavailable (backend not configured)."
        assert not resolver.can_retry
        mock_directory.lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_retry_reissues_lookup(self, mock_directory, recipient_address):
        mock_directory.lookup = AsyncMock(
            side_effect=[
                DirectoryLookupError(),
                DirectoryUser(address=recipient_address, handle="alice"),
            ]
        )
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.HANDLE, "alice")
        await resolver.wait_settled()
        assert resolver.status == ResolutionStatus.LOOKUP_ERROR

        resolver.retry()
        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.RESOLVED
        assert mock_directory.lookup.await_count == 2


class TestSequencingAndDebounce:
    """Only the latest input's response is ever applied."""

    @pytest.mark.asyncio
    async def test_stale_response_never_overwrites_newer_resolution(
        self, mock_directory, recipient_address, other_address
    ):
        """A is issued before B; B answers first; A's late answer is discarded."""
        release_first = asyncio.Event()

        async def lookup(query):
            if query == "alice":
                await release_first.wait()
                return DirectoryUser(address=other_address, handle="alice")
            return DirectoryUser(address=recipient_address, handle="bob")

        mock_directory.lookup = AsyncMock(side_effect=lookup)
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.HANDLE, "alice")
        await asyncio.sleep(0.01)
        assert mock_directory.lookup.call_count == 1

        resolver.set_input(RecipientKind.HANDLE, "bob")
        await asyncio.sleep(0.01)
        assert resolver.resolved.display_name == "@bob"

        release_first.set()
        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.RESOLVED
        assert resolver.resolved.display_name == "@bob"
        assert resolver.resolved.settlement_address == recipient_address

    @pytest.mark.asyncio
    async def test_stale_response_discarded_after_input_becomes_invalid(
        self, mock_directory
    ):
        release = asyncio.Event()

        async def lookup(query):
            await release.wait()
            return DirectoryUser(address="0x" + "4" * 40, handle=query)

        mock_directory.lookup = AsyncMock(side_effect=lookup)
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.HANDLE, "alice")
        await asyncio.sleep(0.01)
        resolver.set_input(RecipientKind.HANDLE, "a!")

        release.set()
        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.INVALID
        assert resolver.resolved is None

    @pytest.mark.asyncio
    async def test_rapid_typing_issues_a_single_lookup(self, mock_directory):
        resolver = RecipientResolver(mock_directory, debounce=0.05)

        for partial in ("ali", "alic", "alice"):
            resolver.set_input(RecipientKind.HANDLE, partial)
            await asyncio.sleep(0.005)

        await resolver.wait_settled()

        mock_directory.lookup.assert_awaited_once_with("alice")
        assert resolver.status == ResolutionStatus.RESOLVED

    @pytest.mark.asyncio
    async def test_clear_cancels_pending_lookup(self, mock_directory):
        resolver = RecipientResolver(mock_directory, debounce=0.05)

        resolver.set_input(RecipientKind.HANDLE, "alice")
        resolver.clear()
        await resolver.wait_settled()

        assert resolver.status == ResolutionStatus.IDLE
        mock_directory.lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_kind_change_cancels_pending_lookup(self, mock_directory, recipient_address):
        mock_directory.is_configured = True
        mock_directory.get_by_address = AsyncMock(return_value=None)
        resolver = RecipientResolver(mock_directory, debounce=0.05)

        resolver.set_input(RecipientKind.HANDLE, "alice")
        resolver.set_input(RecipientKind.WALLET, recipient_address)
        await resolver.wait_settled()

        mock_directory.lookup.assert_not_called()
        assert resolver.resolved.settlement_address == recipient_address

    @pytest.mark.asyncio
    async def test_sequence_increases_on_every_input(self, mock_directory):
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.HANDLE, "alice")
        first = resolver.sequence
        resolver.set_input(RecipientKind.HANDLE, "bob")

        assert resolver.sequence > first
        await resolver.close()


class TestSelfSend:
    """Self-send detection."""

    @pytest.mark.asyncio
    async def test_self_send_detected_for_any_kind(self, mock_directory, sender_address):
        mock_directory.lookup = AsyncMock(
            return_value=DirectoryUser(address=sender_address.upper().replace("0X", "0x"))
        )
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.HANDLE, "myself")
        await resolver.wait_settled()

        assert resolver.is_self_send(sender_address)
        assert resolver.is_self_send(sender_address.upper())

    @pytest.mark.asyncio
    async def test_other_recipient_is_not_self_send(self, mock_directory, sender_address):
        resolver = RecipientResolver(mock_directory, debounce=0)

        resolver.set_input(RecipientKind.HANDLE, "alice")
        await resolver.wait_settled()

        assert not resolver.is_self_send(sender_address)

    def test_unresolved_is_not_self_send(self, mock_directory, sender_address):
        resolver = RecipientResolver(mock_directory)

        assert not resolver.is_self_send(sender_address)


class TestChangeCallback:
    """on_change observers."""

    @pytest.mark.asyncio
    async def test_callback_sees_every_transition(self, mock_directory):
        seen = []
        resolver = RecipientResolver(
            mock_directory, debounce=0, on_change=lambda r: seen.append(r.status)
        )

        resolver.set_input(RecipientKind.HANDLE, "alice")
        await resolver.wait_settled()

        assert seen == [ResolutionStatus.RESOLVING, ResolutionStatus.RESOLVED]
