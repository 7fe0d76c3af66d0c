"""
Event Time Resolver.

Maps a receipt's block to an approximate wall-clock time.
"""

from collections.abc import Callable
from datetime import datetime

from loguru import logger

from paylink.utils.datetime_utils import from_unix_timestamp, utc_now

from .ledger_client import LedgerReader


class EventTimeResolver:
    """Best-effort block timestamp lookup with a "now" fallback."""

    def __init__(
        self,
        ledger: LedgerReader,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.ledger = ledger
        self._clock = clock

    async def resolve(self, block_reference: str | None) -> datetime:
        """
        Resolve the event time of a block. Never raises.

        Args:
            block_reference: 0x-prefixed block number from the receipt

        Returns:
            Block time, or the current time when the lookup fails
        """
        fallback = self._clock()

        if not block_reference or not block_reference.startswith("0x"):
            return fallback

        try:
            timestamp = await self.ledger.get_block_timestamp(block_reference)
            if timestamp is None:
                return fallback
            return from_unix_timestamp(timestamp)
        except Exception as e:
            logger.debug(f"[Event Time] Block {block_reference} timestamp unavailable: {e}")
            return fallback
