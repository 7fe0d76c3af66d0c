"""
Exchange rate service.

Caches the local-currency rate (local units per token) used by the amount
normalizer. A failed refresh falls back to the last good rate.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from decimal import Decimal

from loguru import logger

from paylink.config.constants import EXCHANGE_RATE_FETCH_RETRIES, EXCHANGE_RATE_TTL_SECONDS
from paylink.services.amount_normalizer import parse_rate
from paylink.utils.exceptions import RateUnavailable

RateFetcher = Callable[[], Awaitable[object]]


class ExchangeRateService:
    """
    TTL-cached exchange rate.

    Features:
    - One retry per refresh
    - Invalid (non-positive, non-finite) rates rejected
    - Stale rate served when a refresh fails
    """

    def __init__(
        self,
        fetcher: RateFetcher,
        ttl: float = EXCHANGE_RATE_TTL_SECONDS,
        retries: int = EXCHANGE_RATE_FETCH_RETRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize exchange rate service.

        Args:
            fetcher: Coroutine factory returning local units per token
            ttl: Seconds a fetched rate stays fresh
            retries: Extra attempts after a failed fetch
            clock: Monotonic time source
        """
        self._fetcher = fetcher
        self._ttl = ttl
        self._retries = retries
        self._clock = clock
        self._rate: Decimal | None = None
        self._fetched_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def cached_rate(self) -> Decimal | None:
        return self._rate

    def is_fresh(self) -> bool:
        if self._rate is None or self._fetched_at is None:
            return False
        return self._clock() - self._fetched_at < self._ttl

    def invalidate(self) -> None:
        """Force the next get_rate() to refresh."""
        self._fetched_at = None

    async def get_rate(self) -> Decimal:
        """
        Get the current rate, refreshing it when stale.

        Returns:
            Local units per token

        Raises:
            RateUnavailable: If no rate was ever fetched successfully
        """
        if self.is_fresh():
            return self._rate

        async with self._lock:
            # Another caller may have refreshed while we waited
            if self.is_fresh():
                return self._rate

            last_error: Exception | None = None
            for attempt in range(self._retries + 1):
                try:
                    rate = parse_rate(await self._fetcher())
                except Exception as e:
                    last_error = e
                    logger.warning(
                        f"[Exchange Rate] Fetch attempt {attempt + 1}/"
                        f"{self._retries + 1} failed: {e}"
                    )
                    continue

                self._rate = rate
                self._fetched_at = self._clock()
                logger.debug(f"[Exchange Rate] Refreshed: {rate}")
                return rate

            if self._rate is not None:
                logger.warning(
                    f"[Exchange Rate] Serving stale rate {self._rate} after failed refresh"
                )
                return self._rate

            raise RateUnavailable() from last_error
