"""PriceFetcher: ordered failover across quote providers.

Per request:
  1. Fast path: the last source that succeeded is retried first under a
     short timeout.
  2. Full scan: otherwise (or if the fast path fails) every source is tried
     in order under the longer timeout; first success wins.
  3. If every source fails, AllPriceSourcesFailedError lists each reason.
     No stale or synthetic price is ever returned.

A last-successful source that keeps failing during full scans is demoted
after MAX consecutive failures so the next request starts from the primary.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import httpx

from src.pm_common.datetime_utils import unix_seconds
from src.pm_common.errors import AllPriceSourcesFailedError, PriceSourceError
from src.pm_price.domain.models import PriceDataPoint, PriceSource, SourceStatus
from src.pm_price.sources.binance import BinancePriceSource
from src.pm_price.sources.coingecko import CoinGeckoPriceSource
from src.pm_price.sources.kraken import KrakenPriceSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

FAST_PATH_TIMEOUT_SECONDS = 3.0
SCAN_TIMEOUT_SECONDS = 5.0
MAX_CONSECUTIVE_FAILURES = 3


class PriceFetcher:
    def __init__(
        self,
        sources: Sequence[PriceSource],
        *,
        fast_path_timeout: float = FAST_PATH_TIMEOUT_SECONDS,
        scan_timeout: float = SCAN_TIMEOUT_SECONDS,
        max_failures: int = MAX_CONSECUTIVE_FAILURES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not sources:
            raise ValueError("PriceFetcher needs at least one source")
        self._sources = list(sources)  # primary first, then fallbacks
        self._fast_path_timeout = fast_path_timeout
        self._scan_timeout = scan_timeout
        self._max_failures = max_failures
        self._clock = clock
        self._last_successful: str | None = None
        self._failure_counts: dict[str, int] = {s.name: 0 for s in self._sources}

    @property
    def last_successful_source(self) -> str | None:
        return self._last_successful

    async def fetch_price(self, asset: str) -> PriceDataPoint:
        timestamp = unix_seconds(self._clock())

        last = self._find_source(self._last_successful)
        if last is not None:
            try:
                price = await self._with_timeout(last.fetch_price(asset), self._fast_path_timeout)
            except (PriceSourceError, TimeoutError) as exc:
                logger.debug("Fast path via %s failed: %s", last.name, _reason(exc))
            else:
                self._record_success(last.name)
                return PriceDataPoint(price=price, timestamp=timestamp, source=last.name)

        reasons: list[str] = []
        for source in self._sources:
            try:
                price = await self._with_timeout(source.fetch_price(asset), self._scan_timeout)
            except (PriceSourceError, TimeoutError) as exc:
                reasons.append(f"{source.name}: {_reason(exc)}")
                self._record_failure(source.name)
                continue
            self._record_success(source.name)
            logger.info("[Price] %s = %s from %s", asset, price, source.name)
            return PriceDataPoint(price=price, timestamp=timestamp, source=source.name)

        raise AllPriceSourcesFailedError(asset, reasons)

    def get_status(self) -> dict[str, SourceStatus]:
        return {
            s.name: SourceStatus(
                failures=self._failure_counts[s.name],
                is_last_successful=s.name == self._last_successful,
            )
            for s in self._sources
        }

    def _find_source(self, name: str | None) -> PriceSource | None:
        if name is None:
            return None
        return next((s for s in self._sources if s.name == name), None)

    async def _with_timeout(self, awaitable: Awaitable[T], seconds: float) -> T:
        return await asyncio.wait_for(awaitable, timeout=seconds)

    def _record_success(self, name: str) -> None:
        self._last_successful = name
        self._failure_counts[name] = 0

    def _record_failure(self, name: str) -> None:
        self._failure_counts[name] += 1
        if self._failure_counts[name] >= self._max_failures and name == self._last_successful:
            logger.warning(
                "Demoting %s after %d consecutive failures", name, self._failure_counts[name]
            )
            self._last_successful = None


def _reason(exc: Exception) -> str:
    if isinstance(exc, TimeoutError):
        return "Timeout"
    if isinstance(exc, PriceSourceError):
        # message already carries the "<source>: " prefix
        return exc.message.removeprefix(f"{exc.source}: ")
    return str(exc)


def build_default_sources(client: httpx.AsyncClient) -> list[PriceSource]:
    """Binance (primary) -> Kraken -> CoinGecko."""
    return [
        BinancePriceSource(client),
        KrakenPriceSource(client),
        CoinGeckoPriceSource(client),
    ]


_fetcher: PriceFetcher | None = None


def get_price_fetcher() -> PriceFetcher:
    if _fetcher is None:
        raise RuntimeError("PriceFetcher not initialised; call set_price_fetcher() at startup")
    return _fetcher


def set_price_fetcher(fetcher: PriceFetcher | None) -> None:
    global _fetcher  # noqa: PLW0603
    _fetcher = fetcher
