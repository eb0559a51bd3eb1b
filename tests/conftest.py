"""Shared test fixtures."""

import heapq
import itertools
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_common.errors import AllPriceSourcesFailedError
from src.pm_common.scheduler import Callback, run_callback
from src.pm_grid.domain.models import MarketConfig
from src.pm_price.domain.models import PriceDataPoint
from src.pm_round.engine.events import RoundEvent

T0 = 1_700_000_000  # divisible by 5: column starts line up with round start


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Virtual-time scheduler
# ---------------------------------------------------------------------------


class ManualHandle:
    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass(order=True)
class _Entry:
    due: float
    seq: int
    callback: Callback = field(compare=False)
    handle: ManualHandle = field(compare=False)
    interval: float | None = field(default=None, compare=False)


class ManualScheduler:
    """Timers fire only inside advance(); same-instant timers fire in scheduling order."""

    def __init__(self, start: float = T0) -> None:
        self._now = start
        self._heap: list[_Entry] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> ManualHandle:
        return self._push(self._now + delay, callback, None)

    def call_every(self, interval: float, callback: Callback) -> ManualHandle:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        return self._push(self._now, callback, interval)

    def _push(
        self,
        due: float,
        callback: Callback,
        interval: float | None,
        handle: ManualHandle | None = None,
    ) -> ManualHandle:
        handle = handle or ManualHandle()
        heapq.heappush(self._heap, _Entry(due, next(self._seq), callback, handle, interval))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for e in self._heap if not e.handle.cancelled)

    async def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while self._heap and self._heap[0].due <= target:
            entry = heapq.heappop(self._heap)
            if entry.handle.cancelled:
                continue
            self._now = entry.due
            if entry.interval is not None:
                self._push(entry.due + entry.interval, entry.callback, entry.interval, entry.handle)
            await run_callback(entry.callback)
        self._now = target


# ---------------------------------------------------------------------------
# Round engine collaborators
# ---------------------------------------------------------------------------


class FakePriceFetcher:
    """Serves scripted prices stamped with the scheduler's clock.

    A None in the script raises AllPriceSourcesFailedError for that call.
    Once the script runs out the last price repeats.
    """

    def __init__(self, scheduler: ManualScheduler, prices: Iterable[int | str | None]) -> None:
        self._scheduler = scheduler
        self._prices = list(prices)
        self._last: Decimal | None = None
        self.calls = 0

    def push(self, *prices: int | str | None) -> None:
        self._prices.extend(prices)

    async def fetch_price(self, asset: str) -> PriceDataPoint:
        self.calls += 1
        if self._prices:
            raw = self._prices.pop(0)
            if raw is None:
                raise AllPriceSourcesFailedError(asset, ["fake: scripted failure"])
            self._last = Decimal(str(raw))
        elif self._last is None:
            raise AllPriceSourcesFailedError(asset, ["fake: no prices"])
        return PriceDataPoint(
            price=self._last, timestamp=int(self._scheduler.now()), source="fake"
        )


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[tuple[int, RoundEvent]] = []

    async def publish(self, market_id: int, event: RoundEvent) -> None:
        self.events.append((market_id, event))

    def types(self) -> list[str]:
        return [event.type for _, event in self.events]


@pytest.fixture
def fast_market() -> MarketConfig:
    """10s betting, 10s live, $100 rows, 5s columns."""
    return MarketConfig(
        market_id=1,
        market_name="BTC/USDC",
        asset="BTC",
        price_increment=100,
        time_increment=5,
        round_duration=20,
        betting_duration=10,
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_fetcher(scheduler: ManualScheduler):
    def _make(*prices: int | str | None) -> FakePriceFetcher:
        return FakePriceFetcher(scheduler, prices)

    return _make
