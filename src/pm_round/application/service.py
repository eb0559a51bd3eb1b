"""RoundEngineRegistry: one RoundEngine per configured market.

Engines are independent: each owns its own RoundState and timers. The
registry only maps market ids to engines and drives startup/shutdown.
"""

import logging
from collections.abc import Iterable

from src.pm_common.errors import MarketNotFoundError
from src.pm_common.scheduler import Scheduler
from src.pm_grid.domain.models import MarketConfig
from src.pm_round.engine.engine import RoundEngine
from src.pm_round.engine.events import EventSink
from src.pm_round.engine.protocols import PriceFetcherProtocol

logger = logging.getLogger(__name__)


class RoundEngineRegistry:
    def __init__(self) -> None:
        self._engines: dict[int, RoundEngine] = {}

    def register(self, engine: RoundEngine) -> None:
        market_id = engine.market.market_id
        if market_id in self._engines:
            raise ValueError(f"Market {market_id} already registered")
        self._engines[market_id] = engine

    def get(self, market_id: int) -> RoundEngine:
        engine = self._engines.get(market_id)
        if engine is None:
            raise MarketNotFoundError(market_id)
        return engine

    def find(self, market_id: int) -> RoundEngine | None:
        return self._engines.get(market_id)

    @property
    def market_ids(self) -> list[int]:
        return sorted(self._engines)

    async def start_all(self, first_round_id: int = 1) -> None:
        """Start round 1 everywhere. A market without a baseline price must not start."""
        for engine in self._engines.values():
            try:
                await engine.start_round(first_round_id)
            except Exception:
                logger.error("Market %s failed to start", engine.market.market_name)
                raise

    def stop_all(self) -> None:
        for engine in self._engines.values():
            engine.stop()


def build_registry(
    markets: Iterable[MarketConfig],
    price_fetcher: PriceFetcherProtocol,
    scheduler: Scheduler,
    sink: EventSink,
    *,
    poll_interval: float,
    next_round_delay: float,
    visible_rows: int,
) -> RoundEngineRegistry:
    registry = RoundEngineRegistry()
    for market in markets:
        registry.register(
            RoundEngine(
                market,
                price_fetcher,
                scheduler,
                sink,
                poll_interval=poll_interval,
                next_round_delay=next_round_delay,
                visible_rows=visible_rows,
            )
        )
    return registry


_registry: RoundEngineRegistry | None = None


def get_round_registry() -> RoundEngineRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = RoundEngineRegistry()
    return _registry


def set_round_registry(registry: RoundEngineRegistry) -> None:
    global _registry  # noqa: PLW0603
    _registry = registry
