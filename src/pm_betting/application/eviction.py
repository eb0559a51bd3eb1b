"""Evicts a market's unsettled ledger rounds once its next round starts."""

import logging

from src.pm_betting.domain.ledger import BetLedger
from src.pm_common.enums import RoundEventType
from src.pm_round.engine.events import RoundEvent

logger = logging.getLogger(__name__)


class LedgerEvictionSink:
    """EventSink that clears stale rounds from the ledger on ROUND_START."""

    def __init__(self, ledger: BetLedger) -> None:
        self._ledger = ledger

    async def publish(self, market_id: int, event: RoundEvent) -> None:
        if event.type != RoundEventType.ROUND_START:
            return
        evicted = self._ledger.evict_before(market_id, event.payload.round_id)
        if evicted:
            logger.warning(
                "Market %d round %d started with %d unsettled rounds evicted (pool %d)",
                market_id,
                event.payload.round_id,
                len(evicted),
                sum(s.total_pool for s in evicted),
            )
