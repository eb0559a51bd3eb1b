"""SettlementService: turn a finished round's ledger entries into payouts.

Preconditions, checked in order:
  1. the ledger holds at least one well-formed bet for (market, round)
  2. the round is the market's current round and has reached SETTLING
  3. no other settlement of the same (market, round) is in flight

Payouts are computed against the engine's final hit cells. With a relay
configured they are forwarded first; the ledger is cleared only once the
forward succeeds, so a failed forward can be retried.
"""

import logging

from src.pm_betting.domain.ledger import BetLedger
from src.pm_betting.domain.models import BetData
from src.pm_common.enums import RoundPhase
from src.pm_common.errors import (
    NothingToSettleError,
    RoundNotCurrentError,
    RoundNotFinishedError,
    SettlementInProgressError,
)
from src.pm_grid.domain.grid_math import hit_cell_keys
from src.pm_round.application.service import RoundEngineRegistry
from src.pm_settlement.application.schemas import SettlementReceipt
from src.pm_settlement.domain.payout import compute_payouts
from src.pm_settlement.infrastructure.relay_client import SettlementRelayProtocol

logger = logging.getLogger(__name__)

# shared across instances: the router builds one service per request
_IN_FLIGHT: set[tuple[int, int]] = set()


class SettlementService:
    def __init__(
        self,
        registry: RoundEngineRegistry,
        ledger: BetLedger,
        commission_bps: int,
        relay: SettlementRelayProtocol | None = None,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._commission_bps = commission_bps
        self._relay = relay

    async def settle_round(self, market_id: int, round_id: int) -> SettlementReceipt:
        key = (market_id, round_id)
        if key in _IN_FLIGHT:
            raise SettlementInProgressError(market_id, round_id)
        _IN_FLIGHT.add(key)
        try:
            return await self._settle(market_id, round_id)
        finally:
            _IN_FLIGHT.discard(key)

    async def _settle(self, market_id: int, round_id: int) -> SettlementReceipt:
        engine = self._registry.get(market_id)

        round_bets = self._ledger.get_round_bets(market_id, round_id)
        if round_bets is None or not round_bets.bets:
            raise NothingToSettleError(market_id, round_id, "no bets recorded")
        for bet_data in round_bets.bets:
            _check_bet_data(bet_data)

        state = engine.current_round
        if state is None or state.round_id != round_id:
            raise RoundNotCurrentError(round_id, state.round_id if state else None)
        if state.phase != RoundPhase.SETTLING:
            raise RoundNotFinishedError(round_id, state.phase.value)

        hit_cells = sorted(hit_cell_keys(state.hit_cells))
        result = compute_payouts(round_bets.bets, hit_cells, self._commission_bps)
        logger.info(
            "Computed payouts: market=%d round=%d pool=%d winners=%d payout=%d retained=%d%s",
            market_id,
            round_id,
            result.total_pool,
            len(result.participants),
            result.total_payout,
            result.house_retained,
            " (refund)" if result.refunded else "",
        )

        tx_hash = None
        if self._relay is not None:
            tx_hash = await self._relay.submit(market_id, round_id, hit_cells, result)

        self._ledger.clear_round(market_id, round_id)
        return SettlementReceipt.from_result(market_id, round_id, len(hit_cells), result, tx_hash)


def _check_bet_data(bet_data: BetData) -> None:
    if not bet_data.bets:
        raise NothingToSettleError(
            bet_data.market_id, bet_data.round_id, f"{bet_data.participant} has no bets"
        )
    for bet in bet_data.bets:
        if bet.amount <= 0 or not bet.cells:
            raise NothingToSettleError(
                bet_data.market_id,
                bet_data.round_id,
                f"malformed bet from {bet_data.participant}",
            )
    if sum(b.amount for b in bet_data.bets) != bet_data.total_amount:
        raise NothingToSettleError(
            bet_data.market_id,
            bet_data.round_id,
            f"total mismatch for {bet_data.participant}",
        )


_relay: SettlementRelayProtocol | None = None


def get_settlement_relay() -> SettlementRelayProtocol | None:
    return _relay


def set_settlement_relay(relay: SettlementRelayProtocol | None) -> None:
    global _relay  # noqa: PLW0603
    _relay = relay
