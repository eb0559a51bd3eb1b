"""BetIntakeService: the only writer into BetLedger.

A bet is accepted only for a market's current round while it is still in
BETTING. Anything else is rejected so the client resubmits for the next
round; late bets are never buffered here.
"""

from src.pm_betting.application.schemas import PlaceBetsRequest, PlaceBetsResponse
from src.pm_betting.domain.ledger import BetLedger
from src.pm_common.amounts import validate_amount
from src.pm_common.enums import RoundPhase
from src.pm_common.errors import BettingClosedError, InvalidBetError
from src.pm_round.application.service import RoundEngineRegistry


class BetIntakeService:
    def __init__(self, registry: RoundEngineRegistry, ledger: BetLedger) -> None:
        self._registry = registry
        self._ledger = ledger

    def place_bets(self, req: PlaceBetsRequest) -> PlaceBetsResponse:
        engine = self._registry.get(req.market_id)
        state = engine.current_round
        if state is None or state.round_id != req.round_id:
            current = state.round_id if state else None
            raise BettingClosedError(
                req.market_id, req.round_id, f"not the current round (current is {current})"
            )
        if state.phase != RoundPhase.BETTING:
            raise BettingClosedError(req.market_id, req.round_id, f"phase is {state.phase.value}")

        bet_data = req.to_domain()
        for bet in bet_data.bets:
            try:
                validate_amount(bet.amount)
            except ValueError as exc:
                raise InvalidBetError(str(exc)) from exc
            if not bet.cells:
                raise InvalidBetError("bet must target at least one cell")

        round_bets = self._ledger.add_bet(bet_data)
        return PlaceBetsResponse(
            participant=bet_data.participant,
            market_id=bet_data.market_id,
            round_id=bet_data.round_id,
            total_amount=str(bet_data.total_amount),
            bet_count=len(bet_data.bets),
            round_total_pool=str(round_bets.total_pool),
        )
