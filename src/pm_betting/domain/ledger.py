"""BetLedger: in-memory bets per (market, round).

Bets are lost on restart along with the rounds they belong to. A round left
unsettled when its market moves on is evicted and logged. All mutation
happens on the event loop, so no locking.
"""

import logging

from src.pm_betting.domain.models import BetData, RoundBets, RoundBetsSummary

logger = logging.getLogger(__name__)


class BetLedger:
    def __init__(self) -> None:
        self._rounds: dict[tuple[int, int], RoundBets] = {}

    def add_bet(self, bet_data: BetData) -> RoundBets:
        """Record a participant's bets; an existing entry for the participant is replaced."""
        key = (bet_data.market_id, bet_data.round_id)
        round_bets = self._rounds.get(key)
        if round_bets is None:
            round_bets = RoundBets(market_id=bet_data.market_id, round_id=bet_data.round_id)
            self._rounds[key] = round_bets

        existing = next(
            (i for i, b in enumerate(round_bets.bets) if b.participant == bet_data.participant),
            None,
        )
        if existing is not None:
            round_bets.total_pool -= round_bets.bets[existing].total_amount
            round_bets.bets[existing] = bet_data
        else:
            round_bets.bets.append(bet_data)
        round_bets.total_pool += bet_data.total_amount

        logger.info(
            "Added bet: participant=%s market=%d round=%d amount=%d pool=%d",
            bet_data.participant[:10],
            bet_data.market_id,
            bet_data.round_id,
            bet_data.total_amount,
            round_bets.total_pool,
        )
        return round_bets

    def get_round_bets(self, market_id: int, round_id: int) -> RoundBets | None:
        return self._rounds.get((market_id, round_id))

    def clear_round(self, market_id: int, round_id: int) -> None:
        self._rounds.pop((market_id, round_id), None)
        logger.info("Cleared round: market=%d round=%d", market_id, round_id)

    def evict_before(self, market_id: int, round_id: int) -> list[RoundBetsSummary]:
        """Drop the market's rounds older than round_id; they can no longer be settled."""
        evicted: list[RoundBetsSummary] = []
        for key, r in list(self._rounds.items()):
            if r.market_id != market_id or r.round_id >= round_id:
                continue
            del self._rounds[key]
            evicted.append(_summarize(r))
            logger.warning(
                "Evicted unsettled round: market=%d round=%d bets=%d pool=%d",
                r.market_id,
                r.round_id,
                len(r.bets),
                r.total_pool,
            )
        return evicted

    def get_active_rounds(self) -> list[RoundBets]:
        return list(self._rounds.values())

    def get_summary(self) -> list[RoundBetsSummary]:
        return [_summarize(r) for r in self._rounds.values()]


def _summarize(r: RoundBets) -> RoundBetsSummary:
    return RoundBetsSummary(
        market_id=r.market_id,
        round_id=r.round_id,
        bet_count=len(r.bets),
        total_pool=r.total_pool,
    )


_ledger: BetLedger | None = None


def get_bet_ledger() -> BetLedger:
    global _ledger  # noqa: PLW0603
    if _ledger is None:
        _ledger = BetLedger()
    return _ledger
