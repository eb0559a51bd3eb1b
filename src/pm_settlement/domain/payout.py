"""Parimutuel payout computation.

  1. total_pool      = Σ bet_data.total_amount            (0 → empty result)
  2. commission      = total_pool * bps // 10000
     prize_pool      = total_pool - commission
  3. winning_stake  += amount * hit_count // cell_count   per bet, per participant
  4. total_winning   = Σ winning_stake
  5. total_winning 0 → refund amount - amount * bps // 10000 to every participant
  6. otherwise       → payout = winning_stake * prize_pool // total_winning

Every division floors; remainders stay with the house (house_retained).
Payouts are not capped at stake: a sole winner takes the whole prize pool.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from src.pm_betting.domain.models import BetData
from src.pm_common.amounts import bps_of, validate_bps
from src.pm_grid.domain.models import CellKey


@dataclass(frozen=True)
class PayoutResult:
    participants: list[str] = field(default_factory=list)
    payouts: list[int] = field(default_factory=list)
    total_payout: int = 0
    total_pool: int = 0
    commission: int = 0
    refunded: bool = False  # no bet hit: stakes returned minus commission

    @property
    def house_retained(self) -> int:
        """Commission plus integer-division dust."""
        return self.total_pool - self.total_payout


def count_hits(cells: Iterable[CellKey], hit_cells: set[CellKey]) -> int:
    return sum(1 for cell in cells if cell in hit_cells)


def compute_payouts(
    bets: list[BetData], hit_cells: Iterable[CellKey], commission_bps: int
) -> PayoutResult:
    validate_bps(commission_bps)

    total_pool = sum(b.total_amount for b in bets)
    if total_pool == 0:
        return PayoutResult()

    commission = bps_of(total_pool, commission_bps)
    prize_pool = total_pool - commission
    hit_set = set(hit_cells)

    winning_stakes: dict[str, int] = {}
    for bet_data in bets:
        stake = winning_stakes.get(bet_data.participant, 0)
        for bet in bet_data.bets:
            hit_count = count_hits(bet.cells, hit_set)
            if hit_count > 0 and bet.cells:
                stake += bet.amount * hit_count // len(bet.cells)
        if stake > 0:
            winning_stakes[bet_data.participant] = stake

    total_winning_stake = sum(winning_stakes.values())
    if total_winning_stake == 0:
        return _refund_all(bets, commission_bps, total_pool, commission)

    participants: list[str] = []
    payouts: list[int] = []
    for participant, stake in winning_stakes.items():
        participants.append(participant)
        payouts.append(stake * prize_pool // total_winning_stake)

    return PayoutResult(
        participants=participants,
        payouts=payouts,
        total_payout=sum(payouts),
        total_pool=total_pool,
        commission=commission,
    )


def _refund_all(
    bets: list[BetData], commission_bps: int, total_pool: int, commission: int
) -> PayoutResult:
    """Nobody hit anything: everyone gets their stake back minus commission."""
    totals: dict[str, int] = {}
    for bet_data in bets:
        totals[bet_data.participant] = totals.get(bet_data.participant, 0) + bet_data.total_amount

    participants = list(totals)
    payouts = [amount - bps_of(amount, commission_bps) for amount in totals.values()]
    return PayoutResult(
        participants=participants,
        payouts=payouts,
        total_payout=sum(payouts),
        total_pool=total_pool,
        commission=commission,
        refunded=True,
    )
