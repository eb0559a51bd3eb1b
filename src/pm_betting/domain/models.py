"""Domain models for pm_betting: pure dataclasses, no business logic."""

from dataclasses import dataclass, field

from src.pm_grid.domain.models import CellKey


@dataclass(frozen=True)
class Bet:
    amount: int  # smallest token unit, spread equally across cells
    cells: tuple[CellKey, ...]


@dataclass(frozen=True)
class BetData:
    """One participant's whole wager on a (market, round). Resubmission replaces it."""

    participant: str
    market_id: int
    round_id: int
    total_amount: int
    bets: tuple[Bet, ...]

    @classmethod
    def from_bets(
        cls, participant: str, market_id: int, round_id: int, bets: list[Bet]
    ) -> "BetData":
        return cls(
            participant=participant,
            market_id=market_id,
            round_id=round_id,
            total_amount=sum(b.amount for b in bets),
            bets=tuple(bets),
        )


@dataclass
class RoundBets:
    market_id: int
    round_id: int
    bets: list[BetData] = field(default_factory=list)
    total_pool: int = 0

    @property
    def key(self) -> tuple[int, int]:
        return (self.market_id, self.round_id)


@dataclass(frozen=True)
class RoundBetsSummary:
    market_id: int
    round_id: int
    bet_count: int
    total_pool: int
