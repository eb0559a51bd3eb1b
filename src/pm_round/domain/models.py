"""Domain models for pm_round: one round's mutable state, owned by its RoundEngine."""

from dataclasses import dataclass, field
from decimal import Decimal

from src.pm_common.enums import RoundPhase
from src.pm_grid.domain.models import GridBounds, GridCell
from src.pm_price.domain.models import PriceDataPoint


@dataclass
class RoundState:
    market_id: int
    round_id: int
    phase: RoundPhase
    round_start_time: int
    betting_end_time: int
    live_end_time: int
    initial_price: Decimal
    current_price: Decimal
    grid_bounds: GridBounds
    # append-only: samples are never reordered or mutated
    price_history: list[PriceDataPoint] = field(default_factory=list)
    hit_cells: list[GridCell] = field(default_factory=list)

    @property
    def is_live(self) -> bool:
        return self.phase == RoundPhase.LIVE
