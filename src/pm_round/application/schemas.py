"""Pydantic schemas for pm_round HTTP responses.

Hit cells go out in the settlement consumer's format: decimal strings for
timeSlotStart (uint256) and dataRangeStart (int256), so no JSON number
precision is lost on the way to the contract call.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.pm_grid.domain.models import CellKey, GridCell
from src.pm_round.domain.models import RoundState


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CellKeyOut(_CamelModel):
    time_slot_start: str
    data_range_start: str

    @classmethod
    def from_domain(cls, key: CellKey) -> "CellKeyOut":
        return cls(
            time_slot_start=str(key.time_slot_start),
            data_range_start=str(key.data_range_start),
        )


class HitCellsResponse(_CamelModel):
    market_id: int
    round_id: int
    hit_cells: list[CellKeyOut]

    @classmethod
    def from_cells(cls, market_id: int, round_id: int, cells: list[GridCell]) -> "HitCellsResponse":
        return cls(
            market_id=market_id,
            round_id=round_id,
            hit_cells=[CellKeyOut.from_domain(c.key) for c in cells],
        )


class CurrentRoundResponse(_CamelModel):
    market_id: int
    round_id: int
    phase: str
    round_start_time: int
    betting_end_time: int
    round_end_time: int
    current_price: str
    price_points: int

    @classmethod
    def from_state(cls, state: RoundState) -> "CurrentRoundResponse":
        return cls(
            market_id=state.market_id,
            round_id=state.round_id,
            phase=state.phase.value,
            round_start_time=state.round_start_time,
            betting_end_time=state.betting_end_time,
            round_end_time=state.live_end_time,
            current_price=str(state.current_price),
            price_points=len(state.price_history),
        )
